from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase configuration
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    JWT_SECRET: str | None = None

    # Table store
    USERS_TABLE: str = "users"
    USER_ACTIVITIES_TABLE: str = "user_activities"

    # File storage
    STORAGE_BUCKET: str = "device-files"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Application URLs
    APP_BASE_URL: str = "http://localhost:8001"  # Default for development
    DASHBOARD_URL: str = "https://app.ophthalmotech.com/dashboard"

    # Transactional email (Resend-compatible API)
    EMAIL_API_URL: str = "https://api.resend.com/emails"
    EMAIL_API_KEY: str | None = None
    EMAIL_FROM: str = "noreply@ophthalmotech.com"
    EMAIL_TIMEOUT: int = 30

    # OpenAI-compatible chat completions
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str | None = None
    OPENAI_MODEL: str = "kimi-k2-0711-preview"
    OPENAI_TIMEOUT: int = 300  # 5 minutes
    OPENAI_MAX_RETRIES: int = 3

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
