"""
AI configuration settings and constants.
"""

from dataclasses import dataclass

from ophthalmotech.core.settings import settings


@dataclass
class AIConfig:
    """Configuration for AI services."""

    # OpenAI-compatible API settings
    api_key: str
    base_url: str | None = None
    model: str = "kimi-k2-0711-preview"
    timeout: int = 300  # 5 minutes
    max_retries: int = 3

    # Per-task token budgets and sampling temperatures
    device_analysis_max_tokens: int = 1000
    device_analysis_temperature: float = 0.3
    maintenance_max_tokens: int = 1200
    maintenance_temperature: float = 0.2
    file_analysis_max_tokens: int = 1500
    file_analysis_temperature: float = 0.2
    chat_max_tokens: int = 2000
    chat_temperature: float = 0.7

    @classmethod
    def from_settings(cls) -> "AIConfig":
        """Create AIConfig from application settings."""
        if not settings.OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY is required")

        return cls(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            model=settings.OPENAI_MODEL,
            timeout=settings.OPENAI_TIMEOUT,
            max_retries=settings.OPENAI_MAX_RETRIES,
        )

    def to_openai_kwargs(self) -> dict[str, str | int | None]:
        """Convert to OpenAI client kwargs."""
        return {
            "api_key": self.api_key,
            "base_url": self.base_url,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
        }


# Default configuration from settings
try:
    ai_config: AIConfig | None = AIConfig.from_settings()
except ValueError:
    # If no API key is provided, AI features are disabled
    ai_config = None
