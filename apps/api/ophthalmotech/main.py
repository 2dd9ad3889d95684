from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ophthalmotech.core.database import create_supabase_client
from ophthalmotech.core.logging import configure_logging
from ophthalmotech.domains.assistant.routes import router as assistant_router
from ophthalmotech.domains.auth.routes import router as auth_router
from ophthalmotech.domains.files.routes import router as files_router
from ophthalmotech.domains.insights.routes import router as insights_router
from ophthalmotech.domains.notifications.routes import router as notifications_router
from ophthalmotech.domains.permissions.routes import router as permissions_router
from ophthalmotech.domains.users.routes import router as users_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    configure_logging()
    app.state.supabase = create_supabase_client()
    yield
    # Shutdown
    app.state.supabase = None


app = FastAPI(
    title="OphthalmoTech API",
    description="API for ophthalmology device management",
    version="0.1.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(permissions_router, prefix="/api/v1")
app.include_router(files_router, prefix="/api/v1")
app.include_router(assistant_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(insights_router, prefix="/api/v1")


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "OphthalmoTech API is running"}


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}
