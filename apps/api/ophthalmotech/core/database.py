# apps/api/ophthalmotech/core/database.py
from fastapi import Request
from supabase import Client, create_client

from ophthalmotech.core.settings import settings
from ophthalmotech.shared.exceptions import ServiceNotConfiguredError


def create_supabase_client() -> Client | None:
    """Create the Supabase client, or None when it is not configured."""
    key = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY
    if not settings.SUPABASE_URL or not key:
        return None
    return create_client(settings.SUPABASE_URL, key)


async def get_db(request: Request) -> Client:
    """Database dependency for FastAPI dependency injection."""
    client: Client | None = getattr(request.app.state, "supabase", None)
    if client is None:
        raise ServiceNotConfiguredError("Supabase")
    return client
