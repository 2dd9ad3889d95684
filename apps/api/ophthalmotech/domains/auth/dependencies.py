# apps/api/ophthalmotech/domains/auth/dependencies.py
import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt import PyJWKClient
from supabase import Client

from ophthalmotech.core.database import get_db
from ophthalmotech.core.settings import settings
from ophthalmotech.domains.users.service import UserService
from ophthalmotech.shared.exceptions import InvalidTokenError
from ophthalmotech.shared.permissions.access import AccessService

from .models import Session
from .types import SupabaseJwtPayload

JWKS_URL = (
    f"{settings.SUPABASE_URL}/auth/v1/.well-known/jwks.json"
    if settings.SUPABASE_URL
    else None
)

_jwks_client = PyJWKClient(JWKS_URL) if JWKS_URL else None


def decode_supabase_jwt(token: str) -> SupabaseJwtPayload:
    """
    Verifies JWT token. Uses JWT_SECRET for development mode if available,
    otherwise falls back to Supabase JWKS for production.
    """
    if settings.JWT_SECRET:
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=["HS256"],
                options={"verify_aud": False},
            )
            return SupabaseJwtPayload(**dict(payload))
        except jwt.PyJWTError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
            )

    if not _jwks_client:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase not configured",
        )
    try:
        signing_key = _jwks_client.get_signing_key_from_jwt(token).key
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=["RS256", "ES256"],
            options={"verify_aud": False},
        )
        return SupabaseJwtPayload(**dict(payload))
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_session(authorization: str | None = Header(None)) -> Session:
    """
    Resolves the caller's session from the Authorization header.

    A missing header yields an anonymous session so that access checks can
    report "not authenticated" themselves. A malformed header is rejected.
    """
    if not authorization:
        return Session.anonymous()
    if not authorization.startswith("Bearer "):
        raise InvalidTokenError()

    token = authorization.split(" ", 1)[1]
    payload = decode_supabase_jwt(token)
    if not payload.sub or payload.is_anonymous:
        return Session.anonymous()
    return Session.for_user(payload.sub, payload.email)


def get_user_service(
    session: Session = Depends(get_session), db: Client = Depends(get_db)
) -> UserService:
    return UserService(db, actor_id=session.identity)


def get_access_service(db: Client = Depends(get_db)) -> AccessService:
    """Access checks backed by a fresh users-table fetch per check."""
    return AccessService(UserService(db).get_user_by_id)
