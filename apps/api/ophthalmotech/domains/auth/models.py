# apps/api/ophthalmotech/domains/auth/models.py
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ophthalmotech.domains.users.models import UserProfile


@dataclass(frozen=True)
class Session:
    """The caller's identity, resolved once per request and passed down."""

    user_id: Optional[str] = None
    email: Optional[str] = None
    is_authenticated: bool = False

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()

    @classmethod
    def for_user(cls, user_id: str, email: Optional[str] = None) -> "Session":
        return cls(user_id=user_id, email=email, is_authenticated=bool(user_id))

    @property
    def identity(self) -> Optional[str]:
        """The user id when the session is authenticated, otherwise None."""
        if not self.is_authenticated or not self.user_id:
            return None
        return self.user_id


class SendOTPRequest(BaseModel):
    email: EmailStr


class SendOTPResponse(BaseModel):
    email: str
    sent: bool = True


class VerifyOTPRequest(BaseModel):
    email: EmailStr
    code: str = Field(min_length=4, max_length=10)


class AuthTokens(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"


class VerifyOTPResponse(BaseModel):
    tokens: AuthTokens
    user: UserProfile


class SessionState(BaseModel):
    user_id: Optional[str]
    email: Optional[str]
    is_authenticated: bool
    profile: Optional[UserProfile] = None
    permissions: list[str] = Field(default_factory=list)
