"""
Access decisions for a caller session.

Bridges the pure resolver and the user store: fetches the caller's profile,
runs the requested checks in a fixed order and explains every denial.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, Field

from ophthalmotech.domains.auth.models import Session
from ophthalmotech.domains.users.models import Role, UserProfile, UserStatus

from .models import Permission, describe
from .services import (
    has_any_permission,
    has_permission,
    has_role_level,
    missing_permissions,
)

logger = logging.getLogger(__name__)

ProfileFetcher = Callable[[str], Awaitable[Optional[UserProfile]]]


class DenialReason(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    PROFILE_MISSING = "profile_missing"
    INACTIVE_ACCOUNT = "inactive_account"
    INSUFFICIENT_ROLE = "insufficient_role"
    INSUFFICIENT_ROLE_LEVEL = "insufficient_role_level"
    MISSING_PERMISSIONS = "missing_permissions"
    COLLABORATOR_FAILURE = "collaborator_failure"


class AccessRequest(BaseModel):
    permission: Optional[Permission] = None
    permissions: list[Permission] = Field(default_factory=list)
    require_all: bool = False
    role: Optional[Role] = None
    min_role_level: Optional[Role] = None

    def cache_key(self) -> tuple:
        return (
            self.permission,
            tuple(self.permissions),
            self.require_all,
            self.role,
            self.min_role_level,
        )


class AccessDecision(BaseModel):
    allowed: bool
    reason: str = ""
    profile: Optional[UserProfile] = None
    denial: Optional[DenialReason] = None

    @classmethod
    def allow(cls, profile: UserProfile) -> "AccessDecision":
        return cls(allowed=True, profile=profile)

    @classmethod
    def deny(
        cls,
        denial: DenialReason,
        reason: str,
        profile: Optional[UserProfile] = None,
    ) -> "AccessDecision":
        return cls(allowed=False, reason=reason, profile=profile, denial=denial)


def _describe_all(permissions: list[Permission | str]) -> str:
    return ", ".join(describe(p) for p in permissions)


def evaluate_access(profile: UserProfile, request: AccessRequest) -> AccessDecision:
    """
    Decide a request against an already fetched profile.

    Checks run in a fixed order and the first failing check decides the
    reason. When both role and min_role_level are given, both must pass.
    """
    if profile.status != UserStatus.active:
        return AccessDecision.deny(
            DenialReason.INACTIVE_ACCOUNT,
            f"Account is {profile.status.value}",
            profile,
        )

    if request.role is not None and profile.role != request.role:
        return AccessDecision.deny(
            DenialReason.INSUFFICIENT_ROLE,
            f"Requires {request.role.value} role (current: {profile.role.value})",
            profile,
        )

    if request.min_role_level is not None and not has_role_level(
        profile.role, request.min_role_level
    ):
        return AccessDecision.deny(
            DenialReason.INSUFFICIENT_ROLE_LEVEL,
            f"Requires minimum {request.min_role_level.value} role level "
            f"(current: {profile.role.value})",
            profile,
        )

    if request.permission is not None and not has_permission(
        profile, request.permission
    ):
        return AccessDecision.deny(
            DenialReason.MISSING_PERMISSIONS,
            f"Missing required permission: {describe(request.permission)}",
            profile,
        )

    if request.permissions:
        if request.require_all:
            missing = missing_permissions(profile, request.permissions)
            if missing:
                return AccessDecision.deny(
                    DenialReason.MISSING_PERMISSIONS,
                    f"Missing required permissions: {_describe_all(missing)}",
                    profile,
                )
        elif not has_any_permission(profile, request.permissions):
            return AccessDecision.deny(
                DenialReason.MISSING_PERMISSIONS,
                "Missing any of required permissions: "
                f"{_describe_all(list(request.permissions))}",
                profile,
            )

    return AccessDecision.allow(profile)


class AccessService:
    """Answers access questions for a session, fetching the profile each time."""

    def __init__(self, fetch_profile: ProfileFetcher):
        self.fetch_profile = fetch_profile

    async def check_access(
        self, session: Session, request: AccessRequest
    ) -> AccessDecision:
        """
        Decide whether the session may proceed with the request.

        Args:
            session: The caller's session
            request: Permission, role and role level constraints

        Returns:
            AccessDecision; never raises
        """
        identity = session.identity
        if identity is None:
            return AccessDecision.deny(
                DenialReason.NOT_AUTHENTICATED, "User not authenticated"
            )

        try:
            profile = await self.fetch_profile(identity)
        except Exception as e:
            logger.exception("Permission check failed for user %s", identity)
            return AccessDecision.deny(
                DenialReason.COLLABORATOR_FAILURE,
                f"Permission check failed: {getattr(e, 'detail', e)}",
            )

        if profile is None:
            return AccessDecision.deny(
                DenialReason.PROFILE_MISSING, "User profile not found"
            )

        decision = evaluate_access(profile, request)
        if not decision.allowed:
            logger.debug("Access denied for user %s: %s", identity, decision.reason)
        return decision

    async def _active_profile(self, session: Session) -> Optional[UserProfile]:
        identity = session.identity
        if identity is None:
            return None
        try:
            profile = await self.fetch_profile(identity)
        except Exception:
            logger.exception("Error loading profile for user %s", identity)
            return None
        if profile is None or profile.status != UserStatus.active:
            return None
        return profile

    async def check_permission(
        self, session: Session, permission: Permission | str
    ) -> bool:
        profile = await self._active_profile(session)
        return profile is not None and has_permission(profile, permission)

    async def check_permissions(
        self,
        session: Session,
        permissions: list[Permission | str],
        require_all: bool = False,
    ) -> bool:
        profile = await self._active_profile(session)
        if profile is None:
            return False
        if require_all:
            return not missing_permissions(profile, permissions)
        return has_any_permission(profile, permissions)

    async def check_role(self, session: Session, role: Role | str) -> bool:
        profile = await self._active_profile(session)
        return profile is not None and profile.role.value == getattr(
            role, "value", role
        )

    async def check_min_role_level(self, session: Session, min_role: Role | str) -> bool:
        profile = await self._active_profile(session)
        return profile is not None and has_role_level(profile.role, min_role)
