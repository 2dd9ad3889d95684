"""
Presentation adapters over access decisions.

These decide what a client should show for a decision: the guarded content,
a fallback, nothing, a default "access denied" panel, or a disabled button.
"""

import logging
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

from ophthalmotech.domains.auth.models import Session

from .access import AccessDecision, AccessRequest, AccessService
from .services import effective_permissions

logger = logging.getLogger(__name__)

T = TypeVar("T")

DENIED_TITLE = "Access Denied"
DENIED_MESSAGE = "You don't have permission to access this content"
DENIED_HELP = (
    "Contact your administrator if you believe you should have access "
    "to this content."
)


class CurrentAccess(BaseModel):
    role: str
    department: str
    status: str
    permission_count: int


class AccessDeniedPanel(BaseModel):
    title: str = DENIED_TITLE
    message: str = DENIED_MESSAGE
    reason: str
    current_access: Optional[CurrentAccess] = None
    help_text: str = DENIED_HELP


class ButtonState(BaseModel):
    disabled: bool
    locked: bool
    tooltip: Optional[str] = None


def denied_panel(decision: AccessDecision) -> AccessDeniedPanel:
    """Build the default denial panel, including the caller's access level."""
    current = None
    if decision.profile is not None:
        profile = decision.profile
        current = CurrentAccess(
            role=profile.role.value,
            department=profile.department.value,
            status=profile.status.value,
            permission_count=len(effective_permissions(profile)),
        )
    return AccessDeniedPanel(reason=decision.reason, current_access=current)


def render_guard(
    decision: AccessDecision,
    content: T,
    fallback: Optional[T] = None,
    show_fallback: bool = True,
) -> T | AccessDeniedPanel | None:
    """
    Pick what to render for a guarded block.

    Args:
        decision: The access decision for the block
        content: Rendered when access is allowed
        fallback: Rendered instead of the default panel when access is denied
        show_fallback: When False, a denied block renders nothing

    Returns:
        The content, the fallback, None or an AccessDeniedPanel
    """
    if decision.allowed:
        return content
    if fallback is not None:
        return fallback
    if not show_fallback:
        return None
    return denied_panel(decision)


def render_visible(decision: AccessDecision, content: T) -> T | None:
    """Content when allowed, otherwise nothing."""
    return render_guard(decision, content, show_fallback=False)  # type: ignore[return-value]


def button_state(
    decision: AccessDecision,
    fallback_text: Optional[str] = None,
    disabled: bool = False,
) -> ButtonState:
    """
    Disable a control on denial instead of hiding it.

    The tooltip carries the denial reason unless fallback_text overrides it.
    """
    return ButtonState(
        disabled=disabled or not decision.allowed,
        locked=not decision.allowed,
        tooltip=None if decision.allowed else (fallback_text or decision.reason),
    )


class PermissionGuard(Generic[T]):
    """
    Keeps the decision for one guarded block up to date.

    The decision is recomputed only when the request, the caller identity or
    the authentication state change. A result that arrives after a newer
    evaluation started, or after the guard was closed, is dropped.
    """

    def __init__(self, access_service: AccessService, request: AccessRequest):
        self.access_service = access_service
        self.request = request
        self.decision: Optional[AccessDecision] = None
        self.loading = False
        self._key: Optional[tuple] = None
        self._generation = 0
        self._closed = False

    def _dependency_key(self, session: Session) -> tuple:
        return (
            self.request.cache_key(),
            session.user_id,
            session.is_authenticated,
        )

    def update_request(self, request: AccessRequest) -> None:
        self.request = request

    async def evaluate(self, session: Session) -> Optional[AccessDecision]:
        """
        Return the current decision, re-checking if a dependency changed.

        Returns:
            The decision, or None if this evaluation was superseded or the
            guard was closed while it was in flight
        """
        if self._closed:
            return None

        key = self._dependency_key(session)
        if key == self._key and self.decision is not None:
            return self.decision

        self._generation += 1
        generation = self._generation
        self.loading = True

        decision = await self.access_service.check_access(session, self.request)

        if self._closed or generation != self._generation:
            logger.debug("Discarding stale access decision")
            return None

        self._key = key
        self.decision = decision
        self.loading = False
        return decision

    async def render(
        self,
        session: Session,
        content: T,
        fallback: Optional[T] = None,
        show_fallback: bool = True,
    ) -> T | AccessDeniedPanel | None:
        decision = await self.evaluate(session)
        if decision is None:
            return None
        return render_guard(decision, content, fallback, show_fallback)

    def close(self) -> None:
        self._closed = True
        self.loading = False

    @property
    def closed(self) -> bool:
        return self._closed
