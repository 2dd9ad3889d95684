from typing import Awaitable, Callable, Optional

from fastapi import Depends

from ophthalmotech.domains.auth.dependencies import get_access_service, get_session
from ophthalmotech.domains.auth.models import Session
from ophthalmotech.domains.users.models import Role
from ophthalmotech.shared.exceptions import NotAuthenticatedError, NotAuthorizedError

from .access import AccessDecision, AccessRequest, AccessService, DenialReason
from .models import Permission


def require_access(
    permission: Optional[Permission] = None,
    permissions: Optional[list[Permission]] = None,
    require_all: bool = False,
    role: Optional[Role] = None,
    min_role_level: Optional[Role] = None,
) -> Callable[..., Awaitable[AccessDecision]]:
    """
    Dependency factory for access-controlled endpoints.

    Creates a dependency that evaluates the caller's session against the
    given constraints and rejects the request when access is denied.

    Returns:
        Async dependency function that returns the allowing AccessDecision
    """
    access_request = AccessRequest(
        permission=permission,
        permissions=permissions or [],
        require_all=require_all,
        role=role,
        min_role_level=min_role_level,
    )

    async def check_access(
        session: Session = Depends(get_session),
        access_service: AccessService = Depends(get_access_service),
    ) -> AccessDecision:
        """
        Validate the session satisfies the endpoint's access constraints.

        Raises:
            HTTPException: 401 when not authenticated, 403 for other denials
        """
        decision = await access_service.check_access(session, access_request)
        if decision.allowed:
            return decision
        if decision.denial is DenialReason.NOT_AUTHENTICATED:
            raise NotAuthenticatedError(decision.reason)
        raise NotAuthorizedError(decision.reason)

    return check_access


def require_permission(
    permission: Permission,
) -> Callable[..., Awaitable[AccessDecision]]:
    """Shortcut for require_access(permission=...)."""
    return require_access(permission=permission)
