# apps/api/ophthalmotech/domains/permissions/routes.py
from fastapi import APIRouter, Depends

from ophthalmotech.domains.auth.dependencies import get_access_service, get_session
from ophthalmotech.domains.auth.models import Session
from ophthalmotech.domains.permissions.models import (
    AccessCheckResponse,
    MyPermissionsResponse,
    PermissionCatalogResponse,
)
from ophthalmotech.domains.permissions.service import (
    build_catalog,
    describe_user_permissions,
)
from ophthalmotech.shared.exceptions import UserNotFoundError
from ophthalmotech.shared.permissions import (
    AccessDecision,
    AccessDeniedPanel,
    AccessRequest,
    AccessService,
    button_state,
    render_guard,
)
from ophthalmotech.shared.permissions.dependencies import require_access

router = APIRouter(prefix="/permissions", tags=["Permissions"])


@router.get(
    "/catalog",
    response_model=PermissionCatalogResponse,
    operation_id="getPermissionCatalog",
)
async def get_permission_catalog() -> PermissionCatalogResponse:
    """Every permission by resource, and what each role and department grants."""
    return build_catalog()


@router.get(
    "/me", response_model=MyPermissionsResponse, operation_id="getMyPermissions"
)
async def get_my_permissions(
    decision: AccessDecision = Depends(require_access()),
) -> MyPermissionsResponse:
    """The caller's permissions by source. Requires an active account."""
    if decision.profile is None:
        raise UserNotFoundError()
    return describe_user_permissions(decision.profile)


@router.post(
    "/check", response_model=AccessCheckResponse, operation_id="checkAccess"
)
async def check_access(
    request: AccessRequest,
    session: Session = Depends(get_session),
    access_service: AccessService = Depends(get_access_service),
) -> AccessCheckResponse:
    """
    Evaluate an access request for the caller without enforcing it.

    Returns the decision along with what a guarded block and a guarded button
    should show, so clients can render denials consistently.
    """
    decision = await access_service.check_access(session, request)
    rendered = render_guard(decision, content=None)
    panel = rendered if isinstance(rendered, AccessDeniedPanel) else None
    return AccessCheckResponse(
        decision=decision, panel=panel, button=button_state(decision)
    )
