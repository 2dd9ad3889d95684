"""
Permission system for role, department and per-user access control.

A user's effective permissions are the union of the permissions of their
role, their department and any custom grants stored on their profile, and
only apply while the account is active.

Usage:
    from ophthalmotech.shared.permissions import Permission
    from ophthalmotech.shared.permissions.dependencies import require_permission

    @router.get("/users")
    async def list_users(
        decision: AccessDecision = Depends(
            require_permission(Permission.USERS_READ)
        )
    ):
        pass
"""

from .access import (
    AccessDecision,
    AccessRequest,
    AccessService,
    DenialReason,
    evaluate_access,
)
from .guards import (
    AccessDeniedPanel,
    ButtonState,
    PermissionGuard,
    button_state,
    render_guard,
    render_visible,
)
from .models import (
    DEPARTMENT_PERMISSIONS,
    ROLE_LEVELS,
    ROLE_PERMISSIONS,
    Action,
    Permission,
    Resource,
    all_permissions,
    describe,
    parse_permission,
)
from .services import (
    effective_permissions,
    has_all_permissions,
    has_any_permission,
    has_permission,
    has_role_level,
)

__all__ = [
    "AccessDecision",
    "AccessDeniedPanel",
    "AccessRequest",
    "AccessService",
    "Action",
    "ButtonState",
    "DEPARTMENT_PERMISSIONS",
    "DenialReason",
    "Permission",
    "PermissionGuard",
    "ROLE_LEVELS",
    "ROLE_PERMISSIONS",
    "Resource",
    "all_permissions",
    "button_state",
    "describe",
    "effective_permissions",
    "evaluate_access",
    "has_all_permissions",
    "has_any_permission",
    "has_permission",
    "has_role_level",
    "parse_permission",
    "render_guard",
    "render_visible",
]
