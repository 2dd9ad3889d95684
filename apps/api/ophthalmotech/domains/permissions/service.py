from ophthalmotech.domains.users.models import UserProfile
from ophthalmotech.shared.permissions import (
    DEPARTMENT_PERMISSIONS,
    ROLE_LEVELS,
    ROLE_PERMISSIONS,
    Permission,
    all_permissions,
    describe,
    effective_permissions,
)
from ophthalmotech.shared.permissions.services import parse_custom_permissions

from .models import (
    GrantSet,
    MyPermissionsResponse,
    PermissionCatalogResponse,
    PermissionInfo,
    RoleGrantSet,
)


def permission_info(permission: Permission) -> PermissionInfo:
    return PermissionInfo(
        id=permission.value,
        resource=permission.resource.value,
        action=permission.action.value,
        description=describe(permission),
    )


def _sorted_info(permissions: frozenset[Permission]) -> list[PermissionInfo]:
    ordered = [p for p in Permission if p in permissions]
    return [permission_info(p) for p in ordered]


def build_catalog() -> PermissionCatalogResponse:
    """The full permission matrix: every resource, role and department."""
    resources = {
        resource.value: [permission_info(p) for p in permissions]
        for resource, permissions in all_permissions().items()
    }
    roles = [
        RoleGrantSet(
            name=role.value,
            level=ROLE_LEVELS[role],
            permissions=_sorted_info(permissions),
        )
        for role, permissions in sorted(
            ROLE_PERMISSIONS.items(), key=lambda item: ROLE_LEVELS[item[0]]
        )
    ]
    departments = [
        GrantSet(name=department.value, permissions=_sorted_info(permissions))
        for department, permissions in DEPARTMENT_PERMISSIONS.items()
    ]
    return PermissionCatalogResponse(
        resources=resources, roles=roles, departments=departments
    )


def describe_user_permissions(profile: UserProfile) -> MyPermissionsResponse:
    """Break a user's permissions down by where they come from."""

    def values(permissions: frozenset[Permission]) -> list[str]:
        return sorted(p.value for p in permissions)

    return MyPermissionsResponse(
        user_id=profile.uid or "",
        role=profile.role.value,
        department=profile.department.value,
        status=profile.status.value,
        role_permissions=values(ROLE_PERMISSIONS.get(profile.role, frozenset())),
        department_permissions=values(
            DEPARTMENT_PERMISSIONS.get(profile.department, frozenset())
        ),
        custom_permissions=values(parse_custom_permissions(profile.permissions)),
        effective_permissions=values(effective_permissions(profile)),
    )
