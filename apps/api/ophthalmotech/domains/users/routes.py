# apps/api/ophthalmotech/domains/users/routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ophthalmotech.domains.auth.dependencies import get_user_service
from ophthalmotech.domains.users.models import (
    Department,
    PermissionGrantRequest,
    Role,
    UserActivity,
    UserCreate,
    UserListResponse,
    UserProfile,
    UserStats,
    UserUpdate,
)
from ophthalmotech.domains.users.service import UserService
from ophthalmotech.shared.exceptions import NotAuthorizedError, UserNotFoundError
from ophthalmotech.shared.permissions import (
    AccessDecision,
    AccessRequest,
    Permission,
    evaluate_access,
)
from ophthalmotech.shared.permissions.dependencies import (
    require_access,
    require_permission,
)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=UserListResponse, operation_id="listUsers")
async def list_users(
    limit: int = Query(50, ge=1, le=1000),
    role: Optional[Role] = None,
    department: Optional[Department] = None,
    search: Optional[str] = None,
    decision: AccessDecision = Depends(require_permission(Permission.USERS_READ)),
    service: UserService = Depends(get_user_service),
) -> UserListResponse:
    """
    List users, optionally filtered by role, department or a search term.

    Only one filter is applied; search takes precedence over role, and role
    over department.
    """
    if search:
        return UserListResponse(users=await service.search_users(search))
    if role is not None:
        return UserListResponse(users=await service.get_users_by_role(role, limit))
    if department is not None:
        return UserListResponse(
            users=await service.get_users_by_department(department, limit)
        )
    return await service.get_all_users(limit)


@router.post(
    "",
    response_model=UserProfile,
    status_code=status.HTTP_201_CREATED,
    operation_id="createUser",
)
async def create_user(
    user_data: UserCreate,
    decision: AccessDecision = Depends(require_permission(Permission.USERS_CREATE)),
    service: UserService = Depends(get_user_service),
) -> UserProfile:
    return await service.create_user(user_data)


@router.get("/stats", response_model=UserStats, operation_id="getUserStats")
async def get_user_stats(
    decision: AccessDecision = Depends(require_permission(Permission.USERS_READ)),
    service: UserService = Depends(get_user_service),
) -> UserStats:
    return await service.get_user_stats()


@router.get(
    "/activities",
    response_model=List[UserActivity],
    operation_id="listActivities",
)
async def list_activities(
    limit: int = Query(100, ge=1, le=1000),
    decision: AccessDecision = Depends(require_permission(Permission.SYSTEM_AUDIT)),
    service: UserService = Depends(get_user_service),
) -> List[UserActivity]:
    return await service.get_all_activities(limit)


@router.get("/{user_id}", response_model=UserProfile, operation_id="getUser")
async def get_user(
    user_id: str,
    decision: AccessDecision = Depends(require_permission(Permission.USERS_READ)),
    service: UserService = Depends(get_user_service),
) -> UserProfile:
    user = await service.get_user_by_id(user_id)
    if user is None:
        raise UserNotFoundError()
    return user


@router.patch("/{user_id}", response_model=UserProfile, operation_id="updateUser")
async def update_user(
    user_id: str,
    updates: UserUpdate,
    decision: AccessDecision = Depends(require_permission(Permission.USERS_UPDATE)),
    service: UserService = Depends(get_user_service),
) -> UserProfile:
    """
    Update a user's profile, role, department or status.

    Changing role or status requires at least the manager role level.
    """
    if updates.role is not None or updates.status is not None:
        level = evaluate_access(
            decision.profile, AccessRequest(min_role_level=Role.manager)
        )
        if not level.allowed:
            raise NotAuthorizedError(level.reason)
    return await service.update_user(user_id, updates)


@router.delete(
    "/{user_id}", status_code=status.HTTP_204_NO_CONTENT, operation_id="deleteUser"
)
async def delete_user(
    user_id: str,
    decision: AccessDecision = Depends(require_permission(Permission.USERS_DELETE)),
    service: UserService = Depends(get_user_service),
) -> None:
    await service.delete_user(user_id)


@router.get(
    "/{user_id}/activities",
    response_model=List[UserActivity],
    operation_id="listUserActivities",
)
async def list_user_activities(
    user_id: str,
    limit: int = Query(50, ge=1, le=1000),
    decision: AccessDecision = Depends(require_permission(Permission.USERS_READ)),
    service: UserService = Depends(get_user_service),
) -> List[UserActivity]:
    return await service.get_user_activities(user_id, limit)


@router.post(
    "/{user_id}/permissions",
    response_model=UserProfile,
    operation_id="grantUserPermission",
)
async def grant_user_permission(
    user_id: str,
    grant: PermissionGrantRequest,
    decision: AccessDecision = Depends(require_access(role=Role.admin)),
    service: UserService = Depends(get_user_service),
) -> UserProfile:
    """Add a custom permission on top of the user's role and department."""
    return await service.grant_permission(user_id, grant.permission)


@router.delete(
    "/{user_id}/permissions/{permission}",
    response_model=UserProfile,
    operation_id="revokeUserPermission",
)
async def revoke_user_permission(
    user_id: str,
    permission: str,
    decision: AccessDecision = Depends(require_access(role=Role.admin)),
    service: UserService = Depends(get_user_service),
) -> UserProfile:
    """Remove a custom permission. Role and department grants are unaffected."""
    return await service.revoke_permission(user_id, permission)
