# apps/api/ophthalmotech/domains/permissions/models.py
from typing import Optional

from pydantic import BaseModel

from ophthalmotech.shared.permissions import (
    AccessDecision,
    AccessDeniedPanel,
    ButtonState,
)


class PermissionInfo(BaseModel):
    id: str
    resource: str
    action: str
    description: str


class GrantSet(BaseModel):
    name: str
    permissions: list[PermissionInfo]


class RoleGrantSet(GrantSet):
    level: int


class PermissionCatalogResponse(BaseModel):
    resources: dict[str, list[PermissionInfo]]
    roles: list[RoleGrantSet]
    departments: list[GrantSet]


class MyPermissionsResponse(BaseModel):
    user_id: str
    role: str
    department: str
    status: str
    role_permissions: list[str]
    department_permissions: list[str]
    custom_permissions: list[str]
    effective_permissions: list[str]


class AccessCheckResponse(BaseModel):
    decision: AccessDecision
    panel: Optional[AccessDeniedPanel] = None
    button: ButtonState
