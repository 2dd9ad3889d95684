from enum import Enum
from types import MappingProxyType
from typing import Mapping

from ophthalmotech.domains.users.models import Department, Role


class Resource(str, Enum):
    USERS = "users"
    DEVICES = "devices"
    MAINTENANCE = "maintenance"
    REPORTS = "reports"
    FILES = "files"
    AI = "ai"
    SYSTEM = "system"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    EXPORT = "export"
    APPROVE = "approve"
    ASSIGN = "assign"
    UPLOAD = "upload"
    CHAT = "chat"
    ANALYZE = "analyze"
    CONFIGURE = "configure"
    AUDIT = "audit"


class Permission(str, Enum):
    """
    Defines all permissions available in the system.

    Permission values follow the pattern: resource:action
    """

    # User administration
    USERS_CREATE = "users:create"
    USERS_READ = "users:read"
    USERS_UPDATE = "users:update"
    USERS_DELETE = "users:delete"
    USERS_EXPORT = "users:export"

    # Device inventory
    DEVICES_CREATE = "devices:create"
    DEVICES_READ = "devices:read"
    DEVICES_UPDATE = "devices:update"
    DEVICES_DELETE = "devices:delete"
    DEVICES_EXPORT = "devices:export"

    # Maintenance work orders
    MAINTENANCE_CREATE = "maintenance:create"
    MAINTENANCE_READ = "maintenance:read"
    MAINTENANCE_UPDATE = "maintenance:update"
    MAINTENANCE_DELETE = "maintenance:delete"
    MAINTENANCE_APPROVE = "maintenance:approve"
    MAINTENANCE_ASSIGN = "maintenance:assign"

    # Reports
    REPORTS_CREATE = "reports:create"
    REPORTS_READ = "reports:read"
    REPORTS_UPDATE = "reports:update"
    REPORTS_DELETE = "reports:delete"
    REPORTS_EXPORT = "reports:export"

    # Device documents
    FILES_UPLOAD = "files:upload"
    FILES_READ = "files:read"

    # AI assistant
    AI_CHAT = "ai:chat"
    AI_ANALYZE = "ai:analyze"

    # System administration
    SYSTEM_CONFIGURE = "system:configure"
    SYSTEM_AUDIT = "system:audit"

    @property
    def resource(self) -> Resource:
        return Resource(self.value.split(":", 1)[0])

    @property
    def action(self) -> Action:
        return Action(self.value.split(":", 1)[1])


PERMISSION_DESCRIPTIONS: Mapping[Permission, str] = MappingProxyType(
    {
        Permission.USERS_CREATE: "Create new users",
        Permission.USERS_READ: "View user profiles",
        Permission.USERS_UPDATE: "Edit user profiles",
        Permission.USERS_DELETE: "Delete users",
        Permission.USERS_EXPORT: "Export user data",
        Permission.DEVICES_CREATE: "Register new devices",
        Permission.DEVICES_READ: "View devices",
        Permission.DEVICES_UPDATE: "Edit device records",
        Permission.DEVICES_DELETE: "Decommission devices",
        Permission.DEVICES_EXPORT: "Export device data",
        Permission.MAINTENANCE_CREATE: "Create maintenance requests",
        Permission.MAINTENANCE_READ: "View maintenance records",
        Permission.MAINTENANCE_UPDATE: "Update maintenance records",
        Permission.MAINTENANCE_DELETE: "Delete maintenance records",
        Permission.MAINTENANCE_APPROVE: "Approve maintenance work",
        Permission.MAINTENANCE_ASSIGN: "Assign maintenance to technicians",
        Permission.REPORTS_CREATE: "Create reports",
        Permission.REPORTS_READ: "View reports",
        Permission.REPORTS_UPDATE: "Edit reports",
        Permission.REPORTS_DELETE: "Delete reports",
        Permission.REPORTS_EXPORT: "Export reports",
        Permission.FILES_UPLOAD: "Upload device documents",
        Permission.FILES_READ: "View device documents",
        Permission.AI_CHAT: "Use the AI assistant",
        Permission.AI_ANALYZE: "Run AI device analysis",
        Permission.SYSTEM_CONFIGURE: "Configure system settings",
        Permission.SYSTEM_AUDIT: "View system audit logs",
    }
)

_VIEWER_PERMISSIONS = frozenset(
    {
        Permission.USERS_READ,
        Permission.DEVICES_READ,
        Permission.MAINTENANCE_READ,
        Permission.REPORTS_READ,
        Permission.FILES_READ,
        Permission.AI_CHAT,
    }
)

_TECHNICIAN_PERMISSIONS = _VIEWER_PERMISSIONS | {
    Permission.DEVICES_UPDATE,
    Permission.MAINTENANCE_CREATE,
    Permission.MAINTENANCE_UPDATE,
    Permission.FILES_UPLOAD,
    Permission.AI_ANALYZE,
}

_MANAGER_PERMISSIONS = _TECHNICIAN_PERMISSIONS | {
    Permission.USERS_CREATE,
    Permission.USERS_UPDATE,
    Permission.USERS_EXPORT,
    Permission.DEVICES_CREATE,
    Permission.DEVICES_EXPORT,
    Permission.MAINTENANCE_APPROVE,
    Permission.MAINTENANCE_ASSIGN,
    Permission.REPORTS_CREATE,
    Permission.REPORTS_UPDATE,
    Permission.REPORTS_EXPORT,
}

ROLE_PERMISSIONS: Mapping[Role, frozenset[Permission]] = MappingProxyType(
    {
        # Viewers have read-only access plus the assistant
        Role.viewer: _VIEWER_PERMISSIONS,
        # Technicians service devices and log maintenance
        Role.technician: _TECHNICIAN_PERMISSIONS,
        # Managers run teams, reports and approvals
        Role.manager: _MANAGER_PERMISSIONS,
        # Admins have all permissions
        Role.admin: frozenset(Permission),
    }
)

DEPARTMENT_PERMISSIONS: Mapping[Department, frozenset[Permission]] = MappingProxyType(
    {
        Department.ophthalmology: frozenset(
            {
                Permission.DEVICES_UPDATE,
                Permission.MAINTENANCE_CREATE,
            }
        ),
        Department.biomedical: frozenset(
            {
                Permission.DEVICES_CREATE,
                Permission.DEVICES_UPDATE,
                Permission.MAINTENANCE_CREATE,
                Permission.MAINTENANCE_UPDATE,
                Permission.MAINTENANCE_ASSIGN,
                Permission.FILES_UPLOAD,
            }
        ),
        Department.it: frozenset(
            {
                Permission.SYSTEM_CONFIGURE,
                Permission.SYSTEM_AUDIT,
                Permission.DEVICES_UPDATE,
            }
        ),
        Department.administration: frozenset(
            {
                Permission.USERS_EXPORT,
                Permission.REPORTS_CREATE,
                Permission.REPORTS_EXPORT,
            }
        ),
    }
)

# Minimum role checks compare these levels
ROLE_LEVELS: Mapping[Role, int] = MappingProxyType(
    {
        Role.viewer: 1,
        Role.technician: 2,
        Role.manager: 3,
        Role.admin: 4,
    }
)

_PERMISSION_LOOKUP: Mapping[str, Permission] = MappingProxyType(
    {permission.value: permission for permission in Permission}
)


def parse_permission(value: object) -> Permission | None:
    """
    Validate a raw identifier against the catalog.

    Args:
        value: A Permission or a "resource:action" string

    Returns:
        The matching Permission, or None if the identifier is unknown
    """
    if isinstance(value, Permission):
        return value
    if isinstance(value, str):
        return _PERMISSION_LOOKUP.get(value.strip())
    return None


def parse_role(value: object) -> Role | None:
    """Return the Role for a raw identifier, or None if it is unknown."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        try:
            return Role(value.strip().lower())
        except ValueError:
            return None
    return None


def describe(permission: Permission | str) -> str:
    """Human-readable label for a permission, falling back to the identifier."""
    parsed = parse_permission(permission)
    if parsed is None:
        return str(permission)
    return PERMISSION_DESCRIPTIONS.get(parsed, parsed.value)


def all_permissions() -> dict[Resource, tuple[Permission, ...]]:
    """All permissions grouped by resource, in declaration order."""
    grouped: dict[Resource, tuple[Permission, ...]] = {}
    for resource in Resource:
        grouped[resource] = tuple(p for p in Permission if p.resource is resource)
    return grouped
