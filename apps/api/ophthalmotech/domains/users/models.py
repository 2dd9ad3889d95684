# apps/api/ophthalmotech/domains/users/models.py
import logging
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

logger = logging.getLogger(__name__)


class Role(str, Enum):
    viewer = "viewer"
    technician = "technician"
    manager = "manager"
    admin = "admin"


class Department(str, Enum):
    ophthalmology = "ophthalmology"
    biomedical = "biomedical"
    it = "it"
    administration = "administration"


class UserStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


ActivityAction = Literal[
    "login", "logout", "create", "update", "delete", "view", "export"
]


class UserProfile(BaseModel):
    """A row of the users table."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    uid: Optional[str] = None
    email: str
    first_name: str
    last_name: str = ""
    role: Role = Role.viewer
    department: Department = Department.administration
    status: UserStatus = UserStatus.active
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    last_login: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    # Custom permission grants, JSON-encoded or as stored by a jsonb column
    permissions: str | list[str] | None = None
    bio: Optional[str] = None
    hire_date: Optional[str] = None
    license_number: Optional[str] = None

    @field_validator("permissions", mode="before")
    @classmethod
    def drop_malformed_permissions(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, list):
            return [v for v in value if isinstance(v, str)]
        logger.warning("Ignoring malformed custom permissions: %r", value)
        return None

    @classmethod
    def restricted(cls, row: dict[str, Any]) -> "UserProfile":
        """
        Stand-in for a stored row that does not validate.

        The result is inactive with no custom grants, so it is denied
        everything instead of failing the caller.
        """

        def text(key: str) -> Optional[str]:
            value = row.get(key)
            return value if isinstance(value, str) else None

        return cls(
            id=text("id"),
            uid=text("uid"),
            email=text("email") or "",
            first_name=text("first_name") or "",
            last_name=text("last_name") or "",
            status=UserStatus.inactive,
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_record(self) -> dict[str, Any]:
        """Serialize for the table store, dropping unset keys."""
        return self.model_dump(mode="json", exclude_none=True)


class UserCreate(BaseModel):
    email: EmailStr
    first_name: str
    last_name: str = ""
    role: Role = Role.viewer
    department: Department = Department.administration
    status: UserStatus = UserStatus.active
    uid: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    hire_date: Optional[str] = None
    license_number: Optional[str] = None


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[Role] = None
    department: Optional[Department] = None
    status: Optional[UserStatus] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    hire_date: Optional[str] = None
    license_number: Optional[str] = None
    last_login: Optional[str] = None


class UserListResponse(BaseModel):
    users: list[UserProfile]
    next_cursor: Optional[str] = None


class UserActivity(BaseModel):
    """A row of the user activity log."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    uid: Optional[str] = None
    user_id: str
    action_type: ActivityAction
    resource_type: str
    resource_id: Optional[str] = None
    description: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: str
    # JSON-encoded
    metadata: Optional[str] = None


class UserStats(BaseModel):
    total: int
    by_role: dict[str, int] = Field(default_factory=dict)
    by_department: dict[str, int] = Field(default_factory=dict)
    by_status: dict[str, int] = Field(default_factory=dict)


class PermissionGrantRequest(BaseModel):
    permission: str
