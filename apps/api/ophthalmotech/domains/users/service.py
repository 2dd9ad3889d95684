# apps/api/ophthalmotech/domains/users/service.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError
from supabase import Client

from ophthalmotech.core.settings import settings
from ophthalmotech.domains.users.models import (
    ActivityAction,
    Department,
    Role,
    UserActivity,
    UserCreate,
    UserListResponse,
    UserProfile,
    UserStats,
    UserUpdate,
)
from ophthalmotech.shared.exceptions import (
    DatabaseOperationError,
    InvalidDataError,
    NotAuthenticatedError,
    UserNotFoundError,
)
from ophthalmotech.shared.permissions.models import Permission, parse_permission
from ophthalmotech.shared.permissions.services import (
    encode_custom_permissions,
    parse_custom_permissions,
)

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def row_to_profile(row: dict[str, Any]) -> UserProfile:
    """Validate a users row, falling back to a restricted profile."""
    try:
        return UserProfile.model_validate(row)
    except ValidationError as e:
        logger.warning(
            "Restricting user %s with invalid profile row: %s", row.get("uid"), e
        )
        return UserProfile.restricted(row)


def rows_to_profiles(rows: list[dict[str, Any]]) -> list[UserProfile]:
    """Validate users rows, skipping any that do not validate."""
    profiles = []
    for row in rows:
        try:
            profiles.append(UserProfile.model_validate(row))
        except ValidationError as e:
            logger.warning("Skipping invalid user row %s: %s", row.get("uid"), e)
    return profiles


class UserService:
    """Users table and activity log operations on behalf of an acting user."""

    def __init__(self, db: Client, actor_id: Optional[str] = None):
        self.db = db
        self.actor_id = actor_id
        self.users_table = settings.USERS_TABLE
        self.activities_table = settings.USER_ACTIVITIES_TABLE

    def _require_actor(self) -> str:
        if not self.actor_id:
            raise NotAuthenticatedError()
        return self.actor_id

    # User management

    async def create_user(self, user_data: UserCreate) -> UserProfile:
        """
        Create a user profile.

        Args:
            user_data: Profile fields; uid defaults to a new identifier

        Returns:
            The stored profile
        """
        actor_id = self._require_actor()
        now = utc_now()
        profile = UserProfile(
            **user_data.model_dump(exclude_none=True, exclude={"uid"}),
            uid=user_data.uid or str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            permissions=encode_custom_permissions([]),
        )

        try:
            response = self.db.table(self.users_table).insert(profile.to_record()).execute()
        except Exception as e:
            logger.error("Error creating user %s: %s", user_data.email, e)
            raise DatabaseOperationError("Failed to create user")

        if response.data:
            profile = row_to_profile(response.data[0])

        await self.log_activity(
            user_id=actor_id,
            action_type="create",
            resource_type="user",
            resource_id=profile.uid,
            description=f"Created user: {profile.full_name}",
        )
        return profile

    async def get_all_users(self, limit: int = 50) -> UserListResponse:
        try:
            response = (
                self.db.table(self.users_table)
                .select("*")
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("Error fetching users: %s", e)
            raise DatabaseOperationError("Failed to fetch users")

        rows = response.data or []
        users = rows_to_profiles(rows)
        next_cursor = users[-1].created_at if users and len(rows) == limit else None
        return UserListResponse(users=users, next_cursor=next_cursor)

    async def get_user_by_id(self, user_id: str) -> Optional[UserProfile]:
        """
        Fetch a profile by identity.

        Returns:
            The profile, or None if no row matches

        Raises:
            DatabaseOperationError: If the table store call fails
        """
        try:
            response = (
                self.db.table(self.users_table)
                .select("*")
                .eq("uid", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("Error fetching user %s: %s", user_id, e)
            raise DatabaseOperationError("Failed to fetch user")

        if not response.data:
            return None
        return row_to_profile(response.data[0])

    async def get_users_by_role(self, role: Role, limit: int = 20) -> list[UserProfile]:
        return await self._get_users_where("role", role.value, limit)

    async def get_users_by_department(
        self, department: Department, limit: int = 20
    ) -> list[UserProfile]:
        return await self._get_users_where("department", department.value, limit)

    async def _get_users_where(
        self, column: str, value: str, limit: int
    ) -> list[UserProfile]:
        try:
            response = (
                self.db.table(self.users_table)
                .select("*")
                .eq(column, value)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("Error fetching users by %s=%s: %s", column, value, e)
            raise DatabaseOperationError(f"Failed to fetch users by {column}")

        return rows_to_profiles(response.data or [])

    async def update_user(self, user_id: str, updates: UserUpdate) -> UserProfile:
        actor_id = self._require_actor()
        data: dict[str, Any] = updates.model_dump(mode="json", exclude_none=True)
        if not data:
            raise InvalidDataError("At least one field must be provided for update")

        profile = await self._update_record(user_id, data)

        await self.log_activity(
            user_id=actor_id,
            action_type="update",
            resource_type="user",
            resource_id=user_id,
            description="Updated user profile",
        )
        return profile

    async def _update_record(self, user_id: str, data: dict[str, Any]) -> UserProfile:
        data["updated_at"] = utc_now()
        try:
            response = (
                self.db.table(self.users_table)
                .update(data)
                .eq("uid", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("Error updating user %s: %s", user_id, e)
            raise DatabaseOperationError("Failed to update user")

        if not response.data:
            raise UserNotFoundError()
        return row_to_profile(response.data[0])

    async def touch_last_login(self, user_id: str) -> UserProfile:
        """Record a login without writing an activity entry."""
        return await self._update_record(user_id, {"last_login": utc_now()})

    async def delete_user(self, user_id: str) -> None:
        actor_id = self._require_actor()
        try:
            response = (
                self.db.table(self.users_table).delete().eq("uid", user_id).execute()
            )
        except Exception as e:
            logger.error("Error deleting user %s: %s", user_id, e)
            raise DatabaseOperationError("Failed to delete user")

        if not response.data:
            raise UserNotFoundError()

        await self.log_activity(
            user_id=actor_id,
            action_type="delete",
            resource_type="user",
            resource_id=user_id,
            description="Deleted user",
        )

    # Custom permission overrides

    async def grant_permission(self, user_id: str, permission: str) -> UserProfile:
        return await self._set_custom_permission(user_id, permission, granted=True)

    async def revoke_permission(self, user_id: str, permission: str) -> UserProfile:
        return await self._set_custom_permission(user_id, permission, granted=False)

    async def _set_custom_permission(
        self, user_id: str, permission: str, granted: bool
    ) -> UserProfile:
        actor_id = self._require_actor()
        parsed = parse_permission(permission)
        if parsed is None:
            raise InvalidDataError(f"Unknown permission: {permission}")

        user = await self.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError()

        current: set[Permission] = set(parse_custom_permissions(user.permissions))
        if granted:
            current.add(parsed)
        else:
            current.discard(parsed)

        profile = await self._update_record(
            user_id, {"permissions": encode_custom_permissions(current)}
        )

        verb = "Granted" if granted else "Revoked"
        await self.log_activity(
            user_id=actor_id,
            action_type="update",
            resource_type="permission",
            resource_id=user_id,
            description=f"{verb} {parsed.value} permission",
        )
        return profile

    # Activity logging

    async def log_activity(
        self,
        user_id: str,
        action_type: ActivityAction,
        resource_type: str,
        description: str,
        resource_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[str] = None,
    ) -> None:
        """Append to the activity log. Failures are logged, never raised."""
        try:
            activity = UserActivity(
                uid=self.actor_id or user_id,
                user_id=user_id,
                action_type=action_type,
                resource_type=resource_type,
                resource_id=resource_id,
                description=description,
                ip_address=ip_address or "unknown",
                user_agent=user_agent or "unknown",
                timestamp=utc_now(),
                metadata=metadata,
            )
            self.db.table(self.activities_table).insert(
                activity.model_dump(mode="json", exclude_none=True)
            ).execute()
        except Exception as e:
            logger.error("Error logging activity for user %s: %s", user_id, e)

    async def get_user_activities(
        self, user_id: str, limit: int = 50
    ) -> list[UserActivity]:
        try:
            response = (
                self.db.table(self.activities_table)
                .select("*")
                .eq("user_id", user_id)
                .order("timestamp", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("Error fetching activities for user %s: %s", user_id, e)
            raise DatabaseOperationError("Failed to fetch user activities")

        return [UserActivity.model_validate(row) for row in response.data or []]

    async def get_all_activities(self, limit: int = 100) -> list[UserActivity]:
        try:
            response = (
                self.db.table(self.activities_table)
                .select("*")
                .order("timestamp", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("Error fetching activities: %s", e)
            raise DatabaseOperationError("Failed to fetch activities")

        return [UserActivity.model_validate(row) for row in response.data or []]

    # Search and statistics

    async def search_users(self, search_term: str) -> list[UserProfile]:
        """Case-insensitive match on name, email, department and role."""
        result = await self.get_all_users(limit=100)
        term = search_term.lower()
        return [
            user
            for user in result.users
            if term in user.first_name.lower()
            or term in user.last_name.lower()
            or term in user.email.lower()
            or term in user.department.value
            or term in user.role.value
        ]

    async def get_user_stats(self) -> UserStats:
        result = await self.get_all_users(limit=1000)
        stats = UserStats(total=len(result.users))
        for user in result.users:
            role = user.role.value
            department = user.department.value
            status = user.status.value
            stats.by_role[role] = stats.by_role.get(role, 0) + 1
            stats.by_department[department] = (
                stats.by_department.get(department, 0) + 1
            )
            stats.by_status[status] = stats.by_status.get(status, 0) + 1
        return stats
