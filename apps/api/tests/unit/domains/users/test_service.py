"""
Tests for UserService in domains/users/service.py
"""

import json
from unittest.mock import Mock

import pytest
from fastapi import HTTPException

from ophthalmotech.domains.users.models import (
    Department,
    Role,
    UserCreate,
    UserStatus,
    UserUpdate,
)
from ophthalmotech.domains.users.service import UserService
from ophthalmotech.shared.exceptions import (
    DatabaseOperationError,
    InvalidDataError,
    NotAuthenticatedError,
    UserNotFoundError,
)
from ophthalmotech.shared.permissions.access import (
    AccessRequest,
    AccessService,
    DenialReason,
)
from ophthalmotech.shared.permissions.models import Permission
from tests.fixtures.user_fixtures import make_profile
from tests.helpers.supabase_mocks import make_query, make_supabase


def _row(**kwargs) -> dict:
    return make_profile(**kwargs).to_record()


class TestUserLookup:
    """Test reading user profiles."""

    @pytest.mark.asyncio
    async def test_get_user_by_id_found(self):
        users = make_query([_row(role=Role.manager)])
        service = UserService(make_supabase(users=users))

        profile = await service.get_user_by_id("test-user-id-123")

        assert profile is not None
        assert profile.role is Role.manager
        users.eq.assert_called_with("uid", "test-user-id-123")

    @pytest.mark.asyncio
    async def test_get_user_by_id_not_found(self):
        service = UserService(make_supabase(users=make_query([])))
        assert await service.get_user_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_get_user_by_id_database_error(self):
        users = make_query()
        users.execute.side_effect = RuntimeError("connection reset")
        service = UserService(make_supabase(users=users))

        with pytest.raises(DatabaseOperationError):
            await service.get_user_by_id("test-user-id-123")

    @pytest.mark.asyncio
    async def test_get_all_users_sets_cursor_on_full_page(self):
        rows = [
            _row(uid=f"user-{i}", created_at=f"2024-01-0{i + 1}T00:00:00+00:00")
            for i in range(2)
        ]
        service = UserService(make_supabase(users=make_query(rows)))

        full = await service.get_all_users(limit=2)
        partial = await service.get_all_users(limit=5)

        assert len(full.users) == 2
        assert full.next_cursor == "2024-01-02T00:00:00+00:00"
        assert partial.next_cursor is None

    @pytest.mark.asyncio
    async def test_search_users(self):
        rows = [
            _row(uid="1", first_name="Ada", department=Department.it),
            _row(uid="2", first_name="Grace", email="grace@clinic.org"),
        ]
        service = UserService(make_supabase(users=make_query(rows)))

        assert [u.uid for u in await service.search_users("ADA")] == ["1"]
        assert [u.uid for u in await service.search_users("clinic")] == ["2"]
        assert [u.uid for u in await service.search_users("it")] == ["1"]

    @pytest.mark.asyncio
    async def test_get_user_stats(self):
        rows = [
            _row(uid="1", role=Role.admin, department=Department.it),
            _row(uid="2", role=Role.viewer, status=UserStatus.suspended),
            _row(uid="3", role=Role.viewer),
        ]
        service = UserService(make_supabase(users=make_query(rows)))

        stats = await service.get_user_stats()

        assert stats.total == 3
        assert stats.by_role == {"admin": 1, "viewer": 2}
        assert stats.by_department == {"it": 1, "administration": 2}
        assert stats.by_status == {"active": 2, "suspended": 1}


class TestStoredRowDegradation:
    """Test that malformed stored rows degrade instead of failing checks."""

    @staticmethod
    def _check(row: dict, permission: Permission, user_session):
        service = UserService(make_supabase(users=make_query([row])))
        access = AccessService(service.get_user_by_id)
        return access.check_access(user_session, AccessRequest(permission=permission))

    @pytest.mark.asyncio
    async def test_jsonb_permission_list_is_honoured(self, user_session):
        row = {**_row(role=Role.viewer), "permissions": ["users:delete", 7]}

        decision = await self._check(row, Permission.USERS_DELETE, user_session)

        assert decision.allowed is True
        assert decision.profile.permissions == ["users:delete"]

    @pytest.mark.parametrize("raw", [{"bad": 1}, 42, ["not-a-permission"]])
    @pytest.mark.asyncio
    async def test_malformed_permissions_mean_no_custom_grants(
        self, raw, user_session
    ):
        admin_row = {**_row(role=Role.admin), "permissions": raw}
        viewer_row = {**_row(role=Role.viewer), "permissions": raw}

        admin = await self._check(admin_row, Permission.USERS_READ, user_session)
        viewer = await self._check(viewer_row, Permission.USERS_DELETE, user_session)

        assert admin.allowed is True
        assert viewer.allowed is False
        assert viewer.denial is DenialReason.MISSING_PERMISSIONS

    @pytest.mark.parametrize("column", ["role", "department", "status"])
    @pytest.mark.asyncio
    async def test_unknown_identifier_restricts_profile(self, column, user_session):
        row = {**_row(role=Role.admin), column: "superuser"}

        decision = await self._check(row, Permission.USERS_READ, user_session)

        assert decision.allowed is False
        assert decision.denial is DenialReason.INACTIVE_ACCOUNT
        assert decision.profile.uid == "test-user-id-123"
        assert decision.profile.role is Role.viewer
        assert decision.profile.permissions is None

    @pytest.mark.asyncio
    async def test_list_readers_skip_invalid_rows(self):
        rows = [
            _row(uid="1", role=Role.admin),
            {**_row(uid="2"), "role": "superuser"},
            _row(uid="3", created_at="2024-01-03T00:00:00+00:00"),
        ]
        service = UserService(make_supabase(users=make_query(rows)))

        listing = await service.get_all_users(limit=3)
        stats = await service.get_user_stats()
        by_role = await service.get_users_by_role(Role.viewer)

        assert [u.uid for u in listing.users] == ["1", "3"]
        assert listing.next_cursor == "2024-01-03T00:00:00+00:00"
        assert stats.total == 2
        assert stats.by_role == {"admin": 1, "viewer": 1}
        assert [u.uid for u in by_role] == ["1", "3"]


class TestUserMutations:
    """Test creating, updating and deleting users."""

    @pytest.mark.asyncio
    async def test_create_user_requires_actor(self):
        service = UserService(make_supabase())
        with pytest.raises(NotAuthenticatedError):
            await service.create_user(
                UserCreate(email="new@example.com", first_name="New")
            )

    @pytest.mark.asyncio
    async def test_create_user_inserts_and_logs(self):
        users = make_query([])
        activities = make_query([])
        service = UserService(
            make_supabase(users=users, user_activities=activities),
            actor_id="admin-1",
        )

        profile = await service.create_user(
            UserCreate(email="new@example.com", first_name="New", role=Role.technician)
        )

        record = users.insert.call_args.args[0]
        assert record["email"] == "new@example.com"
        assert record["role"] == "technician"
        assert record["permissions"] == "[]"
        assert record["uid"] == profile.uid
        activity = activities.insert.call_args.args[0]
        assert activity["user_id"] == "admin-1"
        assert activity["action_type"] == "create"
        assert activity["description"] == "Created user: New"

    @pytest.mark.asyncio
    async def test_update_user_requires_fields(self):
        service = UserService(make_supabase(), actor_id="admin-1")
        with pytest.raises(InvalidDataError):
            await service.update_user("user-1", UserUpdate())

    @pytest.mark.asyncio
    async def test_update_user(self):
        users = make_query([_row(uid="user-1", role=Role.manager)])
        service = UserService(make_supabase(users=users), actor_id="admin-1")

        profile = await service.update_user("user-1", UserUpdate(role=Role.manager))

        data = users.update.call_args.args[0]
        assert data["role"] == "manager"
        assert "updated_at" in data
        assert profile.role is Role.manager

    @pytest.mark.asyncio
    async def test_update_missing_user(self):
        service = UserService(make_supabase(users=make_query([])), actor_id="a")
        with pytest.raises(UserNotFoundError):
            await service.update_user("nobody", UserUpdate(first_name="X"))

    @pytest.mark.asyncio
    async def test_delete_user(self):
        users = make_query([_row(uid="user-1")])
        service = UserService(make_supabase(users=users), actor_id="admin-1")

        await service.delete_user("user-1")

        users.delete.assert_called_once()
        users.eq.assert_called_with("uid", "user-1")

    @pytest.mark.asyncio
    async def test_delete_missing_user(self):
        service = UserService(make_supabase(users=make_query([])), actor_id="a")
        with pytest.raises(UserNotFoundError):
            await service.delete_user("nobody")


class TestCustomPermissionGrants:
    """Test granting and revoking custom permissions."""

    @pytest.mark.asyncio
    async def test_grant_permission(self):
        users = make_query([_row(uid="user-1", permissions=["ai:chat"])])
        service = UserService(make_supabase(users=users), actor_id="admin-1")

        await service.grant_permission("user-1", "users:delete")

        data = users.update.call_args.args[0]
        assert json.loads(data["permissions"]) == ["ai:chat", "users:delete"]

    @pytest.mark.asyncio
    async def test_revoke_permission(self):
        users = make_query(
            [_row(uid="user-1", permissions=["ai:chat", "users:delete"])]
        )
        service = UserService(make_supabase(users=users), actor_id="admin-1")

        await service.revoke_permission("user-1", "users:delete")

        data = users.update.call_args.args[0]
        assert json.loads(data["permissions"]) == ["ai:chat"]

    @pytest.mark.asyncio
    async def test_unknown_permission_rejected(self):
        service = UserService(make_supabase(), actor_id="admin-1")
        with pytest.raises(HTTPException) as exc_info:
            await service.grant_permission("user-1", "users:fly")
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_grant_to_missing_user(self):
        service = UserService(make_supabase(users=make_query([])), actor_id="a")
        with pytest.raises(UserNotFoundError):
            await service.grant_permission("nobody", "users:delete")


class TestActivityLog:
    """Test the activity log."""

    @pytest.mark.asyncio
    async def test_log_activity_failure_is_swallowed(self):
        activities = make_query()
        activities.execute.side_effect = RuntimeError("insert failed")
        service = UserService(make_supabase(user_activities=activities))

        await service.log_activity(
            user_id="user-1",
            action_type="view",
            resource_type="device",
            description="Viewed device",
        )

    @pytest.mark.asyncio
    async def test_get_user_activities(self):
        row = {
            "user_id": "user-1",
            "action_type": "login",
            "resource_type": "session",
            "description": "Signed in",
            "timestamp": "2024-01-01T00:00:00+00:00",
        }
        activities = make_query([row])
        service = UserService(make_supabase(user_activities=activities))

        result = await service.get_user_activities("user-1", limit=10)

        assert len(result) == 1
        assert result[0].action_type == "login"
        activities.order.assert_called_with("timestamp", desc=True)
        activities.limit.assert_called_with(10)
