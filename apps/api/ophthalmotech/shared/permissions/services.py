import json
import logging
from typing import Iterable

from ophthalmotech.domains.users.models import Role, UserProfile, UserStatus

from .models import (
    DEPARTMENT_PERMISSIONS,
    ROLE_LEVELS,
    ROLE_PERMISSIONS,
    Permission,
    parse_permission,
    parse_role,
)

logger = logging.getLogger(__name__)


def parse_custom_permissions(raw: str | list[str] | None) -> frozenset[Permission]:
    """
    Decode a user's custom permission overrides.

    Malformed payloads are treated as "no custom permissions" and entries
    that are not in the catalog are skipped.

    Args:
        raw: JSON-encoded list of permission identifiers (or an already
            decoded list)

    Returns:
        The recognised permissions
    """
    if not raw:
        return frozenset()

    values: object = raw
    if isinstance(raw, str):
        try:
            values = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed custom permissions: %r", raw)
            return frozenset()

    if not isinstance(values, list):
        logger.warning("Ignoring custom permissions that are not a list: %r", raw)
        return frozenset()

    parsed = (parse_permission(value) for value in values)
    return frozenset(p for p in parsed if p is not None)


def encode_custom_permissions(permissions: Iterable[Permission | str]) -> str:
    """Encode overrides as a sorted, de-duplicated JSON list."""
    parsed = {parse_permission(p) for p in permissions}
    return json.dumps(sorted(p.value for p in parsed if p is not None))


def effective_permissions(user: UserProfile) -> frozenset[Permission]:
    """
    Compute everything a user may do.

    Args:
        user: The user profile to resolve

    Returns:
        Role, department and custom permissions combined; empty unless the
        account is active
    """
    if user.status != UserStatus.active:
        return frozenset()

    return (
        ROLE_PERMISSIONS.get(user.role, frozenset())
        | DEPARTMENT_PERMISSIONS.get(user.department, frozenset())
        | parse_custom_permissions(user.permissions)
    )


def has_permission(user: UserProfile, permission: Permission | str) -> bool:
    """
    Check if a user holds a specific permission.

    Args:
        user: The user profile to check
        permission: The permission to validate

    Returns:
        True if the permission is in the user's effective set, False otherwise
    """
    parsed = parse_permission(permission)
    if parsed is None:
        return False
    return parsed in effective_permissions(user)


def has_all_permissions(
    user: UserProfile, permissions: Iterable[Permission | str]
) -> bool:
    """True when every requested permission is held (vacuously true)."""
    return not missing_permissions(user, permissions)


def has_any_permission(
    user: UserProfile, permissions: Iterable[Permission | str]
) -> bool:
    """True when at least one requested permission is held.

    An empty request cannot be satisfied and returns False.
    """
    granted = effective_permissions(user)
    return any(parse_permission(p) in granted for p in permissions)


def missing_permissions(
    user: UserProfile, permissions: Iterable[Permission | str]
) -> list[Permission | str]:
    """Requested permissions the user does not hold, in request order."""
    granted = effective_permissions(user)
    return [p for p in permissions if parse_permission(p) not in granted]


def has_role_level(user_role: Role | str, min_role: Role | str) -> bool:
    """
    Check a role against a minimum role level.

    Args:
        user_role: The user's role
        min_role: The lowest role that should pass

    Returns:
        True if user_role ranks at or above min_role; False if either role is
        unknown
    """
    role = parse_role(user_role)
    minimum = parse_role(min_role)
    if role is None or minimum is None:
        return False
    return ROLE_LEVELS[role] >= ROLE_LEVELS[minimum]
