"""
Role Constants

This module defines constants for user roles to avoid hardcoded values
throughout the codebase.
"""

from enum import Enum


class RoleName(str, Enum):
    """Enumeration of role names in the system."""

    USER = "user"
    EDITOR = "editor"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


# Default role for new user registrations
DEFAULT_ROLE = RoleName.USER

# Role hierarchy (higher number = more permissions)
ROLE_HIERARCHY = {
    RoleName.USER: 1,
    RoleName.EDITOR: 2,
    RoleName.MANAGER: 3,
    RoleName.ADMIN: 4,
    RoleName.SUPERADMIN: 5,
}

# Permissions seeded for each role
DEFAULT_ROLE_PERMISSIONS = {
    RoleName.USER: [],
    RoleName.EDITOR: ["view_content", "edit_content", "view_users"],
    RoleName.MANAGER: ["view_content", "edit_content", "approve_content"],
    RoleName.ADMIN: ["*"],
    RoleName.SUPERADMIN: ["*"],
}


def role_level(role: str | None) -> int:
    """Hierarchy level of a role name; unknown or missing roles are 0."""
    try:
        return ROLE_HIERARCHY.get(RoleName(role), 0)
    except ValueError:
        return 0


def role_at_least(role: str | None, minimum: RoleName) -> bool:
    """True when ``role`` sits at or above ``minimum`` in the hierarchy."""
    return role_level(role) >= ROLE_HIERARCHY[minimum]
