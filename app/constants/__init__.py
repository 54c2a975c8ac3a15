"""Constants package for the CMS content core."""

from .roles import (
    DEFAULT_ROLE,
    DEFAULT_ROLE_PERMISSIONS,
    ROLE_HIERARCHY,
    RoleName,
    role_at_least,
    role_level,
)

__all__ = [
    "RoleName",
    "DEFAULT_ROLE",
    "DEFAULT_ROLE_PERMISSIONS",
    "ROLE_HIERARCHY",
    "role_at_least",
    "role_level",
]
