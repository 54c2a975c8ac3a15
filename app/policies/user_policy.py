"""
User administration policy.

One pure check per administrative action. Each check receives the acting
user and, where the action targets someone, the already-loaded target
user. Checks never touch the store and never raise: a missing actor or
target is a denial.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.config import settings
from app.constants.roles import RoleName, role_at_least

if TYPE_CHECKING:
    from app.models.user import User


def _role_name(user: User) -> str | None:
    role = getattr(user, "role", None)
    return getattr(role, "name", None)


def _is_self(actor: User | None, target: User | None) -> bool:
    if actor is None or target is None:
        return False
    return actor.id is not None and actor.id == target.id


def can_view_list_user(actor: User | None) -> bool:
    if actor is None:
        return False
    return _role_name(actor) in settings.user_list_roles


def can_view_user(actor: User | None, target: User | None = None) -> bool:
    return _is_self(actor, target)


def can_create_user(actor: User | None) -> bool:
    # Open registration; authentication is established before any check runs.
    return True


def can_update_user(actor: User | None, target: User | None = None) -> bool:
    return _is_self(actor, target)


def can_delete_user(actor: User | None, target: User | None = None) -> bool:
    return _is_self(actor, target)


def can_change_users_role(actor: User | None) -> bool:
    if actor is None:
        return False
    return role_at_least(_role_name(actor), RoleName.ADMIN)


USER_POLICY = {
    "view_list_user": can_view_list_user,
    "view_user": can_view_user,
    "create_user": can_create_user,
    "update_user": can_update_user,
    "delete_user": can_delete_user,
    "change_users_role": can_change_users_role,
}

# Actions whose check compares the actor against a target user
TARGETED_ACTIONS = frozenset({"view_user", "update_user", "delete_user"})
