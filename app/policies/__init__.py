"""
Authorization policies.

``allows`` evaluates a named check and returns a boolean. ``authorize``
is the early-rejection helper for callers: it raises AuthorizationError
on denial so nothing past it runs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.exceptions import AuthorizationError

from .user_policy import (
    TARGETED_ACTIONS,
    USER_POLICY,
    can_change_users_role,
    can_create_user,
    can_delete_user,
    can_update_user,
    can_view_list_user,
    can_view_user,
)

if TYPE_CHECKING:
    from app.models.user import User

logger = logging.getLogger(__name__)


def allows(action: str, actor: User | None, target: User | None = None) -> bool:
    """Evaluate the check registered for ``action``; unknown actions are denied."""
    check = USER_POLICY.get(action)
    if check is None:
        logger.warning("No policy registered for action '%s'", action)
        return False
    if action in TARGETED_ACTIONS:
        return check(actor, target)
    return check(actor)


def authorize(action: str, actor: User | None, target: User | None = None) -> None:
    """Raise AuthorizationError unless ``actor`` may perform ``action``."""
    if not allows(action, actor, target):
        logger.info(
            "Authorization denied: action=%s actor=%s target=%s",
            action,
            getattr(actor, "id", None),
            getattr(target, "id", None),
            extra={"actor_id": getattr(actor, "id", None), "user_id": getattr(target, "id", None)},
        )
        raise AuthorizationError(required_permission=action)


__all__ = [
    "USER_POLICY",
    "allows",
    "authorize",
    "can_change_users_role",
    "can_create_user",
    "can_delete_user",
    "can_update_user",
    "can_view_list_user",
    "can_view_user",
]
