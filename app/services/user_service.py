"""
User Service

Store operations on user accounts, plus the administrative actions that
wrap them. Every ``admin_*`` function loads the target, evaluates the
matching policy and only then calls the store operation, so a denied
action never reaches a write.
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.roles import DEFAULT_ROLE_PERMISSIONS, RoleName
from app.database import transaction
from app.exceptions import (
    ConflictError,
    DuplicateResourceError,
    RoleNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from app.models.content import Content
from app.models.user import Role, User
from app.policies import authorize
from app.schemas.user import RoleUpdate, UserCreate, UserResponse, UserUpdate
from app.utils.validation import coerce

logger = logging.getLogger(__name__)


async def _get_role(db: AsyncSession, role_name: str) -> Role:
    role = await db.scalar(select(Role).where(Role.name == role_name))
    if role is None:
        raise RoleNotFoundError(role_name)
    return role


async def _get_user_or_raise(db: AsyncSession, user_id: int) -> User:
    user = await db.scalar(select(User).where(User.id == user_id).execution_options(populate_existing=True))
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def ensure_default_roles(db: AsyncSession) -> list[str]:
    """Insert any missing role of the closed role set. Returns the names created."""
    async with transaction(db, "ensure_default_roles"):
        existing = set((await db.execute(select(Role.name))).scalars().all())
        created = []
        for role_name, permissions in DEFAULT_ROLE_PERMISSIONS.items():
            if role_name.value not in existing:
                db.add(Role(name=role_name.value, permissions=list(permissions)))
                created.append(role_name.value)
    if created:
        logger.info("Seeded roles: %s", ", ".join(created))
    return created


# ── Store operations ──────────────────────────────────────────────────────────


async def get_all_users(db: AsyncSession) -> list[UserResponse]:
    async with transaction(db, "get_all_users"):
        users = (await db.execute(select(User).order_by(User.id))).scalars().all()
    return [UserResponse.model_validate(user) for user in users]


async def find_user(db: AsyncSession, user_id: int) -> User | None:
    """Load a user with its role, or None. Used to hand targets to policies."""
    async with transaction(db, "find_user"):
        user = await db.scalar(select(User).where(User.id == user_id).execution_options(populate_existing=True))
    return user


async def get_user_by_id(db: AsyncSession, user_id: int) -> UserResponse:
    async with transaction(db, "get_user_by_id"):
        user = await _get_user_or_raise(db, user_id)
    return UserResponse.model_validate(user)


async def create_user(db: AsyncSession, data: UserCreate | Mapping[str, Any]) -> UserResponse:
    user_data = coerce(UserCreate, data)

    async with transaction(db, "create_user"):
        if await db.scalar(select(User.id).where(User.email == user_data.email)) is not None:
            raise DuplicateResourceError("User", "email", user_data.email)
        role = await _get_role(db, user_data.role.value)
        user = User(username=user_data.username, email=user_data.email, role=role)
        db.add(user)
        await db.flush()

    logger.info("User created: user_id=%d", user.id, extra={"user_id": user.id})
    return UserResponse.model_validate(user)


async def update_user_by_id(db: AsyncSession, user_id: int, data: UserUpdate | Mapping[str, Any]) -> UserResponse:
    """Partial update: only the fields present in ``data`` change."""
    changes = coerce(UserUpdate, data).model_dump(exclude_unset=True)
    for field in ("username", "email"):
        if field in changes and changes[field] is None:
            raise ValidationError(f"'{field}' cannot be null", field=field)

    async with transaction(db, "update_user"):
        user = await _get_user_or_raise(db, user_id)
        new_email = changes.get("email")
        if new_email and new_email != user.email:
            taken = await db.scalar(select(User.id).where(User.email == new_email, User.id != user_id))
            if taken is not None:
                raise DuplicateResourceError("User", "email", new_email)
        for field, value in changes.items():
            setattr(user, field, value)

    logger.info("User updated: user_id=%d", user_id, extra={"user_id": user_id})
    return UserResponse.model_validate(user)


async def delete_user_by_id(db: AsyncSession, user_id: int) -> UserResponse:
    """Delete a user account. Users that still author content cannot be deleted."""
    async with transaction(db, "delete_user"):
        user = await _get_user_or_raise(db, user_id)
        authored = await db.scalar(select(func.count()).select_from(Content).where(Content.author_id == user_id))
        if authored:
            raise ConflictError(
                "User still authors content and cannot be deleted",
                details={"user_id": user_id, "content_count": authored},
            )
        deleted = UserResponse.model_validate(user)
        await db.delete(user)

    logger.info("User deleted: user_id=%d", user_id, extra={"user_id": user_id})
    return deleted


async def change_role(db: AsyncSession, user_ids: list[int], role: RoleName | str) -> list[UserResponse]:
    """Assign ``role`` to every user in ``user_ids``; all of them or none."""
    request = coerce(RoleUpdate, {"user_ids": user_ids, "role": role})

    async with transaction(db, "change_role"):
        new_role = await _get_role(db, request.role.value)
        users = (
            (await db.execute(select(User).where(User.id.in_(request.user_ids)).order_by(User.id))).scalars().all()
        )
        missing = sorted(set(request.user_ids) - {user.id for user in users})
        if missing:
            raise UserNotFoundError(missing[0] if len(missing) == 1 else missing)
        for user in users:
            user.role = new_role

    logger.info("Role '%s' assigned to users %s", request.role.value, request.user_ids)
    return [UserResponse.model_validate(user) for user in users]


# ── Gated administrative actions ──────────────────────────────────────────────


async def admin_list_users(db: AsyncSession, actor: User) -> list[UserResponse]:
    authorize("view_list_user", actor)
    return await get_all_users(db)


async def admin_get_user(db: AsyncSession, actor: User, user_id: int) -> UserResponse:
    target = await find_user(db, user_id)
    authorize("view_user", actor, target)
    return UserResponse.model_validate(target)


async def admin_create_user(db: AsyncSession, actor: User, data: UserCreate | Mapping[str, Any]) -> UserResponse:
    authorize("create_user", actor)
    return await create_user(db, data)


async def admin_update_user(
    db: AsyncSession, actor: User, user_id: int, data: UserUpdate | Mapping[str, Any]
) -> UserResponse:
    target = await find_user(db, user_id)
    authorize("update_user", actor, target)
    return await update_user_by_id(db, user_id, data)


async def admin_delete_user(db: AsyncSession, actor: User, user_id: int) -> UserResponse:
    target = await find_user(db, user_id)
    authorize("delete_user", actor, target)
    return await delete_user_by_id(db, user_id)


async def admin_change_users_role(
    db: AsyncSession, actor: User, user_ids: list[int], role: RoleName | str
) -> list[UserResponse]:
    authorize("change_users_role", actor)
    return await change_role(db, user_ids, role)
