"""
User directory: list, fetch, self-service profile update and deletion.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.user import User
from app.schemas.user import UserUpdate
from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.logging import get_logger

logger = get_logger(__name__)


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id.asc()))
    return list(result.scalars().all())


async def get_user(db: AsyncSession, user_id: int, include_events: bool = False) -> User:
    """Get a user by ID, optionally with the events they attend."""
    query = select(User).where(User.id == user_id).execution_options(populate_existing=True)
    if include_events:
        query = query.options(selectinload(User.events))
    result = await db.execute(query)
    user = result.scalar_one_or_none()

    if not user:
        raise NotFoundError(f"User with id {user_id} was not found")
    return user


def _ensure_self(user_id: int, caller: User, action: str) -> None:
    if user_id != caller.id:
        logger.warning("user_access_denied", user_id=user_id, caller_id=caller.id, action=action)
        raise ForbiddenError(f"You can only {action} your own account")


async def update_user(db: AsyncSession, user_id: int, user_data: UserUpdate, caller: User) -> User:
    user = await get_user(db, user_id)
    _ensure_self(user_id, caller, "update")

    changes = user_data.model_dump(exclude_unset=True)
    for key in ("display_name", "is_alive"):
        if changes.get(key, ...) is None:
            changes.pop(key)
    for key, value in changes.items():
        setattr(user, key, value)
    await db.flush()

    logger.info("user_updated", user_id=user_id, fields=sorted(changes))
    return user


async def delete_user(db: AsyncSession, user_id: int, caller: User) -> None:
    """Delete the caller's account. Memberships and bookings go with it."""
    user = await get_user(db, user_id)
    _ensure_self(user_id, caller, "delete")

    await db.delete(user)
    await db.flush()
    logger.info("user_deleted", user_id=user_id)
