"""User lookups against the account projection."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from bomber.db.models import User
from bomber.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def require_user(db: AsyncSession, user_id: int) -> User:
    """
    Fetch a user or fail.

    Raises:
        NotFoundError: If no such user exists.
    """
    user = await get_user_by_id(db, user_id)
    if user is None:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)
    return user


async def get_or_create_user(
    db: AsyncSession,
    username: str,
    display_name: str | None = None,
) -> tuple[User, bool]:
    """Return ``(user, created)`` for a username, creating the account row if needed."""
    username = username.strip()
    if not username:
        msg = "username must not be empty"
        raise ValidationError(msg)

    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is not None:
        return user, False

    user = User(username=username, display_name=display_name, created_at=datetime.now(timezone.utc))
    try:
        async with db.begin_nested():
            db.add(user)
    except IntegrityError:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one(), False

    logger.info("user_created", user_id=user.id, username=username)
    return user, True
