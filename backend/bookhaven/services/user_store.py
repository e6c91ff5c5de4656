"""User profile store and the shared unit-of-work helper."""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookhaven.models.user import User
from bookhaven.services.errors import Internal

logger = logging.getLogger(__name__)


async def get_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> User | None:
    """Fetch a user by id, optionally locking the row and refreshing it."""
    query = select(User).where(User.id == user_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


@asynccontextmanager
async def unit_of_work(db: AsyncSession, action: str) -> AsyncIterator[None]:
    """Commit everything written in the block, or roll all of it back.

    Database errors are logged and re-raised as ``Internal`` so that no driver
    detail reaches the client.
    """
    try:
        yield
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("%s failed; transaction rolled back", action)
        raise Internal("Server error") from exc
