"""Notification dispatcher — best-effort delivery to a user's inbox.

Delivery failures are logged and never propagate to the operation that
triggered them. Routes schedule :func:`dispatch_notification` as a background
task so the caller's response does not wait on it.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bookhaven.config import settings
from bookhaven.models.user import User
from bookhaven.services.locks import user_locks
from bookhaven.services.user_store import get_user, unit_of_work

logger = logging.getLogger(__name__)

VALID_TYPES = {"info", "booking", "cancellation", "review", "warning"}


@dataclass(frozen=True)
class Notice:
    """A notification to deliver once the triggering transaction has committed."""

    user_id: uuid.UUID
    message: str
    notification_type: str = "info"


def build_notification(message: str, notification_type: str = "info") -> dict[str, Any]:
    """Build an inbox entry. Raises ``ValueError`` for an empty message."""
    if not message or not message.strip():
        raise ValueError("Notification message cannot be empty.")
    if notification_type not in VALID_TYPES:
        notification_type = "info"
    return {
        "id": str(uuid.uuid4()),
        "message": message.strip()[: settings.notification_max_length],
        "type": notification_type,
        "read": False,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


async def notify(
    db: AsyncSession,
    user_id: uuid.UUID,
    message: str,
    notification_type: str = "info",
) -> bool:
    """Append a notification to ``user_id``'s inbox within ``db``.

    Only the newest ``settings.notification_limit`` entries are kept.
    Returns ``False`` (after logging) when the user does not exist or the
    message is empty.
    """
    try:
        entry = build_notification(message, notification_type)
    except ValueError as exc:
        logger.error("Failed to send notification to user %s: %s", user_id, exc)
        return False

    user = await get_user(db, user_id, for_update=True)
    if user is None:
        logger.warning("User %s not found; notification dropped", user_id)
        return False

    inbox = [*(user.notifications or []), entry]
    user.notifications = inbox[-settings.notification_limit :]
    await db.flush()
    return True


async def dispatch_notification(
    session_factory: async_sessionmaker[AsyncSession],
    notice: Notice,
) -> None:
    """Deliver ``notice`` in its own session, swallowing any failure."""
    try:
        async with user_locks.hold(notice.user_id), session_factory() as session:
            delivered = await notify(session, notice.user_id, notice.message, notice.notification_type)
            if delivered:
                await session.commit()
    except Exception:
        logger.exception("Failed to send notification to user %s", notice.user_id)


def unread_count(user: User) -> int:
    return sum(1 for entry in user.notifications or [] if not entry.get("read"))


async def mark_all_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Mark every notification of ``user_id`` as read and commit.

    Returns how many were unread.
    """
    async with user_locks.hold(user_id):
        user = await get_user(db, user_id, for_update=True)
        if user is None:
            return 0
        changed = unread_count(user)
        async with unit_of_work(db, "mark_all_read"):
            user.notifications = [{**entry, "read": True} for entry in user.notifications or []]
            await db.flush()
    return changed
