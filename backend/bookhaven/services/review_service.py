"""Review aggregation — one review per user and property.

Appending a review goes through ``property_store.save_property`` so the
property's ``average_rating`` and ``review_count`` are recomputed in the same
transaction that records the review and its ``User.reviews_given`` mirror.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from bookhaven.config import settings
from bookhaven.models.property import Property
from bookhaven.services.booking_input import parse_uuid
from bookhaven.services.errors import InvalidArgument, NotFound
from bookhaven.services.locks import property_locks, user_locks
from bookhaven.services.notification_service import Notice
from bookhaven.services.property_store import get_property, save_property
from bookhaven.services.user_store import get_user, unit_of_work

logger = logging.getLogger(__name__)


def _parse_rating(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument("Rating must be a number between 1 and 5")
    if isinstance(value, float) and not value.is_integer():
        raise InvalidArgument("Rating must be a number between 1 and 5")
    rating = int(value)
    if not 1 <= rating <= 5:
        raise InvalidArgument("Rating must be a number between 1 and 5")
    return rating


def has_reviewed(prop: Property, user_id: uuid.UUID) -> bool:
    target = str(user_id)
    return any(review.get("user_id") == target for review in prop.reviews or [])


async def post_review(
    db: AsyncSession,
    caller_id: uuid.UUID,
    property_id: Any,
    *,
    rating: Any,
    comment: str | None = None,
) -> Notice:
    """Add the caller's review to a property and return the owner notice."""
    user = await get_user(db, caller_id)
    if user is None:
        raise NotFound("User not found")

    score = _parse_rating(rating)
    text = (comment or "").strip()
    if len(text) > settings.review_comment_max_length:
        raise InvalidArgument(f"Comment cannot exceed {settings.review_comment_max_length} characters")

    parsed_id = parse_uuid(property_id)
    if parsed_id is None:
        raise InvalidArgument("Invalid Property ID")

    async with property_locks.hold(parsed_id), user_locks.hold(caller_id):
        prop = await get_property(db, parsed_id, for_update=True)
        if prop is None:
            raise NotFound("Property not found")

        if has_reviewed(prop, caller_id):
            raise InvalidArgument("You have already reviewed this property")

        async with unit_of_work(db, "post_review"):
            prop.reviews = [
                *(prop.reviews or []),
                {
                    "user_id": str(caller_id),
                    "username": user.username,
                    "rating": score,
                    "comment": text,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                },
            ]
            await save_property(db, prop)

            user = await get_user(db, caller_id, for_update=True) or user
            user.reviews_given = [
                *(user.reviews_given or []),
                {"property_id": str(prop.id), "rating": score, "comment": text},
            ]
            await db.flush()

    logger.info(
        "User %s reviewed property %s (rating=%d, average=%.2f over %d)",
        caller_id,
        prop.id,
        score,
        prop.average_rating,
        prop.review_count,
    )
    message = f"{user.username} has reviewed your property with a rating of {score}"
    if text:
        message += f' and commented: "{text}"'
    return Notice(
        user_id=prop.owner_id,
        message=message,
        notification_type="review",
    )
