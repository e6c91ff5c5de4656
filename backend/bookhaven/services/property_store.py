"""Property store — loading and saving properties.

Every write goes through :func:`save_property`, which recomputes the derived
rating fields from the embedded ``reviews`` list regardless of what changed.
"""

import logging
import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookhaven.models.property import Property

logger = logging.getLogger(__name__)


def recompute_ratings(reviews: Sequence[dict[str, Any]]) -> tuple[float, int]:
    """Return ``(average_rating, review_count)`` for a list of reviews.

    An empty list yields ``(0, 0)``.
    """
    if not reviews:
        return 0.0, 0
    total = sum(review["rating"] for review in reviews)
    return total / len(reviews), len(reviews)


async def get_property(
    db: AsyncSession,
    property_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> Property | None:
    """Fetch a property by id.

    With ``for_update=True`` the row is locked until the transaction ends and
    any copy already in the identity map is refreshed from the database.
    """
    query = select(Property).where(Property.id == property_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def save_property(db: AsyncSession, prop: Property) -> Property:
    """Recompute derived rating fields and flush the property."""
    prop.average_rating, prop.review_count = recompute_ratings(prop.reviews or [])
    db.add(prop)
    await db.flush()
    logger.debug(
        "Saved property %s (average_rating=%.2f, review_count=%d)",
        prop.id,
        prop.average_rating,
        prop.review_count,
    )
    return prop
