"""Public property routes — browse listings and post reviews."""

import uuid
from decimal import Decimal

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bookhaven.api.deps import get_caller_id, get_db, get_optional_caller_id, get_session_factory
from bookhaven.config import settings
from bookhaven.models.property import Property
from bookhaven.schemas.auth import MessageResponse
from bookhaven.schemas.property import PropertyListResponse, PropertyResponse, ReviewCreate
from bookhaven.services.booking_input import parse_uuid
from bookhaven.services.errors import InvalidArgument, NotFound
from bookhaven.services.notification_service import dispatch_notification
from bookhaven.services.property_store import get_property
from bookhaven.services.review_service import post_review

router = APIRouter(prefix="/api/v1/properties", tags=["properties"])


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="Browse available properties",
)
async def list_properties(
    location: str | None = Query(None, description="Case-insensitive substring match"),
    property_type: str | None = Query(None),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    guests: int | None = Query(None, ge=1, description="Minimum capacity"),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.page_size_default, ge=1, le=settings.page_size_max),
    db: AsyncSession = Depends(get_db),
    caller_id: uuid.UUID | None = Depends(get_optional_caller_id),
) -> PropertyListResponse:
    """Return paginated listings. A signed-in caller does not see their own."""
    filters = [Property.status != "unavailable"]
    if caller_id is not None:
        filters.append(Property.owner_id != caller_id)
    if location:
        filters.append(func.lower(Property.location).contains(location.lower()))
    if property_type is not None:
        filters.append(Property.property_type == property_type)
    if min_price is not None:
        filters.append(Property.price_per_night >= min_price)
    if max_price is not None:
        filters.append(Property.price_per_night <= max_price)
    if guests is not None:
        filters.append(Property.max_guests >= guests)

    count_query = select(func.count()).select_from(Property).where(*filters)
    total = (await db.execute(count_query)).scalar_one()

    items_query = select(Property).where(*filters).order_by(Property.created_at.desc()).offset(skip).limit(limit)
    items = list((await db.execute(items_query)).scalars().all())

    return PropertyListResponse(
        items=[PropertyResponse.model_validate(p) for p in items],
        total=total,
    )


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get a property by ID",
)
async def get_property_detail(
    property_id: str,
    db: AsyncSession = Depends(get_db),
) -> PropertyResponse:
    """Retrieve a single property with its booked dates and reviews."""
    parsed_id = parse_uuid(property_id)
    if parsed_id is None:
        raise InvalidArgument("Invalid Property ID")

    prop = await get_property(db, parsed_id)
    if prop is None:
        raise NotFound("Property not found")
    return PropertyResponse.model_validate(prop)


@router.post(
    "/{property_id}/reviews",
    response_model=MessageResponse,
    summary="Review a property",
)
async def create_review(
    property_id: str,
    body: ReviewCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    caller_id: uuid.UUID = Depends(get_caller_id),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> MessageResponse:
    """Add the caller's single review of a property (rating 1-5)."""
    notice = await post_review(db, caller_id, property_id, rating=body.rating, comment=body.comment)
    background_tasks.add_task(dispatch_notification, session_factory, notice)
    return MessageResponse(message="Review added")
