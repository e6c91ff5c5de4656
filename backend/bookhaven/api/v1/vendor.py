"""Vendor listing management — ownership-scoped CRUD on properties."""

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bookhaven.api.deps import get_current_vendor, get_db, get_session_factory
from bookhaven.models.property import Property
from bookhaven.models.user import User
from bookhaven.schemas.auth import MessageResponse
from bookhaven.schemas.property import (
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
    PropertyUpdate,
)
from bookhaven.services.booking_input import parse_uuid
from bookhaven.services.booking_service import remove_property
from bookhaven.services.errors import InvalidArgument, NotFound
from bookhaven.services.locks import property_locks
from bookhaven.services.notification_service import dispatch_notification
from bookhaven.services.property_store import get_property, save_property
from bookhaven.services.user_store import unit_of_work

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/vendor/properties", tags=["vendor"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _apply_fields(prop: Property, data: dict[str, Any]) -> None:
    """Copy validated request fields onto the model, flattening nested ones."""
    if "availability" in data:
        availability = data.pop("availability") or {}
        prop.availability_start = availability.get("start_date")
        prop.availability_end = availability.get("end_date")
    if "amenities" in data:
        prop.amenities = data.pop("amenities") or {}
    for field, value in data.items():
        setattr(prop, field, value)


async def _get_owned_property(db: AsyncSession, property_id: str, vendor: User) -> Property:
    """Fetch a property and verify the vendor owns it.

    Raises ``NotFound`` when the property does not exist or belongs to
    someone else.
    """
    parsed_id = parse_uuid(property_id)
    if parsed_id is None:
        raise InvalidArgument("Invalid Property ID")
    prop = await get_property(db, parsed_id)
    if prop is None or prop.owner_id != vendor.id:
        raise NotFound("Property not found")
    return prop


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a listing",
)
async def create_property(
    body: PropertyCreate,
    db: AsyncSession = Depends(get_db),
    vendor: User = Depends(get_current_vendor),
) -> PropertyResponse:
    """Create a property owned by the authenticated vendor."""
    prop = Property(owner_id=vendor.id, booked_dates=[], reviews=[])
    _apply_fields(prop, body.model_dump())
    async with unit_of_work(db, "create_property"):
        await save_property(db, prop)
    await db.refresh(prop)
    logger.info("Vendor %s created property %s", vendor.id, prop.id)
    return PropertyResponse.model_validate(prop)


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="List the vendor's listings",
)
async def list_own_properties(
    db: AsyncSession = Depends(get_db),
    vendor: User = Depends(get_current_vendor),
) -> PropertyListResponse:
    filters = [Property.owner_id == vendor.id]
    total = (await db.execute(select(func.count()).select_from(Property).where(*filters))).scalar_one()
    result = await db.execute(select(Property).where(*filters).order_by(Property.created_at.desc()))
    return PropertyListResponse(
        items=[PropertyResponse.model_validate(p) for p in result.scalars().all()],
        total=total,
    )


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get one of the vendor's listings",
)
async def get_own_property(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    vendor: User = Depends(get_current_vendor),
) -> PropertyResponse:
    prop = await _get_owned_property(db, property_id, vendor)
    return PropertyResponse.model_validate(prop)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update a listing",
)
async def update_property(
    property_id: str,
    body: PropertyUpdate,
    db: AsyncSession = Depends(get_db),
    vendor: User = Depends(get_current_vendor),
) -> PropertyResponse:
    """Partially update a listing. Booked dates and reviews are not editable."""
    prop = await _get_owned_property(db, property_id, vendor)

    async with property_locks.hold(prop.id):
        prop = await get_property(db, prop.id, for_update=True)
        if prop is None:
            raise NotFound("Property not found")
        _apply_fields(prop, body.model_dump(exclude_unset=True))
        async with unit_of_work(db, "update_property"):
            await save_property(db, prop)

    await db.refresh(prop)
    return PropertyResponse.model_validate(prop)


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    summary="Delete a listing",
)
async def delete_property(
    property_id: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    vendor: User = Depends(get_current_vendor),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> MessageResponse:
    """Delete a listing and cancel its bookings; affected guests are notified."""
    prop = await _get_owned_property(db, property_id, vendor)
    notices = await remove_property(db, prop)
    for notice in notices:
        background_tasks.add_task(dispatch_notification, session_factory, notice)
    return MessageResponse(message="Property deleted")
