"""Bookings API router — guests create, list, and cancel their reservations.

Ownership rule: a guest can only see and cancel bookings they made. Owner
notifications are delivered after the response as background tasks.
"""

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bookhaven.api.deps import get_caller_id, get_db, get_session_factory
from bookhaven.schemas.auth import SuccessResponse
from bookhaven.schemas.booking import (
    BookedPropertySummary,
    BookingCreatedResponse,
    BookingListResponse,
    BookingRequest,
    BookingResponse,
)
from bookhaven.services import booking_service
from bookhaven.services.notification_service import dispatch_notification

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a property",
)
async def create_booking(
    body: BookingRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    caller_id: uuid.UUID = Depends(get_caller_id),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> BookingCreatedResponse:
    """Reserve a property for ``[check_in, check_out)``.

    The amount is taken from the request as-is. Returns 400 for malformed
    input, past or reversed dates, too many guests, dates outside the
    availability window, or an overlap with an existing booking.
    """
    result = await booking_service.create_booking(
        db,
        caller_id,
        property_id=body.property_id,
        check_in=body.check_in,
        check_out=body.check_out,
        guests=body.guests,
        total_amount=body.total_amount,
    )
    background_tasks.add_task(dispatch_notification, session_factory, result.notice)
    return BookingCreatedResponse(
        booking_id=result.booking.id,
        total_amount=float(result.booking.total_amount),
    )


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List the current user's bookings",
)
async def list_bookings(
    db: AsyncSession = Depends(get_db),
    caller_id: uuid.UUID = Depends(get_caller_id),
) -> BookingListResponse:
    """Return the caller's bookings with a summary of each property."""
    rows = await booking_service.list_user_bookings(db, caller_id)
    data = [
        BookingResponse.model_validate(booking).model_copy(
            update={"property": BookedPropertySummary.model_validate(prop)}
        )
        for booking, prop in rows
    ]
    return BookingListResponse(data=data)


@router.delete(
    "/{booking_id}",
    response_model=SuccessResponse,
    summary="Cancel a booking",
)
async def cancel_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    caller_id: uuid.UUID = Depends(get_caller_id),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> SuccessResponse:
    """Cancel one of the caller's bookings and free its dates."""
    result = await booking_service.cancel_booking(db, caller_id, booking_id)
    background_tasks.add_task(dispatch_notification, session_factory, result.notice)
    return SuccessResponse(message="Booking cancelled successfully")
