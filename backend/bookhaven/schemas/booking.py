"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookingRequest(BaseModel):
    """Raw booking request.

    Fields are deliberately loose; ``booking_input.parse_booking_request``
    checks them in order so each failure gets its own message. Both
    ``snake_case`` and ``camelCase`` keys are accepted.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    property_id: Any = None
    check_in: Any = None
    check_out: Any = None
    guests: Any = None
    total_amount: Any = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingCreatedResponse(BaseModel):
    success: bool = True
    message: str = "Booking successful!"
    booking_id: uuid.UUID
    total_amount: float


class BookedPropertySummary(BaseModel):
    """The property fields shown next to a booking."""

    id: uuid.UUID
    name: str
    location: str
    property_type: str
    price_per_night: float

    model_config = ConfigDict(from_attributes=True)


class BookingResponse(BaseModel):
    """A ledger booking as returned to its guest."""

    id: uuid.UUID
    property_id: uuid.UUID
    user_id: uuid.UUID
    check_in: date
    check_out: date
    guests: int
    total_amount: float
    status: str
    created_at: datetime
    property: BookedPropertySummary | None = None

    model_config = ConfigDict(from_attributes=True)


class BookingListResponse(BaseModel):
    success: bool = True
    data: list[BookingResponse]
