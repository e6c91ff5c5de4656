"""Pydantic v2 request/response schemas for property and review endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

PROPERTY_TYPE_PATTERN = "^(apartment|house|villa|cabin|cottage|condo|room|other)$"
STATUS_PATTERN = "^(available|booked|unavailable)$"
NULLABLE_UPDATE_FIELDS = frozenset({"mobile", "email", "availability"})


class Amenities(BaseModel):
    """Boolean amenity flags. Unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")

    wifi: bool = False
    parking: bool = False
    breakfast: bool = False
    air_conditioning: bool = False
    heating: bool = False
    tv: bool = False
    kitchen: bool = False
    workspace: bool = False


class Availability(BaseModel):
    start_date: date | None = None
    end_date: date | None = None

    @model_validator(mode="after")
    def check_range(self) -> "Availability":
        """If both dates are provided, the window must not end before it starts."""
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("Availability end date must be on or after the start date")
        return self


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PropertyCreate(BaseModel):
    """Schema for a vendor creating a listing."""

    name: str = Field(..., min_length=1, max_length=255)
    property_type: str = Field(..., pattern=PROPERTY_TYPE_PATTERN)
    description: str = Field("", max_length=5000)
    location: str = Field(..., min_length=1, max_length=255)
    address: str = Field("", max_length=255)
    price_per_night: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    bedrooms: int = Field(1, ge=0)
    bathrooms: int = Field(1, ge=0)
    max_guests: int = Field(..., ge=1)
    amenities: Amenities = Field(default_factory=Amenities)
    availability: Availability | None = None
    mobile: str | None = Field(None, pattern=r"^\+?[1-9]\d{9,14}$")
    email: EmailStr | None = None


class PropertyUpdate(BaseModel):
    """Schema for partially updating a listing. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    property_type: str | None = Field(None, pattern=PROPERTY_TYPE_PATTERN)
    description: str | None = Field(None, max_length=5000)
    location: str | None = Field(None, min_length=1, max_length=255)
    address: str | None = Field(None, max_length=255)
    price_per_night: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: int | None = Field(None, ge=0)
    max_guests: int | None = Field(None, ge=1)
    amenities: Amenities | None = None
    availability: Availability | None = None
    mobile: str | None = Field(None, pattern=r"^\+?[1-9]\d{9,14}$")
    email: EmailStr | None = None
    status: str | None = Field(None, pattern=STATUS_PATTERN)

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "PropertyUpdate":
        """Only contact details and the availability window may be cleared."""
        for field in sorted(self.model_fields_set - NULLABLE_UPDATE_FIELDS):
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class ReviewCreate(BaseModel):
    """Raw review body; the rating is range-checked by the review service."""

    rating: Any = None
    comment: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ReviewResponse(BaseModel):
    user_id: uuid.UUID
    username: str
    rating: int
    comment: str
    created_at: datetime


class BookedDateResponse(BaseModel):
    id: uuid.UUID
    check_in: date
    check_out: date
    user_id: uuid.UUID


class PropertyResponse(BaseModel):
    """Public property information returned from the API."""

    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    property_type: str
    description: str
    location: str
    address: str
    price_per_night: float
    bedrooms: int
    bathrooms: int
    max_guests: int
    amenities: dict[str, bool]
    availability_start: date | None = None
    availability_end: date | None = None
    mobile: str | None = None
    email: str | None = None
    booked_dates: list[BookedDateResponse]
    reviews: list[ReviewResponse]
    average_rating: float
    review_count: int
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertyListResponse(BaseModel):
    """Paginated list of properties."""

    items: list[PropertyResponse]
    total: int
