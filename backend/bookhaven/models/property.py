"""Property model — rentable listings with embedded booked dates and reviews."""

import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, CheckConstraint, Date, Float, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookhaven.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

AMENITY_KEYS = (
    "wifi",
    "parking",
    "breakfast",
    "air_conditioning",
    "heating",
    "tv",
    "kitchen",
    "workspace",
)


class Property(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A listing owned by a vendor.

    ``booked_dates`` and ``reviews`` are embedded JSON lists. ``booked_dates``
    mirrors the ``bookings`` ledger rows; ``average_rating`` and
    ``review_count`` are derived from ``reviews`` on every save.
    """

    __tablename__ = "properties"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    property_type: Mapped[str] = mapped_column(String(50), nullable=False)  # apartment, house, villa, cabin...
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_guests: Mapped[int] = mapped_column(Integer, nullable=False)
    amenities: Mapped[dict[str, bool]] = mapped_column(JSON, default=dict)
    availability_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    availability_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    mobile: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Embedded lists. Always reassign a new list; in-place mutation is not tracked.
    booked_dates: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    reviews: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(50), default="available")  # available, booked, unavailable

    # Relationships
    owner: Mapped["User"] = relationship(back_populates="properties", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (
        CheckConstraint("max_guests >= 1", name="ck_properties_max_guests_positive"),
        CheckConstraint("price_per_night >= 0", name="ck_properties_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name={self.name!r}, type={self.property_type!r})>"
