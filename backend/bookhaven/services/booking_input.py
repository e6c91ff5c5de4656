"""Parsing of raw booking requests into a validated, typed input.

The HTTP layer accepts loosely typed JSON; :func:`parse_booking_request`
applies the field checks in a fixed order and raises
:class:`~bookhaven.services.errors.InvalidArgument` on the first failure.
Property-dependent rules (ownership, capacity, availability, overlap) run
later in the booking engine.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from bookhaven.services.errors import InvalidArgument

AMOUNT_QUANTUM = Decimal("0.01")
# Largest value the ledger's Numeric(10, 2) column can hold.
MAX_AMOUNT = Decimal("99999999.99")


@dataclass(frozen=True)
class BookingInput:
    """A booking request whose fields have all been parsed and checked."""

    property_id: uuid.UUID
    check_in: date
    check_out: date
    guests: int
    total_amount: Decimal

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days


def parse_uuid(value: Any) -> uuid.UUID | None:
    """Return ``value`` as a UUID, or ``None`` if it is not a valid identifier."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


def parse_date(value: Any) -> date | None:
    """Parse an ISO 8601 date or datetime, truncated to its calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _parse_guests(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _parse_amount(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return None
    if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
        return None
    if amount != amount.quantize(AMOUNT_QUANTUM):
        return None
    return amount


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_booking_request(
    *,
    property_id: Any,
    check_in: Any,
    check_out: Any,
    guests: Any,
    total_amount: Any,
    today: date,
) -> BookingInput:
    """Validate the request fields in order and return a :class:`BookingInput`."""
    parsed_property_id = parse_uuid(property_id)
    if parsed_property_id is None:
        raise InvalidArgument("Invalid Property ID")

    if _is_missing(check_in) or _is_missing(check_out) or _is_missing(guests):
        raise InvalidArgument("Missing required booking details")

    check_in_date = parse_date(check_in)
    if check_in_date is None:
        raise InvalidArgument("Invalid check-in date")
    check_out_date = parse_date(check_out)
    if check_out_date is None:
        raise InvalidArgument("Invalid check-out date")

    guest_count = _parse_guests(guests)
    if guest_count is None or guest_count < 1:
        raise InvalidArgument("Guests must be at least 1")

    amount = _parse_amount(total_amount)
    if amount is None or amount < 0:
        raise InvalidArgument("Amount must be a positive number")

    if check_in_date < today:
        raise InvalidArgument("Check-in date cannot be in the past")
    if check_in_date >= check_out_date:
        raise InvalidArgument("Check-out date must be after check-in date")

    return BookingInput(
        property_id=parsed_property_id,
        check_in=check_in_date,
        check_out=check_out_date,
        guests=guest_count,
        total_amount=amount,
    )
