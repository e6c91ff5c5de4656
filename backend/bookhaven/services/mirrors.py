"""Helpers for the embedded copies of booking data.

``Property.booked_dates`` and ``User.bookings`` hold JSON entries keyed by the
booking id. Dates are stored as ISO strings and ids as strings so the lists
serialise identically on every database backend.
"""

import uuid
from collections.abc import Iterable
from datetime import date
from typing import Any

from bookhaven.models.booking import Booking


def booked_date_entry(booking: Booking) -> dict[str, Any]:
    return {
        "id": str(booking.id),
        "check_in": booking.check_in.isoformat(),
        "check_out": booking.check_out.isoformat(),
        "user_id": str(booking.user_id),
    }


def user_booking_entry(booking: Booking) -> dict[str, Any]:
    return {
        "id": str(booking.id),
        "property_id": str(booking.property_id),
        "start_date": booking.check_in.isoformat(),
        "end_date": booking.check_out.isoformat(),
    }


def without_entry(entries: Iterable[dict[str, Any]], entry_id: uuid.UUID) -> list[dict[str, Any]]:
    """Return a new list with every entry whose ``id`` matches removed."""
    target = str(entry_id)
    return [entry for entry in entries if entry.get("id") != target]


def find_entry(entries: Iterable[dict[str, Any]], entry_id: uuid.UUID) -> dict[str, Any] | None:
    target = str(entry_id)
    return next((entry for entry in entries if entry.get("id") == target), None)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Half-open interval overlap: touching ranges do not overlap."""
    return start_a < end_b and end_a > start_b


def find_overlap(
    booked_dates: Iterable[dict[str, Any]],
    check_in: date,
    check_out: date,
) -> dict[str, Any] | None:
    """Return the first booked range that overlaps ``[check_in, check_out)``."""
    for entry in booked_dates:
        existing_in = date.fromisoformat(entry["check_in"])
        existing_out = date.fromisoformat(entry["check_out"])
        if ranges_overlap(existing_in, existing_out, check_in, check_out):
            return entry
    return None
