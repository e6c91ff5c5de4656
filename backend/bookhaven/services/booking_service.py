"""Booking engine — create and cancel reservations.

A reservation is stored three times: the ``bookings`` ledger row (source of
truth), an entry in ``Property.booked_dates`` and an entry in
``User.bookings``. Both operations hold the property lock, then the user
lock, across read-check-write-commit, and write all three views in a single
transaction.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import AsyncExitStack
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookhaven.models.booking import Booking
from bookhaven.models.property import Property
from bookhaven.models.user import User
from bookhaven.services.booking_input import BookingInput, parse_booking_request, parse_uuid
from bookhaven.services.errors import Forbidden, InvalidArgument, NotFound, Unauthorized
from bookhaven.services.locks import property_locks, user_locks
from bookhaven.services.mirrors import (
    booked_date_entry,
    find_entry,
    find_overlap,
    user_booking_entry,
    without_entry,
)
from bookhaven.services.notification_service import Notice
from bookhaven.services.property_store import get_property, save_property
from bookhaven.services.user_store import get_user, unit_of_work

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingResult:
    booking: Booking
    notice: Notice


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _resolve_caller(db: AsyncSession, caller_id: uuid.UUID) -> User:
    user = await get_user(db, caller_id)
    if user is None or not user.is_active:
        raise Unauthorized("Unauthorized")
    return user


def _check_property_rules(prop: Property, caller_id: uuid.UUID, request: BookingInput) -> None:
    """Apply ownership, capacity, availability and overlap rules in order."""
    if prop.owner_id == caller_id:
        raise Forbidden("You cannot book your own property.")

    if request.guests > prop.max_guests:
        raise InvalidArgument(f"This property allows a maximum of {prop.max_guests} guests.")

    if prop.availability_start is not None and request.check_in < prop.availability_start:
        raise InvalidArgument("Selected dates are outside the property's availability range.")
    if prop.availability_end is not None and request.check_out > prop.availability_end:
        raise InvalidArgument("Selected dates are outside the property's availability range.")

    if find_overlap(prop.booked_dates or [], request.check_in, request.check_out) is not None:
        raise InvalidArgument("Selected dates overlap with an existing booking.")


def _warn_on_price_mismatch(prop: Property, request: BookingInput) -> None:
    """The client-supplied total is trusted; a mismatch is only logged."""
    if prop.price_per_night is None:
        return
    expected = Decimal(prop.price_per_night) * request.nights
    if expected != request.total_amount:
        logger.warning(
            "Booking total %s for property %s differs from %s nights x %s = %s",
            request.total_amount,
            prop.id,
            request.nights,
            prop.price_per_night,
            expected,
        )


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def create_booking(
    db: AsyncSession,
    caller_id: uuid.UUID,
    *,
    property_id: Any,
    check_in: Any,
    check_out: Any,
    guests: Any,
    total_amount: Any,
    today: date | None = None,
) -> BookingResult:
    """Validate a reservation request and record it in all three stores.

    Raises:
        Unauthorized: the caller is not an active user.
        InvalidArgument: a malformed field or a violated booking rule.
        NotFound: the property does not exist.
        Forbidden: the caller owns the property.
        Internal: a database error; nothing was written.
    """
    user = await _resolve_caller(db, caller_id)
    request = parse_booking_request(
        property_id=property_id,
        check_in=check_in,
        check_out=check_out,
        guests=guests,
        total_amount=total_amount,
        today=today or date.today(),
    )

    async with property_locks.hold(request.property_id), user_locks.hold(caller_id):
        prop = await get_property(db, request.property_id, for_update=True)
        if prop is None:
            raise NotFound("Property not found")

        _check_property_rules(prop, caller_id, request)
        _warn_on_price_mismatch(prop, request)

        async with unit_of_work(db, "create_booking"):
            booking = Booking(
                property_id=prop.id,
                user_id=caller_id,
                check_in=request.check_in,
                check_out=request.check_out,
                guests=request.guests,
                total_amount=request.total_amount,
                status="confirmed",
            )
            db.add(booking)
            await db.flush()

            prop.booked_dates = [*(prop.booked_dates or []), booked_date_entry(booking)]
            await save_property(db, prop)

            user = await get_user(db, caller_id, for_update=True) or user
            user.bookings = [*(user.bookings or []), user_booking_entry(booking)]
            await db.flush()

    logger.info(
        "Booking %s created: property=%s user=%s %s..%s",
        booking.id,
        prop.id,
        caller_id,
        booking.check_in,
        booking.check_out,
    )
    notice = Notice(
        user_id=prop.owner_id,
        message=(
            f"{user.username} booked your property '{prop.name}' from "
            f"{booking.check_in.isoformat()} to {booking.check_out.isoformat()} "
            f"for {booking.guests} guest(s)."
        ),
        notification_type="booking",
    )
    return BookingResult(booking=booking, notice=notice)


async def cancel_booking(
    db: AsyncSession,
    caller_id: uuid.UUID,
    booking_id: Any,
) -> BookingResult:
    """Remove a booking from the ledger and both mirrors.

    Once the booking and its property are known to exist, a caller who does
    not hold the matching ``booked_dates`` entry gets ``Forbidden``.
    """
    user = await _resolve_caller(db, caller_id)

    parsed_id = parse_uuid(booking_id)
    if parsed_id is None:
        raise InvalidArgument("Invalid Booking ID")

    booking = await db.get(Booking, parsed_id)
    if booking is None:
        raise NotFound("Booking not found")

    async with property_locks.hold(booking.property_id), user_locks.hold(caller_id):
        result = await db.execute(
            select(Booking).where(Booking.id == parsed_id).execution_options(populate_existing=True)
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFound("Booking not found")

        prop = await get_property(db, booking.property_id, for_update=True)
        if prop is None:
            raise NotFound("Property not found")

        entry = find_entry(prop.booked_dates or [], booking.id)
        if entry is None or entry.get("user_id") != str(caller_id):
            raise Forbidden("You are not authorized to cancel this booking")

        async with unit_of_work(db, "cancel_booking"):
            await db.delete(booking)
            prop.booked_dates = without_entry(prop.booked_dates or [], booking.id)
            await save_property(db, prop)

            user = await get_user(db, caller_id, for_update=True) or user
            user.bookings = without_entry(user.bookings or [], booking.id)
            await db.flush()

    logger.info("Booking %s cancelled by user %s", booking.id, caller_id)
    notice = Notice(
        user_id=prop.owner_id,
        message=(
            f"{user.username} cancelled their booking of '{prop.name}' from "
            f"{booking.check_in.isoformat()} to {booking.check_out.isoformat()}."
        ),
        notification_type="cancellation",
    )
    return BookingResult(booking=booking, notice=notice)


async def list_user_bookings(db: AsyncSession, caller_id: uuid.UUID) -> list[tuple[Booking, Property]]:
    """Return the caller's bookings with their properties, newest check-in first.

    Read from the ledger rather than the ``User.bookings`` mirror.
    """
    await _resolve_caller(db, caller_id)
    result = await db.execute(
        select(Booking, Property)
        .join(Property, Booking.property_id == Property.id)
        .where(Booking.user_id == caller_id)
        .order_by(Booking.check_in.desc())
    )
    return [(booking, prop) for booking, prop in result.all()]


def _same_entries(current: list[dict[str, Any]] | None, expected: list[dict[str, Any]]) -> bool:
    def by_id(entry: dict[str, Any]) -> str:
        return str(entry.get("id"))

    return sorted(current or [], key=by_id) == sorted(expected, key=by_id)


async def reconcile_mirrors(
    db: AsyncSession,
    *,
    property_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
) -> int:
    """Rebuild ``booked_dates`` and ``User.bookings`` from the ledger.

    With ``property_id`` only that property is rebuilt; with ``user_id`` only
    that user. Returns the number of properties and users whose mirror
    changed. The caller commits.
    """
    if property_id is not None and user_id is not None:
        raise ValueError("Reconcile either one property or one user, not both")

    booking_query = select(Booking).order_by(Booking.created_at, Booking.check_in)
    if property_id is not None:
        booking_query = booking_query.where(Booking.property_id == property_id)
    if user_id is not None:
        booking_query = booking_query.where(Booking.user_id == user_id)

    by_property: dict[uuid.UUID, list[dict[str, Any]]] = {}
    by_user: dict[uuid.UUID, list[dict[str, Any]]] = {}
    for booking in (await db.execute(booking_query)).scalars().all():
        by_property.setdefault(booking.property_id, []).append(booked_date_entry(booking))
        by_user.setdefault(booking.user_id, []).append(user_booking_entry(booking))

    changed = 0
    if user_id is None:
        property_query = select(Property)
        if property_id is not None:
            property_query = property_query.where(Property.id == property_id)
        for prop in (await db.execute(property_query)).scalars().all():
            expected = by_property.get(prop.id, [])
            if not _same_entries(prop.booked_dates, expected):
                logger.warning("Rebuilding booked_dates for property %s", prop.id)
                prop.booked_dates = expected
                await save_property(db, prop)
                changed += 1

    if property_id is None:
        user_query = select(User)
        if user_id is not None:
            user_query = user_query.where(User.id == user_id)
        for user in (await db.execute(user_query)).scalars().all():
            expected = by_user.get(user.id, [])
            if not _same_entries(user.bookings, expected):
                logger.warning("Rebuilding bookings mirror for user %s", user.id)
                user.bookings = expected
                changed += 1

    await db.flush()
    return changed


async def remove_property(db: AsyncSession, prop: Property) -> list[Notice]:
    """Delete a listing together with its bookings and the guests' mirrors.

    Returns one notice per affected guest. The property row and every ledger
    row go in a single transaction.
    """
    async with property_locks.hold(prop.id):
        locked = await get_property(db, prop.id, for_update=True)
        if locked is None:
            raise NotFound("Property not found")

        result = await db.execute(select(Booking).where(Booking.property_id == locked.id))
        bookings = list(result.scalars().all())
        guest_ids = sorted({booking.user_id for booking in bookings})

        async with AsyncExitStack() as stack:
            for guest_id in guest_ids:
                await stack.enter_async_context(user_locks.hold(guest_id))

            async with unit_of_work(db, "remove_property"):
                for guest_id in guest_ids:
                    guest = await get_user(db, guest_id, for_update=True)
                    if guest is None:
                        continue
                    remaining = guest.bookings or []
                    for booking in bookings:
                        remaining = without_entry(remaining, booking.id)
                    guest.bookings = remaining
                for booking in bookings:
                    await db.delete(booking)
                await db.flush()
                await db.delete(locked)
                await db.flush()

    logger.info("Property %s removed with %d booking(s)", prop.id, len(bookings))
    return [
        Notice(
            user_id=guest_id,
            message=f"The listing '{locked.name}' was removed and your booking there has been cancelled.",
            notification_type="cancellation",
        )
        for guest_id in guest_ids
    ]
