"""Concurrent booking requests against the same property.

Each request runs in its own session, as it would behind the HTTP layer.
"""

import asyncio
from datetime import date

import pytest_asyncio
from sqlalchemy import func, select

from bookhaven.models.booking import Booking
from bookhaven.models.property import Property
from bookhaven.services.booking_service import cancel_booking, create_booking
from bookhaven.services.errors import InvalidArgument
from bookhaven.services.locks import KeyedLocks, property_locks, user_locks

TODAY = date(2025, 5, 1)


@pytest_asyncio.fixture
async def june_property(make_property) -> Property:
    return await make_property(availability_start=date(2025, 6, 1), availability_end=date(2025, 6, 30))


async def _book_in_own_session(session_factory, user_id, property_id, check_in, check_out):
    async with session_factory() as session:
        return await create_booking(
            session,
            user_id,
            property_id=str(property_id),
            check_in=check_in,
            check_out=check_out,
            guests=2,
            total_amount=500,
            today=TODAY,
        )


class TestConcurrentBookings:
    async def test_overlapping_requests_at_most_one_succeeds(
        self, session_factory, db_session, test_user, other_user, june_property
    ):
        results = await asyncio.gather(
            _book_in_own_session(session_factory, test_user.id, june_property.id, "2025-06-05", "2025-06-10"),
            _book_in_own_session(session_factory, other_user.id, june_property.id, "2025-06-08", "2025-06-12"),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidArgument)
        assert "overlap" in failures[0].message

        count = (await db_session.execute(select(func.count()).select_from(Booking))).scalar_one()
        assert count == 1
        await db_session.refresh(june_property)
        assert len(june_property.booked_dates) == 1

    async def test_disjoint_requests_both_recorded(
        self, session_factory, db_session, test_user, other_user, june_property
    ):
        """Neither writer overwrites the other's booked_dates entry."""
        results = await asyncio.gather(
            _book_in_own_session(session_factory, test_user.id, june_property.id, "2025-06-05", "2025-06-10"),
            _book_in_own_session(session_factory, other_user.id, june_property.id, "2025-06-15", "2025-06-20"),
        )

        await db_session.refresh(june_property)
        assert sorted(entry["id"] for entry in june_property.booked_dates) == sorted(
            str(result.booking.id) for result in results
        )

    async def test_many_requests_for_the_same_nights(self, session_factory, db_session, make_property, test_user):
        prop = await make_property()
        results = await asyncio.gather(
            *[
                _book_in_own_session(session_factory, test_user.id, prop.id, "2025-07-01", "2025-07-03")
                for _ in range(5)
            ],
            return_exceptions=True,
        )

        assert sum(1 for r in results if not isinstance(r, Exception)) == 1
        await db_session.refresh(test_user)
        assert len(test_user.bookings) == 1

    async def test_cancel_and_rebook_race(self, session_factory, db_session, test_user, other_user, june_property):
        first = await _book_in_own_session(session_factory, test_user.id, june_property.id, "2025-06-05", "2025-06-10")

        async def cancel():
            async with session_factory() as session:
                return await cancel_booking(session, test_user.id, str(first.booking.id))

        results = await asyncio.gather(
            cancel(),
            _book_in_own_session(session_factory, other_user.id, june_property.id, "2025-06-20", "2025-06-25"),
        )

        await db_session.refresh(june_property)
        assert [entry["id"] for entry in june_property.booked_dates] == [str(results[1].booking.id)]

    async def test_lock_registry_empties_after_use(self, session_factory, test_user, june_property):
        await _book_in_own_session(session_factory, test_user.id, june_property.id, "2025-06-05", "2025-06-10")
        assert len(property_locks) == 0
        assert len(user_locks) == 0


class TestKeyedLocks:
    async def test_same_key_serialises(self):
        locks = KeyedLocks()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("key"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])
        assert len(locks) == 0

    async def test_different_keys_do_not_block(self):
        locks = KeyedLocks()
        inside = asyncio.Event()

        async def holder() -> None:
            async with locks.hold("one"):
                await inside.wait()

        task = asyncio.create_task(holder())
        await asyncio.sleep(0)
        async with locks.hold("two"):
            inside.set()
        await task
        assert len(locks) == 0
