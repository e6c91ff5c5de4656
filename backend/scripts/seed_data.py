"""Seed the database with a demo vendor, a demo guest and sample listings.

Bookings and reviews are created through the booking and review services so
the ledger, ``booked_dates`` and ``User.bookings`` start out consistent.

Run from the backend directory:
    python -m scripts.seed_data
"""

import asyncio
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete, select

from bookhaven import models  # noqa: F401
from bookhaven.auth.passwords import hash_password
from bookhaven.database import Base, async_session_factory, engine
from bookhaven.models.booking import Booking
from bookhaven.models.property import Property
from bookhaven.models.user import User
from bookhaven.services.booking_service import create_booking
from bookhaven.services.notification_service import notify
from bookhaven.services.review_service import post_review

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

DEMO_VENDOR = {
    "username": "Demo Host",
    "email": "host@bookhaven.dev",
    "password": "Host@1234",
}

DEMO_GUEST = {
    "username": "Demo Guest",
    "email": "guest@bookhaven.dev",
    "password": "Guest@1234",
}

PROPERTIES = [
    {
        "name": "Harbour View Apartment",
        "description": "Bright two-bedroom apartment a short walk from the ferry terminal.",
        "property_type": "apartment",
        "location": "Sydney, Australia",
        "address": "12 Circular Quay West",
        "price_per_night": Decimal("180.00"),
        "bedrooms": 2,
        "bathrooms": 1,
        "max_guests": 4,
        "amenities": {"wifi": True, "kitchen": True, "air_conditioning": True, "tv": True},
    },
    {
        "name": "Pine Ridge Cabin",
        "description": "Timber cabin with a wood stove and a view over the valley.",
        "property_type": "cabin",
        "location": "Blue Mountains, Australia",
        "address": "4 Ridge Road, Katoomba",
        "price_per_night": Decimal("140.00"),
        "bedrooms": 1,
        "bathrooms": 1,
        "max_guests": 2,
        "amenities": {"heating": True, "parking": True, "kitchen": True},
    },
    {
        "name": "Seaside Family House",
        "description": "Four-bedroom house one street back from the beach.",
        "property_type": "house",
        "location": "Byron Bay, Australia",
        "address": "27 Lighthouse Road",
        "price_per_night": Decimal("320.00"),
        "bedrooms": 4,
        "bathrooms": 2,
        "max_guests": 8,
        "amenities": {"wifi": True, "parking": True, "breakfast": True, "workspace": True},
    },
]


def _new_user(data: dict, role: str) -> User:
    return User(
        username=data["username"],
        email=data["email"],
        hashed_password=hash_password(data["password"]),
        role=role,
        is_active=True,
        bookings=[],
        reviews_given=[],
        notifications=[],
    )


async def _clear_demo_accounts(session) -> None:
    """Remove the demo accounts and everything attached to them."""
    emails = [DEMO_VENDOR["email"], DEMO_GUEST["email"]]
    result = await session.execute(select(User.id).where(User.email.in_(emails)))
    user_ids = list(result.scalars().all())
    if not user_ids:
        return

    print("⚠️  Demo accounts already exist. Deleting and re-seeding...")
    property_ids = list(
        (await session.execute(select(Property.id).where(Property.owner_id.in_(user_ids)))).scalars().all()
    )
    await session.execute(delete(Booking).where(Booking.user_id.in_(user_ids)))
    if property_ids:
        await session.execute(delete(Booking).where(Booking.property_id.in_(property_ids)))
        await session.execute(delete(Property).where(Property.id.in_(property_ids)))
    await session.execute(delete(User).where(User.id.in_(user_ids)))
    await session.commit()


async def seed() -> None:
    """Populate the database with demo data.

    Idempotent: existing demo accounts are removed along with their listings
    and bookings before re-seeding.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        await _clear_demo_accounts(session)

        # ------------------------------------------------------------------
        # 1. Accounts
        # ------------------------------------------------------------------
        vendor = _new_user(DEMO_VENDOR, "vendor")
        guest = _new_user(DEMO_GUEST, "user")
        session.add_all([vendor, guest])
        await session.commit()
        print(f"✅ Created vendor {vendor.email} and guest {guest.email}")

        # ------------------------------------------------------------------
        # 2. Listings, bookable for the next 90 days
        # ------------------------------------------------------------------
        today = date.today()
        created: list[Property] = []
        for prop_data in PROPERTIES:
            prop = Property(
                owner_id=vendor.id,
                availability_start=today,
                availability_end=today + timedelta(days=90),
                booked_dates=[],
                reviews=[],
                **prop_data,
            )
            session.add(prop)
            created.append(prop)
            print(f"   🏠 {prop.name} — {prop.location} (${prop.price_per_night}/night)")
        await session.commit()

        # ------------------------------------------------------------------
        # 3. Bookings and reviews through the services
        # ------------------------------------------------------------------
        booking_count = 0
        for offset, prop in enumerate(created):
            check_in = today + timedelta(days=7 + offset * 10)
            nights = 3
            result = await create_booking(
                session,
                guest.id,
                property_id=str(prop.id),
                check_in=check_in.isoformat(),
                check_out=(check_in + timedelta(days=nights)).isoformat(),
                guests=2,
                total_amount=str(prop.price_per_night * nights),
                today=today,
            )
            await notify(session, result.notice.user_id, result.notice.message, result.notice.notification_type)
            await session.commit()
            booking_count += 1

        for rating, prop in zip((5, 4), created):
            notice = await post_review(session, guest.id, str(prop.id), rating=rating, comment="Lovely stay.")
            await notify(session, notice.user_id, notice.message, notice.notification_type)
            await session.commit()

    print()
    print("=" * 60)
    print("📊 Seed Summary")
    print("=" * 60)
    print(f"   Vendor:     {DEMO_VENDOR['email']} / {DEMO_VENDOR['password']}")
    print(f"   Guest:      {DEMO_GUEST['email']} / {DEMO_GUEST['password']}")
    print(f"   Properties: {len(created)}")
    print(f"   Bookings:   {booking_count}")
    print("=" * 60)
    print("🎉 Done! You can now log in at /api/v1/auth/login")


if __name__ == "__main__":
    asyncio.run(seed())
