"""Shared test configuration and fixtures.

Each test gets its own SQLite database file (through ``aiosqlite``) with all
tables created fresh:
- ``db_session`` is a session for arranging data and asserting on it directly.
- ``client`` overrides ``get_db`` with a new session per request and points
  background notification delivery at the same database.
Fixtures commit what they create so every other session can see it.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("CREATE_TABLES", "false")

import uuid  # noqa: E402
from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402
from datetime import date, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from bookhaven import models  # noqa: E402, F401
from bookhaven.auth.jwt import create_token_pair  # noqa: E402
from bookhaven.auth.passwords import hash_password  # noqa: E402
from bookhaven.database import Base, get_db, get_session_factory  # noqa: E402
from bookhaven.main import app  # noqa: E402
from bookhaven.models.property import Property  # noqa: E402
from bookhaven.models.user import User  # noqa: E402

TEST_PASSWORD = "Testpass@123"


# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create an engine on a fresh SQLite file with every table in place."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookhaven_test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for arranging and inspecting test data."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the per-test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience fixtures: users and auth headers
# ---------------------------------------------------------------------------


async def _create_user(session: AsyncSession, *, role: str, username: str, is_active: bool = True) -> User:
    unique = uuid.uuid4().hex[:8]
    user = User(
        username=username,
        email=f"{username.lower().replace(' ', '-')}-{unique}@test.com",
        hashed_password=hash_password(TEST_PASSWORD),
        role=role,
        is_active=is_active,
        bookings=[],
        reviews_given=[],
        notifications=[],
    )
    session.add(user)
    await session.commit()
    return user


def _headers_for(user: User) -> dict[str, str]:
    tokens = create_token_pair(str(user.id), role=user.role)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A guest account."""
    return await _create_user(db_session, role="user", username="Test Guest")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A second guest account."""
    return await _create_user(db_session, role="user", username="Other Guest")


@pytest_asyncio.fixture
async def test_vendor(db_session: AsyncSession) -> User:
    """A vendor who owns the test properties."""
    return await _create_user(db_session, role="vendor", username="Test Host")


@pytest_asyncio.fixture
async def inactive_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, role="user", username="Inactive Guest", is_active=False)


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict[str, str]:
    """Return Authorization headers for the guest."""
    return _headers_for(test_user)


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict[str, str]:
    return _headers_for(other_user)


@pytest_asyncio.fixture
async def vendor_headers(test_vendor: User) -> dict[str, str]:
    """Return Authorization headers for the vendor."""
    return _headers_for(test_vendor)


# ---------------------------------------------------------------------------
# Convenience fixtures: properties
# ---------------------------------------------------------------------------

PropertyFactory = Callable[..., Awaitable[Property]]


@pytest_asyncio.fixture
async def make_property(db_session: AsyncSession, test_vendor: User) -> PropertyFactory:
    """Return a factory that creates a vendor-owned property and commits it."""

    async def _make(**overrides) -> Property:
        fields = {
            "owner_id": test_vendor.id,
            "name": "Test Villa",
            "property_type": "villa",
            "description": "A test villa for automated tests.",
            "location": "Ubud, Bali",
            "address": "1 Test Street",
            "price_per_night": Decimal("100.00"),
            "max_guests": 4,
            "amenities": {"wifi": True},
            "availability_start": None,
            "availability_end": None,
            "booked_dates": [],
            "reviews": [],
        }
        fields.update(overrides)
        prop = Property(**fields)
        db_session.add(prop)
        await db_session.commit()
        return prop

    return _make


@pytest_asyncio.fixture
async def test_property(make_property: PropertyFactory) -> Property:
    """A property bookable for the next 60 days, up to 4 guests at 100/night."""
    today = date.today()
    return await make_property(availability_start=today, availability_end=today + timedelta(days=60))
