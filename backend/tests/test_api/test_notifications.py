"""Tests for the notification inbox endpoints."""

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from bookhaven.models.user import User
from bookhaven.services.notification_service import notify


async def _seed_inbox(db: AsyncSession, user: User, *messages: str) -> None:
    for message in messages:
        await notify(db, user.id, message)
    await db.commit()


class TestNotificationInbox:
    async def test_newest_first(
        self, client: AsyncClient, db_session: AsyncSession, test_user: User, auth_headers: dict
    ) -> None:
        await _seed_inbox(db_session, test_user, "first", "second", "third")

        response = await client.get("/api/v1/notifications", headers=auth_headers)
        assert response.status_code == 200
        assert [n["message"] for n in response.json()] == ["third", "second", "first"]
        assert all(n["read"] is False for n in response.json())

    async def test_unread_count_and_mark_as_read(
        self, client: AsyncClient, db_session: AsyncSession, test_user: User, auth_headers: dict
    ) -> None:
        await _seed_inbox(db_session, test_user, "one", "two")

        count = await client.get("/api/v1/notifications/unread-count", headers=auth_headers)
        assert count.json() == {"unread_count": 2}

        response = await client.put("/api/v1/notifications/mark-as-read", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True

        count = await client.get("/api/v1/notifications/unread-count", headers=auth_headers)
        assert count.json() == {"unread_count": 0}
        listed = (await client.get("/api/v1/notifications", headers=auth_headers)).json()
        assert all(n["read"] for n in listed)

    async def test_empty_inbox(self, client: AsyncClient, auth_headers: dict) -> None:
        response = await client.get("/api/v1/notifications", headers=auth_headers)
        assert response.json() == []

    async def test_unauthenticated(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/notifications")
        assert response.status_code == 401
