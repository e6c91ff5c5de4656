"""Tests for best-effort notification delivery."""

import logging
import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from bookhaven.config import settings
from bookhaven.models.user import User
from bookhaven.services.notification_service import (
    Notice,
    build_notification,
    dispatch_notification,
    mark_all_read,
    notify,
    unread_count,
)


class TestBuildNotification:
    def test_fields(self):
        entry = build_notification("Hello", "booking")
        assert entry["message"] == "Hello"
        assert entry["type"] == "booking"
        assert entry["read"] is False
        assert uuid.UUID(entry["id"])
        assert "created_at" in entry

    @pytest.mark.parametrize("message", ["", "   "])
    def test_empty_message_rejected(self, message):
        with pytest.raises(ValueError):
            build_notification(message)

    def test_long_message_truncated(self):
        entry = build_notification("x" * 600)
        assert len(entry["message"]) == settings.notification_max_length

    def test_unknown_type_falls_back_to_info(self):
        assert build_notification("Hi", "carrier-pigeon")["type"] == "info"


class TestNotify:
    async def test_appends_to_inbox(self, db_session: AsyncSession, test_user: User):
        assert await notify(db_session, test_user.id, "Your booking is confirmed", "booking") is True
        await db_session.commit()

        await db_session.refresh(test_user)
        assert [n["message"] for n in test_user.notifications] == ["Your booking is confirmed"]
        assert unread_count(test_user) == 1

    async def test_inbox_keeps_newest_entries(self, db_session: AsyncSession, test_user: User):
        test_user.notifications = [build_notification(f"old {i}") for i in range(settings.notification_limit)]
        await db_session.commit()

        await notify(db_session, test_user.id, "newest")
        await db_session.commit()

        await db_session.refresh(test_user)
        assert len(test_user.notifications) == settings.notification_limit
        assert test_user.notifications[-1]["message"] == "newest"
        assert test_user.notifications[0]["message"] == "old 1"

    async def test_unknown_user(self, db_session: AsyncSession):
        assert await notify(db_session, uuid.uuid4(), "Hello") is False

    async def test_empty_message_is_dropped(self, db_session: AsyncSession, test_user: User, caplog):
        with caplog.at_level(logging.ERROR, logger="bookhaven.services.notification_service"):
            assert await notify(db_session, test_user.id, "") is False
        assert "Failed to send notification" in caplog.text


class TestDispatchNotification:
    async def test_delivers_in_own_session(self, session_factory, db_session: AsyncSession, test_user: User):
        await dispatch_notification(session_factory, Notice(test_user.id, "Welcome", "info"))

        await db_session.refresh(test_user)
        assert [n["message"] for n in test_user.notifications] == ["Welcome"]

    async def test_failure_is_swallowed_and_logged(self, test_user: User, caplog):
        def broken_factory():
            raise RuntimeError("database unavailable")

        with caplog.at_level(logging.ERROR, logger="bookhaven.services.notification_service"):
            await dispatch_notification(broken_factory, Notice(test_user.id, "Hello"))

        assert "Failed to send notification" in caplog.text


class TestMarkAllRead:
    async def test_marks_everything_read(self, db_session: AsyncSession, test_user: User):
        await notify(db_session, test_user.id, "one")
        await notify(db_session, test_user.id, "two")
        await db_session.commit()

        assert await mark_all_read(db_session, test_user.id) == 2

        await db_session.refresh(test_user)
        assert unread_count(test_user) == 0
        assert all(n["read"] for n in test_user.notifications)

    async def test_unknown_user(self, db_session: AsyncSession):
        assert await mark_all_read(db_session, uuid.uuid4()) == 0
