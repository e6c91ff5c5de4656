"""Notification inbox API router."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookhaven.api.deps import get_caller_id, get_db
from bookhaven.models.user import User
from bookhaven.schemas.auth import SuccessResponse
from bookhaven.schemas.notification import NotificationResponse, UnreadCountResponse
from bookhaven.services import notification_service
from bookhaven.services.errors import NotFound
from bookhaven.services.user_store import get_user

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


async def _load_user(db: AsyncSession, caller_id: uuid.UUID) -> User:
    user = await get_user(db, caller_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("", response_model=list[NotificationResponse], summary="List notifications")
async def list_notifications(
    db: AsyncSession = Depends(get_db),
    caller_id: uuid.UUID = Depends(get_caller_id),
) -> list[NotificationResponse]:
    """Return the caller's notifications, newest first."""
    user = await _load_user(db, caller_id)
    return [NotificationResponse(**entry) for entry in reversed(user.notifications or [])]


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Count unread notifications")
async def get_unread_count(
    db: AsyncSession = Depends(get_db),
    caller_id: uuid.UUID = Depends(get_caller_id),
) -> UnreadCountResponse:
    user = await _load_user(db, caller_id)
    return UnreadCountResponse(unread_count=notification_service.unread_count(user))


@router.put("/mark-as-read", response_model=SuccessResponse, summary="Mark all notifications as read")
async def mark_as_read(
    db: AsyncSession = Depends(get_db),
    caller_id: uuid.UUID = Depends(get_caller_id),
) -> SuccessResponse:
    user = await _load_user(db, caller_id)
    await notification_service.mark_all_read(db, user.id)
    return SuccessResponse()
