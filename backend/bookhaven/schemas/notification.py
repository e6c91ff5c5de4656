"""Pydantic v2 response schemas for the notification inbox."""

from datetime import datetime

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: str
    message: str
    type: str
    read: bool
    created_at: datetime


class UnreadCountResponse(BaseModel):
    unread_count: int
