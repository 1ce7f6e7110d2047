"""Schemas for notifications."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .profiles import AuthorSummary


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    type: str
    title: str
    message: str
    read: bool
    related_user_id: UUID | None = None
    related_post_id: UUID | None = None
    created_at: datetime
    related_user: AuthorSummary | None = None


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    unread_count: int = 0


class UnreadSummaryResponse(BaseModel):
    unread_notifications: int = 0
    unread_messages: int = 0


__all__ = ["NotificationResponse", "NotificationListResponse", "UnreadSummaryResponse"]
