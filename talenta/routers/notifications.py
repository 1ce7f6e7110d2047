"""Notification API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Profile
from ..schemas import NotificationListResponse, NotificationResponse, StatusMessage, UnreadSummaryResponse
from ..services import (
    count_unread_messages,
    count_unread_notifications,
    get_current_user,
    list_notifications,
    mark_all_read,
    mark_notification_read,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationListResponse)
async def list_my_notifications(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationListResponse:
    records = list_notifications(db, current_user.id)
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(item) for item in records],
        unread_count=count_unread_notifications(db, current_user.id),
    )


@router.get("/summary", response_model=UnreadSummaryResponse)
async def unread_summary_endpoint(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> UnreadSummaryResponse:
    return UnreadSummaryResponse(
        unread_notifications=count_unread_notifications(db, current_user.id),
        unread_messages=count_unread_messages(db, user_id=current_user.id),
    )


@router.post("/read-all", response_model=StatusMessage)
async def mark_notifications_read(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> StatusMessage:
    changed = mark_all_read(db, current_user.id)
    return StatusMessage(status="ok", message=f"{changed} notifications marked as read")


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read_endpoint(
    notification_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> NotificationResponse:
    record = mark_notification_read(db, notification_id=notification_id, user_id=current_user.id)
    return NotificationResponse.model_validate(record)
