"""Notification helper logic for PostgreSQL-backed storage."""
from __future__ import annotations

import logging
from enum import StrEnum
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..constants import NOTIFICATION_LIST_LIMIT
from ..models import Notification
from ..schemas import NotificationResponse
from .change_feed import schedule_change

logger = logging.getLogger(__name__)


class NotificationType(StrEnum):
    WELCOME = "welcome"
    LIKE = "like"
    COMMENT = "comment"
    FOLLOW = "follow"
    MESSAGE = "message"
    CONTENT = "content"


def list_notifications(db: Session, user_id: UUID, *, limit: int = NOTIFICATION_LIST_LIMIT) -> list[Notification]:
    """Return the newest notifications for ``user_id`` with the related profile loaded."""

    stmt = (
        select(Notification)
        .options(selectinload(Notification.related_user))
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt))


def count_unread_notifications(db: Session, user_id: UUID) -> int:
    stmt = (
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
    )
    return int(db.scalar(stmt) or 0)


def add_notification(
    db: Session,
    *,
    user_id: UUID,
    type_: NotificationType | str,
    title: str,
    message: str,
    related_user_id: UUID | None = None,
    related_post_id: UUID | None = None,
) -> Notification:
    """Persist a notification for ``user_id`` and push it to their change feed."""

    notification = Notification(
        user_id=user_id,
        type=str(type_),
        title=title,
        message=message,
        related_user_id=related_user_id,
        related_post_id=related_post_id,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    publish_notification(notification, "INSERT")
    return notification


def notify_user(
    db: Session,
    *,
    user_id: UUID,
    actor_id: UUID | None,
    type_: NotificationType,
    title: str,
    message: str,
    related_post_id: UUID | None = None,
) -> Notification | None:
    """Create a notification as a side effect of another action.

    Self-notifications are skipped. A storage failure is logged and swallowed
    so the action that triggered it still succeeds.
    """

    if actor_id is not None and actor_id == user_id:
        return None
    try:
        return add_notification(
            db,
            user_id=user_id,
            type_=type_,
            title=title,
            message=message,
            related_user_id=actor_id,
            related_post_id=related_post_id,
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record %s notification for %s", type_, user_id)
        return None


def mark_notification_read(db: Session, *, notification_id: UUID, user_id: UUID) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None or notification.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if notification.read:
        return notification

    notification.read = True
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update notification") from exc
    db.refresh(notification)
    publish_notification(notification, "UPDATE")
    return notification


def mark_all_read(db: Session, user_id: UUID) -> int:
    """Mark every unread notification of ``user_id`` as read and return how many changed."""

    stmt = (
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session="fetch")
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update notifications") from exc
    changed = int(result.rowcount or 0)
    if changed:
        schedule_change(user_id, table="notifications", event="UPDATE", record={"user_id": str(user_id), "read": True})
    return changed


def publish_notification(notification: Notification, event: str) -> None:
    record = NotificationResponse.model_validate(notification).model_dump(mode="json", exclude={"related_user"})
    schedule_change(notification.user_id, table="notifications", event=event, record=record)


__all__ = [
    "NotificationType",
    "list_notifications",
    "count_unread_notifications",
    "add_notification",
    "notify_user",
    "mark_notification_read",
    "mark_all_read",
    "publish_notification",
]
