"""Direct messaging between two profiles."""
from __future__ import annotations

import logging
from typing import Any, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..constants import HIRE_MESSAGE_PREFIX
from ..models import Message, Profile
from ..schemas import MessageResponse
from .change_feed import schedule_change
from .feed_service import author_summary
from .notification_service import NotificationType, notify_user

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


def _serialize_message(message: Message) -> dict[str, Any]:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "content": message.content,
        "read": bool(message.read),
        "created_at": message.created_at,
        "sender": author_summary(message.sender),
    }


def list_conversations(db: Session, *, user_id: UUID) -> list[dict[str, Any]]:
    """Group the user's messages by partner, newest conversation first.

    ``unread_count`` only counts messages addressed to ``user_id``.
    """

    stmt = (
        select(Message)
        .options(selectinload(Message.sender), selectinload(Message.receiver))
        .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
        .order_by(Message.created_at.desc(), Message.id.desc())
    )

    conversations: dict[UUID, dict[str, Any]] = {}
    for message in db.scalars(stmt):
        outgoing = message.sender_id == user_id
        partner_id = cast(UUID, message.receiver_id if outgoing else message.sender_id)
        conversation = conversations.get(partner_id)
        if conversation is None:
            partner = message.receiver if outgoing else message.sender
            conversation = {
                "user_id": partner_id,
                "user": author_summary(partner),
                "last_message": _serialize_message(message),
                "unread_count": 0,
            }
            conversations[partner_id] = conversation
        if not outgoing and not message.read:
            conversation["unread_count"] += 1

    return list(conversations.values())


def list_thread(db: Session, *, user_id: UUID, partner_id: UUID) -> list[dict[str, Any]]:
    stmt = (
        select(Message)
        .options(selectinload(Message.sender))
        .where(
            or_(
                (Message.sender_id == user_id) & (Message.receiver_id == partner_id),
                (Message.sender_id == partner_id) & (Message.receiver_id == user_id),
            )
        )
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return [_serialize_message(message) for message in db.scalars(stmt)]


def open_conversation(db: Session, *, user_id: UUID, partner_id: UUID) -> list[dict[str, Any]]:
    """Return the full thread with ``partner_id`` and mark their messages to the user as read."""

    if db.get(Profile, partner_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    stmt = (
        update(Message)
        .where(
            Message.sender_id == partner_id,
            Message.receiver_id == user_id,
            Message.read.is_(False),
        )
        .values(read=True)
        .execution_options(synchronize_session="fetch")
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to mark messages from %s as read", partner_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to open conversation") from exc

    if result.rowcount:
        schedule_change(
            [user_id, partner_id],
            table="messages",
            event="UPDATE",
            record={"sender_id": str(partner_id), "receiver_id": str(user_id), "read": True},
        )
    return list_thread(db, user_id=user_id, partner_id=partner_id)


def count_unread_messages(db: Session, *, user_id: UUID) -> int:
    stmt = (
        select(func.count())
        .select_from(Message)
        .where(Message.receiver_id == user_id, Message.read.is_(False))
    )
    return int(db.scalar(stmt) or 0)


def _insert_message(db: Session, *, sender: Profile, receiver_id: UUID, content: str) -> Message:
    text = (content or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Message cannot be empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Message must be at most {MAX_MESSAGE_LENGTH} characters",
        )
    if receiver_id == sender.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot message yourself")
    if db.get(Profile, receiver_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")

    message = Message(sender_id=sender.id, receiver_id=receiver_id, content=text)
    try:
        db.add(message)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to persist message from %s", sender.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send message") from exc

    db.refresh(message)
    record = MessageResponse.model_validate(message).model_dump(mode="json", exclude={"sender"})
    schedule_change([sender.id, receiver_id], table="messages", event="INSERT", record=record)
    return message


def send_message(db: Session, *, sender: Profile, receiver_id: UUID, content: str) -> dict[str, Any]:
    """Insert a message and return it with the refreshed thread and conversation list."""

    message = _insert_message(db, sender=sender, receiver_id=receiver_id, content=content)
    return {
        "message": _serialize_message(message),
        "thread": {
            "partner_id": receiver_id,
            "messages": list_thread(db, user_id=sender.id, partner_id=receiver_id),
        },
        "conversations": list_conversations(db, user_id=sender.id),
    }


def send_hire_inquiry(db: Session, *, sender: Profile, target_id: UUID, note: str) -> dict[str, Any]:
    """Message a hireable profile on the sender's behalf and notify them."""

    target = db.get(Profile, target_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if not target.hireable:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This user is not available for hire")

    text = (note or "").strip()
    content = f"{HIRE_MESSAGE_PREFIX} {text}" if text else HIRE_MESSAGE_PREFIX
    message = _insert_message(db, sender=sender, receiver_id=target_id, content=content)

    notify_user(
        db,
        user_id=target_id,
        actor_id=sender.id,
        type_=NotificationType.MESSAGE,
        title="New Hire Inquiry",
        message="Someone is interested in hiring you!",
    )
    return _serialize_message(message)


__all__ = [
    "list_conversations",
    "list_thread",
    "open_conversation",
    "count_unread_messages",
    "send_message",
    "send_hire_inquiry",
]
