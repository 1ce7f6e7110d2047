"""Messaging API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Profile
from ..schemas import (
    ConversationListResponse,
    ConversationResponse,
    MessageResponse,
    MessageSendRequest,
    MessageSendResponse,
    MessageThreadResponse,
)
from ..services import (
    count_unread_messages,
    get_current_user,
    list_conversations,
    open_conversation,
    send_message,
)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations_endpoint(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ConversationListResponse:
    conversations = list_conversations(db, user_id=current_user.id)
    return ConversationListResponse(items=[ConversationResponse(**item) for item in conversations])


@router.get("/unread-count", response_model=int)
async def unread_count_endpoint(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> int:
    return count_unread_messages(db, user_id=current_user.id)


@router.get("/{partner_id}", response_model=MessageThreadResponse)
async def open_conversation_endpoint(
    partner_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MessageThreadResponse:
    messages = open_conversation(db, user_id=current_user.id, partner_id=partner_id)
    return MessageThreadResponse(partner_id=partner_id, messages=[MessageResponse(**item) for item in messages])


@router.post("/", response_model=MessageSendResponse, status_code=status.HTTP_201_CREATED)
async def send_message_endpoint(
    payload: MessageSendRequest,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MessageSendResponse:
    result = send_message(db, sender=current_user, receiver_id=payload.receiver_id, content=payload.content)
    return MessageSendResponse.model_validate(result)
