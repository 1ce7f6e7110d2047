"""Schemas used by messaging endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .profiles import AuthorSummary


class MessageSendRequest(BaseModel):
    receiver_id: UUID
    content: str = Field(..., min_length=1, max_length=2000)


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sender_id: UUID
    receiver_id: UUID
    content: str
    read: bool
    created_at: datetime
    sender: AuthorSummary | None = None


class ConversationResponse(BaseModel):
    user_id: UUID
    user: AuthorSummary | None = None
    last_message: MessageResponse
    unread_count: int = 0


class ConversationListResponse(BaseModel):
    items: List[ConversationResponse]


class MessageThreadResponse(BaseModel):
    partner_id: UUID
    messages: List[MessageResponse]


class MessageSendResponse(BaseModel):
    message: MessageResponse
    thread: MessageThreadResponse
    conversations: List[ConversationResponse]


__all__ = [
    "MessageSendRequest",
    "MessageResponse",
    "ConversationResponse",
    "ConversationListResponse",
    "MessageThreadResponse",
    "MessageSendResponse",
]
