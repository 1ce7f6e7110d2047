"""Pydantic schemas for posts, feeds and engagement."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from .profiles import AuthorSummary

FeedSort = Literal["recent", "popular", "trending"]
PrivacySetting = Literal["public", "followers", "private"]


class PostResponse(BaseModel):
    """Serialized post joined with its author and the viewer's like status."""

    id: UUID
    user_id: UUID
    content: str | None = None
    media_url: str | None = None
    media_type: str | None = None
    skill_category: str
    privacy_setting: str
    likes_count: int = 0
    comments_count: int = 0
    shares_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None
    author: AuthorSummary | None = None
    user_liked: bool = False


class PostFeedResponse(BaseModel):
    """Envelope used when returning a collection of posts."""

    items: list[PostResponse]


class PostUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class PostEngagementResponse(BaseModel):
    """Counters and viewer state returned after an engagement change."""

    post_id: UUID
    likes_count: int
    comments_count: int
    shares_count: int
    user_liked: bool
    changed: bool = False


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=500)


class CommentResponse(BaseModel):
    id: UUID
    post_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    author: AuthorSummary | None = None


class CommentListResponse(BaseModel):
    items: list[CommentResponse]


__all__ = [
    "FeedSort",
    "PrivacySetting",
    "PostResponse",
    "PostFeedResponse",
    "PostUpdate",
    "PostEngagementResponse",
    "CommentCreate",
    "CommentResponse",
    "CommentListResponse",
]
