"""Schemas for profile endpoints."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import MAX_SKILL_TAGS


class AuthorSummary(BaseModel):
    """Compact profile fields embedded in posts, comments and messages."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str | None = None
    full_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    skill_tags: list[str] = Field(default_factory=list)
    hireable: bool = False
    followers_count: int = 0
    following_count: int = 0
    posts_count: int = 0
    learning_streak: int = 0
    is_following: bool = False
    created_at: datetime


class AccountResponse(ProfileResponse):
    """Profile of the authenticated caller, including private fields."""

    email: str


class ProfileUpdate(BaseModel):
    """Editable profile fields; only the ones supplied are written and blanks clear a field."""

    full_name: str | None = Field(default=None, max_length=150)
    username: str | None = Field(default=None, max_length=150)
    bio: str | None = Field(default=None, max_length=500)
    skill_tags: list[str] | None = None
    hireable: bool | None = None

    @field_validator("full_name", "username", "bio", mode="before")
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("skill_tags", mode="before")
    @classmethod
    def normalize_tags(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(",")
        tags: list[str] = []
        for raw in value:
            tag = str(raw).strip()
            if tag and tag not in tags:
                tags.append(tag)
        if len(tags) > MAX_SKILL_TAGS:
            raise ValueError(f"At most {MAX_SKILL_TAGS} skill tags are allowed")
        return tags


class HireableUpdate(BaseModel):
    hireable: bool


class HireRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=1800)


__all__ = ["AuthorSummary", "ProfileResponse", "AccountResponse", "ProfileUpdate", "HireableUpdate", "HireRequest"]
