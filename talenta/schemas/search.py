"""Schemas for search and skill discovery."""
from __future__ import annotations

from pydantic import BaseModel

from .posts import PostResponse
from .profiles import AuthorSummary


class UserSearchResponse(BaseModel):
    items: list[AuthorSummary]


class PostSearchResponse(BaseModel):
    items: list[PostResponse]


class SkillCount(BaseModel):
    skill_category: str
    post_count: int


class SkillListResponse(BaseModel):
    items: list[SkillCount]


__all__ = ["UserSearchResponse", "PostSearchResponse", "SkillCount", "SkillListResponse"]
