"""Schemas for portfolio references."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel

ReferenceType = Literal["document", "link"]


class ReferenceResponse(BaseModel):
    id: UUID
    user_id: UUID
    type: str
    title: str
    description: str | None = None
    url: str | None = None
    file_path: str | None = None
    file_name: str | None = None
    file_size: int | None = None
    file_url: str | None = None
    created_at: datetime


class ReferenceListResponse(BaseModel):
    items: list[ReferenceResponse]


__all__ = ["ReferenceType", "ReferenceResponse", "ReferenceListResponse"]
