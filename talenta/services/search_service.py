"""Case-insensitive search over profiles and public posts."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..constants import SEARCH_RESULT_LIMIT
from ..models import Post, Profile
from .feed_service import fetch_post_records, post_rows_statement


def _pattern(term: str) -> str | None:
    cleaned = (term or "").strip()
    if not cleaned:
        return None
    escaped = cleaned.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_users(db: Session, term: str, *, limit: int = SEARCH_RESULT_LIMIT) -> list[Profile]:
    pattern = _pattern(term)
    if pattern is None:
        return []
    stmt = (
        select(Profile)
        .where(
            or_(
                Profile.username.ilike(pattern, escape="\\"),
                Profile.full_name.ilike(pattern, escape="\\"),
            )
        )
        .order_by(Profile.full_name.asc(), Profile.id.asc())
        .limit(limit)
    )
    return list(db.scalars(stmt))


def search_posts(
    db: Session,
    term: str,
    *,
    viewer_id: UUID | None = None,
    limit: int = SEARCH_RESULT_LIMIT,
) -> list[dict[str, Any]]:
    """Public posts whose content or skill category matches ``term``, newest first."""

    pattern = _pattern(term)
    if pattern is None:
        return []
    stmt = (
        post_rows_statement()
        .where(
            Post.privacy_setting == "public",
            or_(
                Post.content.ilike(pattern, escape="\\"),
                Post.skill_category.ilike(pattern, escape="\\"),
            ),
        )
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
    )
    return fetch_post_records(db, stmt, viewer_id=viewer_id)


__all__ = ["search_users", "search_posts"]
