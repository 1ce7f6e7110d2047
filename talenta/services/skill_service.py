"""Skill category rankings derived from public posts."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..constants import SUGGESTED_SKILLS_LIMIT, TRENDING_SKILLS_LIMIT, TRENDING_WINDOW
from ..models import Post


def _rank_categories(db: Session, *, limit: int, since: datetime | None = None) -> list[dict[str, object]]:
    post_count = func.count(Post.id).label("post_count")
    stmt = select(Post.skill_category, post_count).where(Post.privacy_setting == "public")
    if since is not None:
        stmt = stmt.where(Post.created_at >= since)
    stmt = stmt.group_by(Post.skill_category).order_by(post_count.desc(), Post.skill_category.asc()).limit(limit)
    return [
        {"skill_category": category, "post_count": int(count)}
        for category, count in db.execute(stmt).all()
    ]


def suggested_skills(db: Session) -> list[dict[str, object]]:
    """Categories with the most public posts overall."""

    return _rank_categories(db, limit=SUGGESTED_SKILLS_LIMIT)


def trending_skills(db: Session, *, now: datetime | None = None) -> list[dict[str, object]]:
    """Categories with the most public posts inside the trailing trending window."""

    cutoff = (now or datetime.now(timezone.utc)) - TRENDING_WINDOW
    return _rank_categories(db, limit=TRENDING_SKILLS_LIMIT, since=cutoff)


__all__ = ["suggested_skills", "trending_skills"]
