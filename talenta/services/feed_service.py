"""Feed aggregation: public posts joined with their authors and engagement counts."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import FEED_DEFAULT_LIMIT, FEED_MAX_LIMIT, TRENDING_WINDOW
from ..models import Comment, Like, Post, Profile

logger = logging.getLogger(__name__)

FEED_SORTS = ("recent", "popular", "trending")


def like_count_column():
    return (
        select(func.count(Like.id))
        .where(Like.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
        .label("likes_count")
    )


def comment_count_column():
    return (
        select(func.count(Comment.id))
        .where(Comment.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
        .label("comments_count")
    )


def post_rows_statement() -> Select:
    """SELECT post, author, likes_count, comments_count with the author joined."""

    return select(Post, Profile, like_count_column(), comment_count_column()).join(Profile, Post.user_id == Profile.id)


def liked_post_ids(db: Session, viewer_id: UUID | None, post_ids: Iterable[UUID]) -> set[UUID]:
    """Return the subset of ``post_ids`` the viewer has liked."""

    ids = list(post_ids)
    if viewer_id is None or not ids:
        return set()
    stmt = select(Like.post_id).where(Like.user_id == viewer_id, Like.post_id.in_(ids))
    return set(db.scalars(stmt))


def author_summary(profile: Profile | None) -> dict[str, Any] | None:
    if profile is None:
        return None
    return {
        "id": profile.id,
        "username": profile.username,
        "full_name": profile.full_name,
        "avatar_url": profile.avatar_url,
    }


def serialize_post(
    post: Post,
    author: Profile | None,
    *,
    likes_count: int,
    comments_count: int,
    user_liked: bool,
) -> dict[str, Any]:
    return {
        "id": post.id,
        "user_id": post.user_id,
        "content": post.content,
        "media_url": post.media_url,
        "media_type": post.media_type,
        "skill_category": post.skill_category,
        "privacy_setting": post.privacy_setting,
        "likes_count": int(likes_count or 0),
        "comments_count": int(comments_count or 0),
        "shares_count": int(post.shares_count or 0),
        "created_at": post.created_at,
        "updated_at": post.updated_at,
        "author": author_summary(author),
        "user_liked": user_liked,
    }


def fetch_post_records(db: Session, stmt: Select, *, viewer_id: UUID | None) -> list[dict[str, Any]]:
    """Run a statement built on :func:`post_rows_statement` and annotate viewer likes."""

    rows: Sequence[Any] = db.execute(stmt).all()
    liked = liked_post_ids(db, viewer_id, (row[0].id for row in rows))
    return [
        serialize_post(
            post,
            author,
            likes_count=likes_count,
            comments_count=comments_count,
            user_liked=post.id in liked,
        )
        for post, author, likes_count, comments_count in rows
    ]


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return FEED_DEFAULT_LIMIT
    return max(1, min(int(limit), FEED_MAX_LIMIT))


def list_feed(
    db: Session,
    *,
    viewer_id: UUID | None = None,
    sort: str = "recent",
    skill_category: str | None = None,
    limit: int | None = None,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Return one page of public posts ordered by ``sort``.

    ``recent`` orders by creation time. ``popular`` orders by like count over
    all time and ``trending`` does the same inside the trailing window. Ties
    fall back to newest first. Backend failures are logged and yield an empty
    page.
    """

    if sort not in FEED_SORTS:
        raise ValueError(f"Unsupported feed sort: {sort}")

    stmt = post_rows_statement().where(Post.privacy_setting == "public")
    if skill_category:
        stmt = stmt.where(Post.skill_category == skill_category)

    if sort == "recent":
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
    else:
        if sort == "trending":
            cutoff = (now or datetime.now(timezone.utc)) - TRENDING_WINDOW
            stmt = stmt.where(Post.created_at >= cutoff)
        likes = stmt.selected_columns.likes_count
        stmt = stmt.order_by(likes.desc(), Post.created_at.desc(), Post.id.desc())

    stmt = stmt.limit(clamp_limit(limit))

    try:
        return fetch_post_records(db, stmt, viewer_id=viewer_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to load %s feed", sort)
        return []


__all__ = [
    "FEED_SORTS",
    "author_summary",
    "clamp_limit",
    "comment_count_column",
    "fetch_post_records",
    "like_count_column",
    "liked_post_ids",
    "list_feed",
    "post_rows_statement",
    "serialize_post",
]
