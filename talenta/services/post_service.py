"""Post persistence and engagement (likes, comments, shares)."""
from __future__ import annotations

import logging
from typing import Any, cast
from uuid import UUID

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import POST_MEDIA_MAX_BYTES, POST_MEDIA_TYPES, PRIVACY_SETTINGS, SKILL_CATEGORIES
from ..models import Comment, Like, Post, Profile
from .feed_service import author_summary, fetch_post_records, post_rows_statement
from .follow_service import is_following
from .notification_service import NotificationType, notify_user
from .storage_service import discard_object, post_media_key, store_upload, validate_upload

logger = logging.getLogger(__name__)

MAX_POST_LENGTH = 2000
MAX_COMMENT_LENGTH = 500


def _get_post_or_404(db: Session, post_id: UUID) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def _ensure_owner(post: Post, requester_id: UUID, action: str) -> None:
    if cast(UUID, post.user_id) != requester_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Not allowed to {action} this post")


def can_view_post(db: Session, post: Post, viewer_id: UUID | None) -> bool:
    if post.privacy_setting == "public":
        return True
    if viewer_id is None:
        return False
    if post.user_id == viewer_id:
        return True
    if post.privacy_setting == "followers":
        return is_following(db, follower_id=viewer_id, target_id=post.user_id)
    return False


def _get_visible_post_or_404(db: Session, post_id: UUID, viewer_id: UUID | None) -> Post:
    post = _get_post_or_404(db, post_id)
    if not can_view_post(db, post, viewer_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def _media_type_for(content_type: str | None) -> str:
    return "video" if (content_type or "").lower().startswith("video/") else "image"


def _commit_or_500(db: Session, detail: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(detail)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail) from exc


def get_post_record(db: Session, *, post_id: UUID, viewer_id: UUID | None) -> dict[str, Any]:
    _get_visible_post_or_404(db, post_id, viewer_id)
    records = fetch_post_records(db, post_rows_statement().where(Post.id == post_id), viewer_id=viewer_id)
    if not records:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return records[0]


async def create_post_record(
    db: Session,
    *,
    author: Profile,
    content: str | None,
    skill_category: str,
    privacy_setting: str = "public",
    media: UploadFile | None = None,
) -> dict[str, Any]:
    """Validate and store a new post, uploading its media first when present."""

    text = (content or "").strip() or None
    if text is not None and len(text) > MAX_POST_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Content must be at most {MAX_POST_LENGTH} characters",
        )
    if skill_category not in SKILL_CATEGORIES:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Unknown skill category")
    if privacy_setting not in PRIVACY_SETTINGS:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Unknown privacy setting")

    has_media = media is not None and bool(media.filename)
    if text is None and not has_media:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Post needs content or media")

    post = Post(
        user_id=author.id,
        content=text,
        skill_category=skill_category,
        privacy_setting=privacy_setting,
    )

    if has_media:
        upload = cast(UploadFile, media)
        validate_upload(upload, max_bytes=POST_MEDIA_MAX_BYTES, allowed_types=POST_MEDIA_TYPES, label="Media")
        stored = await store_upload(upload, key=post_media_key(author.id, upload.filename))
        post.media_url = stored.url
        post.media_path = stored.key
        post.media_type = _media_type_for(stored.content_type)

    db.add(post)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create post for %s", author.id)
        discard_object(post.media_path)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create post") from exc
    db.refresh(post)

    return get_post_record(db, post_id=post.id, viewer_id=author.id)


def update_post_record(db: Session, *, post_id: UUID, requester: Profile, content: str) -> dict[str, Any]:
    post = _get_post_or_404(db, post_id)
    _ensure_owner(post, requester.id, "edit")

    text = (content or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Content cannot be empty")

    post.content = text
    _commit_or_500(db, "Failed to update post")

    notify_user(
        db,
        user_id=requester.id,
        actor_id=None,
        type_=NotificationType.CONTENT,
        title="Post Updated",
        message="Your post has been updated successfully",
        related_post_id=post.id,
    )
    return get_post_record(db, post_id=post.id, viewer_id=requester.id)


def delete_post_record(db: Session, *, post_id: UUID, requester: Profile) -> None:
    """Delete a post owned by ``requester``; stored media is removed best-effort."""

    post = _get_post_or_404(db, post_id)
    _ensure_owner(post, requester.id, "delete")

    media_path = post.media_path
    db.delete(post)
    _commit_or_500(db, "Failed to delete post")

    if media_path:
        discard_object(media_path)

    notify_user(
        db,
        user_id=requester.id,
        actor_id=None,
        type_=NotificationType.CONTENT,
        title="Post Deleted",
        message="Your post has been deleted successfully",
    )


def list_profile_posts(db: Session, *, user_id: UUID, viewer_id: UUID | None) -> list[dict[str, Any]]:
    """Posts of ``user_id`` newest first, filtered by what the viewer may see."""

    stmt = post_rows_statement().where(Post.user_id == user_id)
    if viewer_id != user_id:
        visible = ["public"]
        if is_following(db, follower_id=viewer_id, target_id=user_id):
            visible.append("followers")
        stmt = stmt.where(Post.privacy_setting.in_(visible))
    stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
    return fetch_post_records(db, stmt, viewer_id=viewer_id)


def count_posts(db: Session, user_id: UUID) -> int:
    return int(db.scalar(select(func.count(Post.id)).where(Post.user_id == user_id)) or 0)


def _find_like(db: Session, post_id: UUID, user_id: UUID) -> Like | None:
    return db.scalar(select(Like).where(Like.post_id == post_id, Like.user_id == user_id))


def _post_engagement_snapshot(db: Session, post_id: UUID, viewer_id: UUID | None) -> dict[str, Any]:
    likes_count = db.scalar(select(func.count(Like.id)).where(Like.post_id == post_id)) or 0
    comments_count = db.scalar(select(func.count(Comment.id)).where(Comment.post_id == post_id)) or 0
    shares_count = db.scalar(select(Post.shares_count).where(Post.id == post_id)) or 0
    user_liked = False
    if viewer_id is not None:
        user_liked = (
            db.scalar(select(Like.id).where(Like.post_id == post_id, Like.user_id == viewer_id).limit(1))
            is not None
        )
    return {
        "post_id": post_id,
        "likes_count": int(likes_count),
        "comments_count": int(comments_count),
        "shares_count": int(shares_count),
        "user_liked": user_liked,
    }


def set_post_like_state(
    db: Session,
    *,
    post_id: UUID,
    user: Profile,
    should_like: bool,
) -> dict[str, Any]:
    """Drive the viewer's like on ``post_id`` to ``should_like``.

    Repeating a call is a no-op. A duplicate insert racing another request
    hits the unique constraint and is treated as already liked.
    """

    post = _get_visible_post_or_404(db, post_id, user.id)
    existing = _find_like(db, post_id, user.id)
    changed = False

    if should_like and existing is None:
        db.add(Like(post_id=post_id, user_id=user.id))
        try:
            db.commit()
            changed = True
        except IntegrityError:
            db.rollback()
            logger.info("Like on %s by %s already recorded", post_id, user.id)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Failed to like post %s", post_id)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update like") from exc
        if changed:
            notify_user(
                db,
                user_id=post.user_id,
                actor_id=user.id,
                type_=NotificationType.LIKE,
                title="New Like",
                message="Someone liked your post",
                related_post_id=post_id,
            )
    elif not should_like and existing is not None:
        db.delete(existing)
        _commit_or_500(db, "Failed to update like")
        changed = True

    snapshot = _post_engagement_snapshot(db, post_id, user.id)
    snapshot["changed"] = changed
    return snapshot


def toggle_post_like(db: Session, *, post_id: UUID, user: Profile) -> dict[str, Any]:
    currently_liked = _find_like(db, post_id, user.id) is not None
    return set_post_like_state(db, post_id=post_id, user=user, should_like=not currently_liked)


def _serialize_comment(comment: Comment, author: Profile | None) -> dict[str, Any]:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "user_id": comment.user_id,
        "content": comment.content,
        "created_at": comment.created_at,
        "author": author_summary(author),
    }


def list_post_comments(db: Session, *, post_id: UUID, viewer_id: UUID | None = None) -> list[dict[str, Any]]:
    _get_visible_post_or_404(db, post_id, viewer_id)
    stmt = (
        select(Comment, Profile)
        .join(Profile, Comment.user_id == Profile.id)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return [_serialize_comment(comment, author) for comment, author in db.execute(stmt).all()]


def create_post_comment(db: Session, *, post_id: UUID, author: Profile, content: str) -> dict[str, Any]:
    post = _get_visible_post_or_404(db, post_id, author.id)
    text = (content or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Comment cannot be empty")
    if len(text) > MAX_COMMENT_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Comment must be at most {MAX_COMMENT_LENGTH} characters",
        )

    comment = Comment(post_id=post.id, user_id=author.id, content=text)
    db.add(comment)
    _commit_or_500(db, "Failed to add comment")
    db.refresh(comment)

    notify_user(
        db,
        user_id=post.user_id,
        actor_id=author.id,
        type_=NotificationType.COMMENT,
        title="New Comment",
        message="Someone commented on your post",
        related_post_id=post.id,
    )
    return _serialize_comment(comment, author)


def record_share(db: Session, *, post_id: UUID, viewer_id: UUID | None) -> dict[str, Any]:
    """Increment the share counter atomically in the database."""

    _get_visible_post_or_404(db, post_id, viewer_id)
    stmt = (
        update(Post)
        .where(Post.id == post_id)
        .values(shares_count=Post.shares_count + 1)
        .execution_options(synchronize_session=False)
    )
    try:
        db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to record share on %s", post_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to record share") from exc
    snapshot = _post_engagement_snapshot(db, post_id, viewer_id)
    snapshot["changed"] = True
    return snapshot


__all__ = [
    "can_view_post",
    "get_post_record",
    "create_post_record",
    "update_post_record",
    "delete_post_record",
    "list_profile_posts",
    "count_posts",
    "set_post_like_state",
    "toggle_post_like",
    "list_post_comments",
    "create_post_comment",
    "record_share",
]
