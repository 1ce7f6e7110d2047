from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import AVATAR_MAX_BYTES
from ..models import Profile
from ..schemas import ProfileUpdate
from .follow_service import count_followers, count_following, is_following
from .post_service import count_posts
from .storage_service import avatar_key, discard_object, store_upload, validate_upload

logger = logging.getLogger(__name__)


def get_profile_or_404(db: Session, user_id: UUID) -> Profile:
    profile = db.get(Profile, user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


def profile_view(db: Session, profile: Profile, *, viewer_id: UUID | None = None) -> dict[str, Any]:
    """Serialize ``profile`` with its counters derived from the follow and post tables."""

    return {
        "id": profile.id,
        "email": profile.email,
        "username": profile.username,
        "full_name": profile.full_name,
        "bio": profile.bio,
        "avatar_url": profile.avatar_url,
        "skill_tags": list(profile.skill_tags or []),
        "hireable": bool(profile.hireable),
        "followers_count": count_followers(db, profile.id),
        "following_count": count_following(db, profile.id),
        "posts_count": count_posts(db, profile.id),
        "learning_streak": int(profile.learning_streak or 0),
        "is_following": viewer_id is not None
        and viewer_id != profile.id
        and is_following(db, follower_id=viewer_id, target_id=profile.id),
        "created_at": profile.created_at,
    }


def get_profile(db: Session, *, user_id: UUID, viewer_id: UUID | None = None) -> dict[str, Any]:
    return profile_view(db, get_profile_or_404(db, user_id), viewer_id=viewer_id)


def _username_taken(db: Session, username: str, owner_id: UUID) -> bool:
    stmt = select(Profile.id).where(func.lower(Profile.username) == username.lower(), Profile.id != owner_id)
    return db.scalar(stmt) is not None


async def update_profile(
    db: Session,
    *,
    user_id: UUID,
    payload: ProfileUpdate,
    avatar: UploadFile | None = None,
) -> Profile:
    """Apply profile updates for ``user_id`` in a single write.

    When an avatar is supplied it is validated and uploaded before anything is
    written, so a failed upload leaves the profile untouched. If the write then
    fails the uploaded avatar is removed again.
    """

    profile = get_profile_or_404(db, user_id)

    # Only update fields that were actually sent by the client
    update_data = payload.model_dump(exclude_unset=True)
    if update_data.get("hireable") is None:
        update_data.pop("hireable", None)
    if update_data.get("skill_tags") is None and "skill_tags" in update_data:
        update_data["skill_tags"] = []

    username = update_data.get("username")
    if username and _username_taken(db, username, user_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    stored_key: str | None = None
    if avatar is not None and avatar.filename:
        validate_upload(avatar, max_bytes=AVATAR_MAX_BYTES, type_prefix="image/", label="Avatar")
        stored = await store_upload(avatar, key=avatar_key(user_id, avatar.filename))
        stored_key = stored.key
        update_data["avatar_url"] = stored.url

    for field, value in update_data.items():
        setattr(profile, field, value)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        discard_object(stored_key)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        discard_object(stored_key)
        logger.exception("Failed to update profile %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile",
        ) from exc

    db.refresh(profile)
    return profile


def set_hireable(db: Session, *, user_id: UUID, hireable: bool) -> Profile:
    profile = get_profile_or_404(db, user_id)
    profile.hireable = hireable
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update hireable flag for %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile",
        ) from exc
    db.refresh(profile)
    return profile


__all__ = ["get_profile_or_404", "profile_view", "get_profile", "update_profile", "set_hireable"]
