"""Business logic for follower relationships."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Follow, Profile
from .notification_service import NotificationType, notify_user

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FollowStats:
    user_id: UUID
    followers_count: int
    following_count: int
    is_following: bool


def _get_profile_or_404(db: Session, user_id: UUID) -> Profile:
    profile = db.get(Profile, user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return profile


def _find_follow(db: Session, follower_id: UUID, target_id: UUID) -> Follow | None:
    return db.scalar(select(Follow).where(Follow.follower_id == follower_id, Follow.following_id == target_id))


def is_following(db: Session, *, follower_id: UUID | None, target_id: UUID) -> bool:
    if follower_id is None:
        return False
    return _find_follow(db, follower_id, target_id) is not None


def follow_user(db: Session, *, follower: Profile, target_id: UUID) -> bool:
    """Make ``follower`` follow ``target_id``; returns ``False`` when already following."""

    follower_id = cast(UUID, follower.id)
    if follower_id == target_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot follow yourself")

    _get_profile_or_404(db, target_id)

    if _find_follow(db, follower_id, target_id) is not None:
        return False

    db.add(Follow(follower_id=follower_id, following_id=target_id))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same pair first.
        db.rollback()
        return False
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to follow %s", target_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to follow user") from exc

    notify_user(
        db,
        user_id=target_id,
        actor_id=follower_id,
        type_=NotificationType.FOLLOW,
        title="New Follower",
        message=f"{follower.full_name or 'Someone'} started following you",
    )
    return True


def unfollow_user(db: Session, *, follower: Profile, target_id: UUID) -> bool:
    follower_id = cast(UUID, follower.id)
    if follower_id == target_id:
        return False

    record = _find_follow(db, follower_id, target_id)
    if record is None:
        return False
    try:
        db.delete(record)
        db.commit()
        return True
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to unfollow %s", target_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to unfollow user") from exc


def count_followers(db: Session, user_id: UUID) -> int:
    return int(db.scalar(select(func.count()).select_from(Follow).where(Follow.following_id == user_id)) or 0)


def count_following(db: Session, user_id: UUID) -> int:
    return int(db.scalar(select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)) or 0)


def get_follow_stats(db: Session, *, user_id: UUID, viewer_id: UUID | None = None) -> FollowStats:
    _get_profile_or_404(db, user_id)
    return FollowStats(
        user_id=user_id,
        followers_count=count_followers(db, user_id),
        following_count=count_following(db, user_id),
        is_following=is_following(db, follower_id=viewer_id, target_id=user_id),
    )


__all__ = [
    "FollowStats",
    "follow_user",
    "unfollow_user",
    "is_following",
    "count_followers",
    "count_following",
    "get_follow_stats",
]
