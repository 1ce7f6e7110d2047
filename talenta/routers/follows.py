"""Follow management API routes."""
from __future__ import annotations

from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Profile
from ..schemas import FollowActionResponse, FollowStatsResponse
from ..services import (
    follow_user,
    get_current_user,
    get_follow_stats,
    get_optional_user,
    unfollow_user,
)

router = APIRouter(prefix="/follows", tags=["follows"])


def _action_response(db: Session, *, target_id: UUID, viewer_id: UUID, outcome: str) -> FollowActionResponse:
    stats = get_follow_stats(db, user_id=target_id, viewer_id=viewer_id)
    return FollowActionResponse(status=outcome, **asdict(stats))


@router.post("/{target_id}", response_model=FollowActionResponse, status_code=status.HTTP_201_CREATED)
async def follow_user_endpoint(
    target_id: UUID,
    db: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
) -> FollowActionResponse:
    changed = follow_user(db, follower=current_user, target_id=target_id)
    return _action_response(db, target_id=target_id, viewer_id=current_user.id, outcome="followed" if changed else "noop")


@router.delete("/{target_id}", response_model=FollowActionResponse)
async def unfollow_user_endpoint(
    target_id: UUID,
    db: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
) -> FollowActionResponse:
    changed = unfollow_user(db, follower=current_user, target_id=target_id)
    return _action_response(
        db, target_id=target_id, viewer_id=current_user.id, outcome="unfollowed" if changed else "noop"
    )


@router.get("/stats/{user_id}", response_model=FollowStatsResponse)
async def follow_stats_endpoint(
    user_id: UUID,
    db: Session = Depends(get_session),
    viewer: Profile | None = Depends(get_optional_user),
) -> FollowStatsResponse:
    stats = get_follow_stats(db, user_id=user_id, viewer_id=viewer.id if viewer else None)
    return FollowStatsResponse(**asdict(stats))
