"""Post related API routes: feed, authoring and engagement."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from ..constants import FEED_DEFAULT_LIMIT, FEED_MAX_LIMIT
from ..database import get_session
from ..models import Profile
from ..schemas import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    FeedSort,
    PostEngagementResponse,
    PostFeedResponse,
    PostResponse,
    PostUpdate,
    PrivacySetting,
)
from ..services import (
    create_post_comment,
    create_post_record,
    delete_post_record,
    get_current_user,
    get_optional_user,
    get_post_record,
    list_feed,
    list_post_comments,
    record_share,
    set_post_like_state,
    toggle_post_like,
    update_post_record,
)

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/feed", response_model=PostFeedResponse)
async def feed_endpoint(
    sort: FeedSort = Query("recent"),
    skill_category: Optional[str] = Query(None),
    limit: int = Query(FEED_DEFAULT_LIMIT, ge=1, le=FEED_MAX_LIMIT),
    db: Session = Depends(get_session),
    viewer: Profile | None = Depends(get_optional_user),
) -> PostFeedResponse:
    records = list_feed(
        db,
        viewer_id=viewer.id if viewer else None,
        sort=sort,
        skill_category=skill_category,
        limit=limit,
    )
    return PostFeedResponse(items=[PostResponse(**record) for record in records])


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    skill_category: str = Form(...),
    content: Optional[str] = Form(None),
    privacy_setting: PrivacySetting = Form("public"),
    file: UploadFile | None = File(None),
    db: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
) -> PostResponse:
    record = await create_post_record(
        db,
        author=current_user,
        content=content,
        skill_category=skill_category,
        privacy_setting=privacy_setting,
        media=file,
    )
    return PostResponse(**record)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post_endpoint(
    post_id: UUID,
    db: Session = Depends(get_session),
    viewer: Profile | None = Depends(get_optional_user),
) -> PostResponse:
    return PostResponse(**get_post_record(db, post_id=post_id, viewer_id=viewer.id if viewer else None))


@router.patch("/{post_id}", response_model=PostResponse)
async def update_post_endpoint(
    post_id: UUID,
    payload: PostUpdate,
    db: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
) -> PostResponse:
    record = update_post_record(db, post_id=post_id, requester=current_user, content=payload.content)
    return PostResponse(**record)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post_endpoint(
    post_id: UUID,
    db: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
) -> None:
    delete_post_record(db, post_id=post_id, requester=current_user)


@router.put("/{post_id}/like", response_model=PostEngagementResponse)
async def like_post_endpoint(
    post_id: UUID,
    db: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
) -> PostEngagementResponse:
    snapshot = set_post_like_state(db, post_id=post_id, user=current_user, should_like=True)
    return PostEngagementResponse(**snapshot)


@router.delete("/{post_id}/like", response_model=PostEngagementResponse)
async def unlike_post_endpoint(
    post_id: UUID,
    db: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
) -> PostEngagementResponse:
    snapshot = set_post_like_state(db, post_id=post_id, user=current_user, should_like=False)
    return PostEngagementResponse(**snapshot)


@router.post("/{post_id}/like/toggle", response_model=PostEngagementResponse)
async def toggle_like_endpoint(
    post_id: UUID,
    db: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
) -> PostEngagementResponse:
    return PostEngagementResponse(**toggle_post_like(db, post_id=post_id, user=current_user))


@router.get("/{post_id}/comments", response_model=CommentListResponse)
async def list_post_comments_endpoint(
    post_id: UUID,
    db: Session = Depends(get_session),
    viewer: Profile | None = Depends(get_optional_user),
) -> CommentListResponse:
    comments = list_post_comments(db, post_id=post_id, viewer_id=viewer.id if viewer else None)
    return CommentListResponse(items=[CommentResponse(**item) for item in comments])


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_post_comment_endpoint(
    post_id: UUID,
    payload: CommentCreate,
    db: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
) -> CommentResponse:
    comment = create_post_comment(db, post_id=post_id, author=current_user, content=payload.content)
    return CommentResponse(**comment)


@router.post("/{post_id}/share", response_model=PostEngagementResponse)
async def share_post_endpoint(
    post_id: UUID,
    db: Session = Depends(get_session),
    viewer: Profile | None = Depends(get_optional_user),
) -> PostEngagementResponse:
    return PostEngagementResponse(**record_share(db, post_id=post_id, viewer_id=viewer.id if viewer else None))
