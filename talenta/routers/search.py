"""Search and skill discovery routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Profile
from ..schemas import AuthorSummary, PostResponse, PostSearchResponse, SkillCount, SkillListResponse, UserSearchResponse
from ..services import get_optional_user, search_posts, search_users, suggested_skills, trending_skills

router = APIRouter(tags=["search"])


@router.get("/search/users", response_model=UserSearchResponse)
async def search_users_endpoint(
    q: str = Query(..., min_length=1, max_length=100),
    db: Session = Depends(get_session),
) -> UserSearchResponse:
    return UserSearchResponse(items=[AuthorSummary.model_validate(profile) for profile in search_users(db, q)])


@router.get("/search/posts", response_model=PostSearchResponse)
async def search_posts_endpoint(
    q: str = Query(..., min_length=1, max_length=100),
    db: Session = Depends(get_session),
    viewer: Profile | None = Depends(get_optional_user),
) -> PostSearchResponse:
    records = search_posts(db, q, viewer_id=viewer.id if viewer else None)
    return PostSearchResponse(items=[PostResponse(**record) for record in records])


@router.get("/skills/suggested", response_model=SkillListResponse)
async def suggested_skills_endpoint(db: Session = Depends(get_session)) -> SkillListResponse:
    return SkillListResponse(items=[SkillCount(**item) for item in suggested_skills(db)])


@router.get("/skills/trending", response_model=SkillListResponse)
async def trending_skills_endpoint(db: Session = Depends(get_session)) -> SkillListResponse:
    return SkillListResponse(items=[SkillCount(**item) for item in trending_skills(db)])
