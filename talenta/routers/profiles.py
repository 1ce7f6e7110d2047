"""Profile API routes: profile pages, editing, portfolio references and hire inquiries."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Profile
from ..schemas import (
    AccountResponse,
    HireableUpdate,
    HireRequest,
    MessageResponse,
    PostFeedResponse,
    PostResponse,
    ProfileResponse,
    ProfileUpdate,
    ReferenceListResponse,
    ReferenceResponse,
    ReferenceType,
)
from ..services import (
    add_reference,
    delete_reference,
    get_current_user,
    get_optional_user,
    get_profile,
    list_profile_posts,
    list_references,
    profile_view,
    send_hire_inquiry,
    serialize_reference,
    set_hireable,
    update_profile,
)

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=AccountResponse)
async def retrieve_my_profile(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> AccountResponse:
    return AccountResponse(**profile_view(db, current_user, viewer_id=current_user.id))


@router.put("/me", response_model=AccountResponse)
async def update_my_profile(
    full_name: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    skill_tags: Optional[str] = Form(None),
    hireable: Optional[bool] = Form(None),
    avatar: UploadFile | None = File(None),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> AccountResponse:
    """Update profile fields sent as multipart form data, optionally with a new avatar.

    Omitted fields are left untouched; a whitespace-only value clears the field.
    ``skill_tags`` is a comma separated list.
    """

    submitted = {
        "full_name": full_name,
        "username": username,
        "bio": bio,
        "skill_tags": skill_tags,
        "hireable": hireable,
    }
    try:
        payload = ProfileUpdate(**{field: value for field, value in submitted.items() if value is not None})
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc
    updated = await update_profile(db, user_id=current_user.id, payload=payload, avatar=avatar)
    return AccountResponse(**profile_view(db, updated, viewer_id=current_user.id))


@router.put("/me/hireable", response_model=AccountResponse)
async def update_my_hireable(
    payload: HireableUpdate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> AccountResponse:
    updated = set_hireable(db, user_id=current_user.id, hireable=payload.hireable)
    return AccountResponse(**profile_view(db, updated, viewer_id=current_user.id))


@router.post("/me/references", response_model=ReferenceResponse, status_code=status.HTTP_201_CREATED)
async def add_my_reference(
    type: ReferenceType = Form(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    url: Optional[str] = Form(None),
    file: UploadFile | None = File(None),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ReferenceResponse:
    reference = await add_reference(
        db,
        owner=current_user,
        type_=type,
        title=title,
        description=description,
        url=url,
        file=file,
    )
    return ReferenceResponse(**serialize_reference(reference))


@router.delete("/me/references/{reference_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_reference(
    reference_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> None:
    delete_reference(db, reference_id=reference_id, owner=current_user)


@router.get("/{user_id}", response_model=ProfileResponse)
async def retrieve_profile(
    user_id: UUID,
    db: Session = Depends(get_session),
    viewer: Profile | None = Depends(get_optional_user),
) -> ProfileResponse:
    return ProfileResponse(**get_profile(db, user_id=user_id, viewer_id=viewer.id if viewer else None))


@router.get("/{user_id}/posts", response_model=PostFeedResponse)
async def retrieve_profile_posts(
    user_id: UUID,
    db: Session = Depends(get_session),
    viewer: Profile | None = Depends(get_optional_user),
) -> PostFeedResponse:
    get_profile(db, user_id=user_id)
    records = list_profile_posts(db, user_id=user_id, viewer_id=viewer.id if viewer else None)
    return PostFeedResponse(items=[PostResponse(**record) for record in records])


@router.get("/{user_id}/references", response_model=ReferenceListResponse)
async def retrieve_profile_references(
    user_id: UUID,
    db: Session = Depends(get_session),
) -> ReferenceListResponse:
    references = list_references(db, user_id=user_id)
    return ReferenceListResponse(items=[ReferenceResponse(**serialize_reference(item)) for item in references])


@router.post("/{user_id}/hire", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def hire_profile(
    user_id: UUID,
    payload: HireRequest,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MessageResponse:
    message = send_hire_inquiry(db, sender=current_user, target_id=user_id, note=payload.message)
    return MessageResponse(**message)
