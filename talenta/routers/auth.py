"""Authentication related API routes backed by PostgreSQL."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import Profile
from ..schemas import (
    AccountResponse,
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    StatusMessage,
)
from ..services import (
    authenticate_user,
    create_access_token,
    get_current_user,
    profile_view,
    register_user,
    request_password_reset,
    reset_password,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_endpoint(
    payload: RegisterRequest,
    db: Session = Depends(get_session),
) -> AuthResponse:
    profile, token = register_user(db, payload)
    return AuthResponse(access_token=token, user_id=profile.id)


@router.post("/login", response_model=AuthResponse)
async def login_endpoint(
    payload: LoginRequest,
    db: Session = Depends(get_session),
) -> AuthResponse:
    profile = authenticate_user(db, payload.email, payload.password)
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return AuthResponse(access_token=create_access_token(profile.id), user_id=profile.id)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout_endpoint(current_user: Profile = Depends(get_current_user)) -> Response:
    # Tokens are stateless; the client discards its copy.
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=AccountResponse)
async def me_endpoint(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> AccountResponse:
    return AccountResponse(**profile_view(db, current_user, viewer_id=current_user.id))


@router.post("/forgot-password", response_model=StatusMessage, status_code=status.HTTP_202_ACCEPTED)
async def forgot_password_endpoint(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_session),
) -> StatusMessage:
    request_password_reset(db, payload.email)
    return StatusMessage(
        status="accepted",
        message="If an account exists for that email, a reset code has been sent.",
    )


@router.post("/reset-password", response_model=StatusMessage)
async def reset_password_endpoint(
    payload: ResetPasswordRequest,
    db: Session = Depends(get_session),
) -> StatusMessage:
    reset_password(db, payload)
    return StatusMessage(status="ok", message="Password updated")
