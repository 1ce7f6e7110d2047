"""Business logic for authentication and authorization backed by PostgreSQL."""
from __future__ import annotations

import logging
import os
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional, Tuple
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import PASSWORD_RESET_MAX_ATTEMPTS, PASSWORD_RESET_RESEND_COOLDOWN, PASSWORD_RESET_TTL
from ..database import get_session
from ..models import Profile
from ..models.base import as_utc
from ..schemas import RegisterRequest, ResetPasswordRequest
from ..security.secrets import MissingSecretError, require_secret
from .email_service import EmailDeliveryError, send_password_reset_email
from .notification_service import NotificationType, notify_user

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)
_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
DEFAULT_TOKEN_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "1440"))

WELCOME_TITLE = "Welcome to Talenta!"
WELCOME_MESSAGE = "Start exploring skills and connecting with creators"


@lru_cache(maxsize=1)
def _get_jwt_secret() -> str:
    try:
        return require_secret("JWT_SECRET_KEY")
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


def hash_password(password: str) -> str:
    """Hash a plain-text password using bcrypt."""

    return _pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed_password)
    except ValueError:
        logger.exception("Password verification failed on a malformed hash")
        return False


def create_access_token(subject: UUID, *, expires_minutes: Optional[int] = None) -> str:
    """Create a signed JWT holding the provided ``subject``."""

    expire_delta = timedelta(minutes=expires_minutes or DEFAULT_TOKEN_MINUTES)
    now = datetime.now(timezone.utc)
    payload = {"sub": str(subject), "exp": now + expire_delta, "iat": now}
    return jwt.encode(payload, _get_jwt_secret(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> UUID:
    """Decode and validate a JWT, returning the embedded subject UUID."""

    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[ALGORITHM])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    try:
        return UUID(subject)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload") from exc


def _normalize_email(email: str) -> str:
    return str(email).strip().lower()


def get_profile_by_email(db: Session, email: str) -> Profile | None:
    return db.scalar(select(Profile).where(func.lower(Profile.email) == _normalize_email(email)))


def register_user(db: Session, payload: RegisterRequest) -> Tuple[Profile, str]:
    """Create an account with an empty profile and return it with an access token."""

    if get_profile_by_email(db, payload.email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    full_name = payload.full_name.strip() if payload.full_name else None
    profile = Profile(
        email=_normalize_email(payload.email),
        hashed_password=hash_password(payload.password),
        full_name=full_name or None,
        skill_tags=[],
    )

    try:
        db.add(profile)
        db.commit()
        db.refresh(profile)
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to register user")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to register user") from exc

    notify_user(
        db,
        user_id=profile.id,
        actor_id=None,
        type_=NotificationType.WELCOME,
        title=WELCOME_TITLE,
        message=WELCOME_MESSAGE,
    )

    token = create_access_token(profile.id)
    return profile, token


def authenticate_user(db: Session, email: str, password: str) -> Optional[Profile]:
    """Authenticate a user against stored credentials."""

    profile = get_profile_by_email(db, email)
    if not profile:
        return None
    if not verify_password(password, profile.hashed_password):
        return None
    return profile


def _generate_reset_code() -> str:
    return f"{secrets.randbelow(10**6):06d}"


def request_password_reset(db: Session, email: str) -> bool:
    """Issue a reset code for ``email`` and try to deliver it.

    Returns ``True`` when an email was sent. Unknown addresses, requests inside
    the resend cooldown and delivery failures all return ``False`` so callers
    never reveal which emails exist.
    """

    profile = get_profile_by_email(db, email)
    if profile is None:
        logger.info("Password reset requested for unknown address")
        return False

    now = datetime.now(timezone.utc)
    sent_at = as_utc(profile.password_reset_sent_at)
    if sent_at is not None and now - sent_at < PASSWORD_RESET_RESEND_COOLDOWN:
        logger.info("Password reset for %s requested inside the resend cooldown", profile.id)
        return False

    code = _generate_reset_code()
    profile.password_reset_code = code
    profile.password_reset_sent_at = now
    profile.password_reset_attempts = 0
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to start password reset",
        ) from exc

    try:
        send_password_reset_email(
            profile.email,
            code,
            ttl_minutes=int(PASSWORD_RESET_TTL.total_seconds() // 60),
        )
    except EmailDeliveryError as exc:
        logger.warning("Password reset email for %s was not delivered: %s", profile.id, exc)
        return False
    return True


def _record_failed_reset_attempt(db: Session, profile: Profile) -> None:
    """Count a wrong code and burn the outstanding code once the limit is reached."""

    attempts = (profile.password_reset_attempts or 0) + 1
    profile.password_reset_attempts = attempts
    if attempts >= PASSWORD_RESET_MAX_ATTEMPTS:
        profile.password_reset_code = None
        logger.warning("Password reset code for %s cleared after %d failed attempts", profile.id, attempts)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record reset attempt for %s", profile.id)


def reset_password(db: Session, payload: ResetPasswordRequest) -> Profile:
    """Replace the password of the account identified by a valid, unexpired reset code."""

    invalid = HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset code")

    profile = get_profile_by_email(db, payload.email)
    if profile is None or not profile.password_reset_code:
        raise invalid
    sent_at = as_utc(profile.password_reset_sent_at)
    if sent_at is None or datetime.now(timezone.utc) - sent_at > PASSWORD_RESET_TTL:
        raise invalid
    if not secrets.compare_digest(profile.password_reset_code, payload.code.strip()):
        _record_failed_reset_attempt(db, profile)
        raise invalid

    profile.hashed_password = hash_password(payload.password)
    profile.password_reset_code = None
    profile.password_reset_sent_at = None
    profile.password_reset_attempts = 0
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to reset password") from exc
    db.refresh(profile)
    return profile


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(_security),
    db: Session = Depends(get_session),
) -> Profile:
    """Resolve the authenticated profile from the provided bearer token."""

    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    user_id = decode_access_token(credentials.credentials)

    profile = db.get(Profile, user_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        profile.last_active_at = datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError:  # pragma: no cover - logging only
        db.rollback()
        logger.warning("Failed to update last_active_at for user %s", profile.id)

    return profile


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
    db: Session = Depends(get_session),
) -> Profile | None:
    """Return the authenticated profile when a valid bearer token is provided."""

    if not credentials or credentials.scheme.lower() != "bearer":
        return None

    try:
        user_id = decode_access_token(credentials.credentials)
    except HTTPException:
        return None

    return db.get(Profile, user_id)


def resolve_token_user(db: Session, token: str | None) -> Profile | None:
    """Resolve a raw token (e.g. from a WebSocket query string) to a profile."""

    if not token:
        return None
    try:
        user_id = decode_access_token(token)
    except HTTPException:
        return None
    return db.get(Profile, user_id)


__all__ = [
    "register_user",
    "authenticate_user",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "verify_password",
    "get_profile_by_email",
    "request_password_reset",
    "reset_password",
    "get_current_user",
    "get_optional_user",
    "resolve_token_user",
]
