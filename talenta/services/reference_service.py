"""Portfolio references: uploaded documents and external links on a profile."""
from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import REFERENCE_FILE_EXTENSIONS, REFERENCE_FILE_MAX_BYTES
from ..models import Profile, Reference
from .storage_service import (
    StorageConfigurationError,
    build_public_url,
    discard_object,
    reference_file_key,
    store_upload,
    validate_upload,
)

logger = logging.getLogger(__name__)

REFERENCE_TYPES = ("document", "link")


def _file_url(reference: Reference) -> str | None:
    if not reference.file_path:
        return None
    try:
        return build_public_url(reference.file_path)
    except StorageConfigurationError:
        return None


def serialize_reference(reference: Reference) -> dict[str, Any]:
    return {
        "id": reference.id,
        "user_id": reference.user_id,
        "type": reference.type,
        "title": reference.title,
        "description": reference.description,
        "url": reference.url,
        "file_path": reference.file_path,
        "file_name": reference.file_name,
        "file_size": reference.file_size,
        "file_url": _file_url(reference),
        "created_at": reference.created_at,
    }


def list_references(db: Session, *, user_id: UUID) -> list[Reference]:
    if db.get(Profile, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    stmt = select(Reference).where(Reference.user_id == user_id).order_by(Reference.created_at.desc())
    return list(db.scalars(stmt))


async def add_reference(
    db: Session,
    *,
    owner: Profile,
    type_: str,
    title: str,
    description: str | None = None,
    url: str | None = None,
    file: UploadFile | None = None,
) -> Reference:
    """Validate and store a reference; documents are uploaded before the row is inserted."""

    if type_ not in REFERENCE_TYPES:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Unknown reference type")
    clean_title = (title or "").strip()
    if not clean_title:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Title is required")

    reference = Reference(
        user_id=owner.id,
        type=type_,
        title=clean_title,
        description=(description or "").strip() or None,
    )

    if type_ == "link":
        clean_url = (url or "").strip()
        if not clean_url:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="URL is required for links")
        reference.url = clean_url
    else:
        if file is None or not file.filename:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="File is required for documents")
        size = validate_upload(
            file,
            max_bytes=REFERENCE_FILE_MAX_BYTES,
            allowed_extensions=REFERENCE_FILE_EXTENSIONS,
            label="File",
        )
        stored = await store_upload(file, key=reference_file_key(owner.id, file.filename))
        reference.file_path = stored.key
        reference.file_name = file.filename
        reference.file_size = size

    db.add(reference)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to add reference for %s", owner.id)
        discard_object(reference.file_path)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add reference") from exc
    db.refresh(reference)
    return reference


def delete_reference(db: Session, *, reference_id: UUID, owner: Profile) -> None:
    """Delete one of the owner's references, removing its stored file best-effort."""

    stmt = select(Reference).where(Reference.id == reference_id, Reference.user_id == owner.id)
    reference = db.scalar(stmt)
    if reference is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reference not found")

    if reference.type == "document" and reference.file_path:
        discard_object(reference.file_path)

    try:
        db.delete(reference)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to delete reference %s", reference_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete reference") from exc


__all__ = [
    "REFERENCE_TYPES",
    "serialize_reference",
    "list_references",
    "add_reference",
    "delete_reference",
]
