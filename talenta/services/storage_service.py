"""S3-compatible object storage helpers for post media, avatars and portfolio files."""
from __future__ import annotations

import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable
from urllib.parse import urlparse
from uuid import UUID

from boto3.session import Session
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from ..config import get_settings
from ..security.secrets import MissingSecretError, is_placeholder, require_secret

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageConfig:
    """Runtime configuration for the media bucket."""

    access_key: str
    secret_key: str
    region: str
    bucket: str
    endpoint: str
    public_url: str


@dataclass(frozen=True)
class StoredObject:
    """Metadata returned after uploading a file."""

    key: str
    url: str
    content_type: str
    size: int


class StorageConfigurationError(RuntimeError):
    """Raised when required object storage settings are missing or invalid."""


class StorageUploadError(RuntimeError):
    """Raised when an upload to object storage fails."""


class StorageDeletionError(RuntimeError):
    """Raised when deleting an object from storage fails."""


@lru_cache(maxsize=1)
def load_storage_config() -> StorageConfig:
    """Read and validate object storage configuration."""

    settings = get_settings()
    required: dict[str, str | None] = {
        "STORAGE_ENDPOINT": settings.storage_endpoint,
        "STORAGE_REGION": settings.storage_region,
        "STORAGE_BUCKET": settings.storage_bucket,
    }
    missing = [name for name, value in required.items() if is_placeholder(value)]
    if missing:
        raise StorageConfigurationError(
            "Missing required object storage configuration: " + ", ".join(sorted(missing))
        )

    try:
        access_key = require_secret("STORAGE_ACCESS_KEY")
        secret_key = require_secret("STORAGE_SECRET_KEY")
    except MissingSecretError as exc:
        raise StorageConfigurationError(str(exc)) from exc

    endpoint = str(settings.storage_endpoint).strip().rstrip("/")
    if not urlparse(endpoint).scheme:
        endpoint = f"https://{endpoint.lstrip(':/')}"
    if not urlparse(endpoint).netloc:
        raise StorageConfigurationError("STORAGE_ENDPOINT must include a hostname.")

    bucket = str(settings.storage_bucket).strip()
    public_url = (settings.storage_public_url or "").strip().rstrip("/")
    if not public_url:
        public_url = f"{endpoint}/{bucket}"

    return StorageConfig(
        access_key=access_key,
        secret_key=secret_key,
        region=str(settings.storage_region).strip(),
        bucket=bucket,
        endpoint=endpoint,
        public_url=public_url,
    )


@lru_cache(maxsize=1)
def get_storage_client() -> BaseClient:
    """Create a singleton boto3 S3 client for the configured endpoint."""

    config = load_storage_config()
    session = Session()
    return session.client(
        "s3",
        region_name=config.region,
        endpoint_url=config.endpoint,
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.secret_key,
    )


def _sanitize_segments(parts: Iterable[str]) -> list[str]:
    sanitized: list[str] = []
    for part in parts:
        if part in {"", ".", ".."}:
            continue
        cleaned = re.sub(r"[^A-Za-z0-9._-]", "-", part.strip())
        cleaned = re.sub(r"-+", "-", cleaned).strip("-._")
        if cleaned:
            sanitized.append(cleaned)
    return sanitized


def file_extension(filename: str | None) -> str:
    """Return the lower-cased extension of ``filename`` (with dot) or an empty string."""

    extension = Path(filename or "").suffix.lower()
    if extension and not re.fullmatch(r"\.[a-z0-9]{1,10}", extension):
        return ""
    return extension


def build_object_key(*segments: str, filename: str | None, unique_suffix: bool = False) -> str:
    """Build ``<segments>/<epoch_ms>[-<random>].<ext>`` anchored within the given folders."""

    folder = "/".join(_sanitize_segments("/".join(segments).replace("\\", "/").split("/")))
    stem = str(int(time.time() * 1000))
    if unique_suffix:
        stem = f"{stem}-{secrets.token_hex(5)}"
    name = f"{stem}{file_extension(filename)}"
    return f"{folder}/{name}" if folder else name


def post_media_key(user_id: UUID, filename: str | None) -> str:
    return build_object_key("posts", str(user_id), filename=filename, unique_suffix=True)


def avatar_key(user_id: UUID, filename: str | None) -> str:
    return build_object_key("avatars", str(user_id), filename=filename)


def reference_file_key(user_id: UUID, filename: str | None) -> str:
    return build_object_key(str(user_id), filename=filename)


def build_public_url(key: str) -> str:
    """Build the public URL for a stored object."""

    config = load_storage_config()
    normalized_key = key.lstrip("/")
    return f"{config.public_url}/{normalized_key}" if normalized_key else config.public_url


def upload_size(file: UploadFile) -> int:
    """Return the byte size of an uploaded file without consuming it."""

    size = getattr(file, "size", None)
    if size is not None:
        return int(size)
    buffer = file.file
    position = buffer.tell()
    buffer.seek(0, os.SEEK_END)
    size = buffer.tell()
    buffer.seek(position)
    return int(size)


def validate_upload(
    file: UploadFile,
    *,
    max_bytes: int,
    allowed_types: Iterable[str] | None = None,
    type_prefix: str | None = None,
    allowed_extensions: Iterable[str] | None = None,
    label: str = "File",
) -> int:
    """Reject disallowed or oversized uploads before any network call is made.

    Returns the size of the file in bytes.
    """

    content_type = (file.content_type or "").strip().lower()
    if allowed_types is not None and content_type not in set(allowed_types):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{label} type {content_type or 'unknown'} is not supported",
        )
    if type_prefix is not None and not content_type.startswith(type_prefix):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{label} must be of type {type_prefix}*",
        )
    if allowed_extensions is not None and file_extension(file.filename) not in set(allowed_extensions):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{label} extension is not supported",
        )

    size = upload_size(file)
    if size <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{label} is empty")
    if size > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"{label} must be smaller than {max_bytes // (1024 * 1024)}MB",
        )
    return size


async def upload_file(file: UploadFile, *, key: str, client: BaseClient | None = None) -> StoredObject:
    """Upload an ``UploadFile`` under ``key`` and return its public metadata."""

    config = load_storage_config()
    s3_client = client or get_storage_client()
    content_type = (file.content_type or "application/octet-stream").strip() or "application/octet-stream"
    size = upload_size(file)
    file_obj = getattr(file, "file", None)
    if file_obj is None:
        raise StorageUploadError("UploadFile is missing an underlying file buffer.")

    def _upload() -> None:
        try:
            file_obj.seek(0)
            s3_client.upload_fileobj(
                file_obj,
                config.bucket,
                key,
                ExtraArgs={"ContentType": content_type, "CacheControl": "max-age=3600"},
            )
        except (ClientError, BotoCoreError) as exc:  # pragma: no cover - network errors hard to reproduce
            logger.exception("Upload of %s to object storage failed", key)
            raise StorageUploadError("Upload to object storage failed") from exc

    await run_in_threadpool(_upload)
    return StoredObject(key=key, url=build_public_url(key), content_type=content_type, size=size)


def delete_object(key: str, *, client: BaseClient | None = None) -> None:
    """Remove an object from storage."""

    if not key:
        return

    config = load_storage_config()
    normalized_key = key.lstrip("/")
    s3_client = client or get_storage_client()

    try:
        s3_client.delete_object(Bucket=config.bucket, Key=normalized_key)
    except (ClientError, BotoCoreError) as exc:  # pragma: no cover - network bound
        logger.exception("Failed to delete storage object %s", normalized_key)
        raise StorageDeletionError("Unable to delete file from storage") from exc


async def store_upload(file: UploadFile, *, key: str) -> StoredObject:
    """Upload ``file`` translating storage failures into HTTP errors."""

    try:
        return await upload_file(file, key=key)
    except StorageConfigurationError as exc:
        logger.error("Object storage is not configured: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    except StorageUploadError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to upload file") from exc


def discard_object(key: str | None) -> bool:
    """Best-effort removal of a stored object; failures are logged and reported as ``False``."""

    if not key:
        return False
    try:
        delete_object(key)
    except (StorageConfigurationError, StorageDeletionError) as exc:
        logger.warning("Unable to remove stored object %s: %s", key, exc)
        return False
    return True


__all__ = [
    "StorageConfig",
    "StoredObject",
    "StorageConfigurationError",
    "StorageUploadError",
    "StorageDeletionError",
    "load_storage_config",
    "get_storage_client",
    "build_object_key",
    "post_media_key",
    "avatar_key",
    "reference_file_key",
    "build_public_url",
    "file_extension",
    "upload_size",
    "validate_upload",
    "upload_file",
    "delete_object",
    "store_upload",
    "discard_object",
]
