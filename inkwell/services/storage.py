"""Featured-image storage backends.

Images live on an external host (S3 behind a CDN) in production and on local
disk in development. Deletion is best-effort in both.
"""

from __future__ import annotations

import io
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import BinaryIO

from starlette.datastructures import UploadFile

from inkwell.config import settings

logger = logging.getLogger(__name__)

_CONTENT_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


class ImageValidationError(ValueError):
    """Uploaded file is not an acceptable image."""


@dataclass(frozen=True)
class StoredImage:
    url: str
    public_id: str


def validate_image(filename: str | None, size: int) -> str:
    """Check extension and size, returning the lower-cased extension."""
    if not filename:
        raise ImageValidationError("No file uploaded")
    suffix = Path(filename).suffix.lower()
    if suffix not in settings.allowed_image_extensions:
        raise ImageValidationError("Only image files are allowed")
    if size > settings.max_upload_size:
        limit_mb = settings.max_upload_size // (1024 * 1024)
        raise ImageValidationError(f"File size too large. Maximum size is {limit_mb}MB.")
    return suffix


def new_image_name(suffix: str) -> str:
    return f"{uuid.uuid4().hex}{suffix}"


class StorageBackend(ABC):
    @abstractmethod
    async def save(self, file: BinaryIO, filename: str) -> StoredImage: ...

    @abstractmethod
    async def delete(self, public_id: str) -> bool: ...


class LocalStorage(StorageBackend):
    """Write images under ``base_path``; served from ``/uploads``."""

    def __init__(self, base_path: Path, base_url: str):
        self.base_path = base_path
        self.base_url = base_url.rstrip("/")
        self.base_path.mkdir(parents=True, exist_ok=True)

    async def save(self, file: BinaryIO, filename: str) -> StoredImage:
        path = self.base_path / filename
        path.write_bytes(file.read())
        return StoredImage(url=f"{self.base_url}/uploads/{filename}", public_id=filename)

    async def delete(self, public_id: str) -> bool:
        p = self.base_path / Path(public_id).name
        if p.exists():
            p.unlink()
            return True
        return False


class S3MediaStorage(StorageBackend):
    """S3 storage backend for images served via a CDN."""

    def __init__(
        self,
        bucket_name: str,
        cdn_base_url: str,
        region: str = "us-east-1",
        prefix: str = "blog",
    ):
        import boto3

        self.bucket_name = bucket_name
        self.cdn_base_url = cdn_base_url.rstrip("/")
        self.prefix = prefix
        self.client = boto3.client("s3", region_name=region)

    @staticmethod
    def _guess_content_type(filename: str) -> str:
        suffix = Path(filename).suffix.lower()
        return _CONTENT_TYPES.get(suffix, "application/octet-stream")

    async def save(self, file: BinaryIO, filename: str) -> StoredImage:
        key = f"{self.prefix}/{filename}"
        self.client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=file.read(),
            ContentType=self._guess_content_type(filename),
        )
        return StoredImage(url=f"{self.cdn_base_url}/{key}", public_id=key)

    async def delete(self, public_id: str) -> bool:
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=public_id)
            return True
        except Exception:
            logger.exception("Failed to delete %s", public_id)
            return False


@lru_cache
def get_storage() -> StorageBackend:
    """Build the configured backend once per process."""
    if settings.storage_backend == "s3":
        if not settings.s3_bucket or not settings.cdn_base_url:
            raise RuntimeError("S3 storage requires S3_BUCKET and CDN_BASE_URL")
        return S3MediaStorage(
            bucket_name=settings.s3_bucket,
            cdn_base_url=settings.cdn_base_url,
            region=settings.aws_region,
        )
    return LocalStorage(Path(settings.upload_dir), settings.base_url)


async def discard_image(public_id: str | None) -> None:
    """Delete a stored image, logging instead of raising on failure."""
    if not public_id:
        return
    try:
        deleted = await get_storage().delete(public_id)
    except OSError:
        logger.exception("Image delete failed for %s", public_id)
        return
    if not deleted:
        logger.warning("Image %s was not deleted", public_id)


async def save_upload(upload: UploadFile) -> StoredImage:
    """Validate an uploaded image and hand it to the configured backend."""
    contents = await upload.read()
    suffix = validate_image(upload.filename, len(contents))
    stored = await get_storage().save(io.BytesIO(contents), new_image_name(suffix))
    logger.info("Stored image %s (%d bytes)", stored.public_id, len(contents))
    return stored
