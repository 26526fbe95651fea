"""
File storage for uploaded images.

Services only see the ``Storage`` interface (put/delete/url by key); the
concrete backend is picked by the ``get_storage`` dependency so tests can
swap in an in-memory one.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path

from fastapi import UploadFile

from taskhub.core.config import settings
from taskhub.core.exceptions import field_error

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".webp", ".svg"}
ALLOWED_IMAGE_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "image/svg+xml"}


class Storage(ABC):
    """Key/value blob storage interface."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str | None = None) -> str: ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...

    @abstractmethod
    def url(self, key: str) -> str: ...


class LocalStorage(Storage):
    """Stores blobs as files under ``root`` and serves them from ``base_url``."""

    def __init__(self, root: str | Path, base_url: str) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValueError(f"Storage key escapes root: {key!r}")
        return path

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> str:
        await asyncio.to_thread(self._write, self._path(key), data)
        logger.info("Stored %s (%d bytes)", key, len(data))
        return key

    async def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            await asyncio.to_thread(path.unlink, missing_ok=True)
            logger.info("Deleted %s", key)

    def url(self, key: str) -> str:
        return f"{self.base_url}/{key}"


_storage: Storage | None = None


def get_storage() -> Storage:
    """Return the process-wide storage backend."""
    global _storage
    if _storage is None:
        _storage = LocalStorage(settings.MEDIA_ROOT, settings.MEDIA_URL)
    return _storage


async def read_image_upload(upload: UploadFile, field: str = "image") -> tuple[bytes, str]:
    """
    Validate an uploaded image and return ``(data, extension)``.

    Rejects anything that is not jpeg/png/webp/svg or exceeds
    ``MAX_IMAGE_SIZE_KB`` with a 422 on the given field.
    """
    extension = Path(upload.filename or "").suffix.lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS:
        raise field_error(
            field,
            f"The {field} must be a file of type: jpeg, png, jpg, webp, svg.",
        )
    if upload.content_type not in ALLOWED_IMAGE_MIME_TYPES:
        raise field_error(field, f"The {field} must be an image.")

    max_bytes = settings.MAX_IMAGE_SIZE_KB * 1024
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise field_error(
            field,
            f"The {field} may not be greater than {settings.MAX_IMAGE_SIZE_KB} kilobytes.",
        )
    return data, extension


def image_key(folder: str, extension: str) -> str:
    return f"{folder}/{uuid.uuid4().hex}{extension}"
