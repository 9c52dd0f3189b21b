"""
DevCamper Backend: Photo Storage Service
==========================================

What:  Validates bootcamp photo uploads and stores/deletes them by key.
How:   Blob-store collaborator over a local directory: `store(key, bytes)`
       writes `<storage_root>/<key>` with aiofiles, `delete(key)` unlinks it.
       Files are served back by the `/uploads/{filename}` route.
Who:   BootcampService photo upload/delete handlers.

Upload rules:
    1. Declared content type must start with "image"
    2. Size must not exceed settings.max_photo_size
    3. Stored name is generated by the server: photo_<bootcamp id><ext>

Keys never contain user input beyond the extension, and `_path_for` rejects
anything that would resolve outside the storage root.
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional

import aiofiles

from devcamper.config import settings
from devcamper.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

_EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


def validate_photo(
    content_type: Optional[str],
    size: Optional[int],
    max_size: Optional[int] = None,
    reported_size: Optional[int] = None,
) -> None:
    """
    Check the declared type, then the size.

    `reported_size` (the multipart part size, known before reading) is checked
    first so an oversized upload is rejected without loading it; `size` is the
    byte count actually read, or None when not read yet.

    Raises:
        ValidationError if the upload is not an image or is too large.
    """
    max_size = max_size or settings.max_photo_size

    if not content_type or not content_type.startswith("image"):
        raise ValidationError(
            message="File must be an image",
            field="file",
            context={"content_type": content_type},
        )

    if reported_size and reported_size > max_size:
        raise ValidationError(
            message=f"File cannot be more than {max_size // 1000} KB",
            field="file",
            context={"max_size": max_size, "reported_size": reported_size},
        )

    if size is not None and size > max_size:
        raise ValidationError(
            message=f"File cannot be more than {max_size // 1000} KB",
            field="file",
            context={"max_size": max_size, "actual_size": size},
        )


def photo_key(record_id, filename: Optional[str]) -> str:
    """`photo_<id><ext>`; the extension comes from the client's file name if it looks sane."""
    ext = Path(filename or "").suffix.lower()
    if not _EXTENSION_PATTERN.match(ext):
        ext = ""
    return f"photo_{record_id}{ext}"


class PhotoStorage:
    """
    Blob store rooted at one directory.

    Directory Structure:
        public/uploads/
        ├── no-photo.jpg
        └── photo_5d713995-b721-c3d4-e5f6-a7b8c9d0e1f2.jpg
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("PhotoStorage initialized with storage_root=%s", self.storage_root)

    def _path_for(self, key: str) -> Path:
        path = (self.storage_root / key).resolve()
        if path.parent != self.storage_root:
            raise ValidationError(
                message="Invalid file name",
                field="file",
                context={"key": key},
            )
        return path

    def path_for(self, key: str) -> Optional[Path]:
        """Absolute path of a stored file, or None if it does not exist or the key is invalid."""
        try:
            path = self._path_for(key)
        except ValidationError:
            return None
        return path if path.is_file() else None

    async def store(self, key: str, content: bytes) -> str:
        """
        Write `content` under `key` (overwriting any previous file).

        Returns:
            The key, for storing on the record.

        Raises:
            FileStorageError if the write fails.
        """
        path = self._path_for(key)
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store photo at %s: %s", path, str(e))
            raise FileStorageError(
                message="Something went wrong with uploading the photo",
                context={"key": key, "os_error": str(e)},
            )

        logger.info("Photo stored: %s (%d bytes)", key, len(content))
        return key

    async def delete(self, key: str) -> None:
        """
        Remove the file stored under `key`. A missing file is not an error.

        Raises:
            FileStorageError if the file exists but cannot be removed.
        """
        path = self._path_for(key)
        try:
            os.remove(path)
            logger.info("Photo deleted: %s", key)
        except FileNotFoundError:
            logger.debug("Photo already gone: %s", key)
        except OSError as e:
            logger.error("Failed to delete photo %s: %s", key, str(e))
            raise FileStorageError(
                message="Something went wrong with deleting the photo",
                context={"key": key, "os_error": str(e)},
            )
