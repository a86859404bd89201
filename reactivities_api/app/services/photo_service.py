"""
Photo storage used by the profile photo endpoints.

Image hosting is an external collaborator; the service layer only
relies on ``PhotoStorage``.  ``LocalPhotoStorage`` keeps the files on
disk under ``settings.photo_storage_dir`` and the application serves
them as static files below ``settings.photo_base_url``.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from reactivities_api.app.core.config import settings


logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
MAX_PHOTO_BYTES = 10 * 1024 * 1024


@dataclass
class PhotoUploadResult:
    public_id: str
    url: str


class PhotoStorage:
    """Interface for uploading and deleting images."""

    async def upload(self, filename: str, content_type: Optional[str], data: bytes) -> Optional[PhotoUploadResult]:
        """Store an image; return ``None`` when the upload is rejected."""
        raise NotImplementedError

    async def delete(self, public_id: str) -> None:
        raise NotImplementedError


class LocalPhotoStorage(PhotoStorage):
    """Store photos as files in a local directory."""

    def __init__(self, directory: str, base_url: str) -> None:
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    async def upload(self, filename: str, content_type: Optional[str], data: bytes) -> Optional[PhotoUploadResult]:
        if not data or len(data) > MAX_PHOTO_BYTES:
            logger.warning("Rejected photo upload %s (%d bytes)", filename, len(data))
            return None
        if not content_type or not content_type.startswith("image/"):
            logger.warning("Rejected photo upload %s with content type %s", filename, content_type)
            return None
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            ext = ".jpg"
        public_id = f"{uuid.uuid4().hex}{ext}"
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / public_id).write_bytes(data)
        logger.info("Stored photo %s", public_id)
        return PhotoUploadResult(public_id=public_id, url=f"{self.base_url}/{public_id}")

    async def delete(self, public_id: str) -> None:
        # public_id is generated by ``upload``; refuse anything that could escape the directory.
        path = self.directory / Path(public_id).name
        path.unlink(missing_ok=True)
        logger.info("Deleted photo %s", public_id)


_photo_storage: Optional[PhotoStorage] = None


def get_photo_storage() -> PhotoStorage:
    """FastAPI dependency returning the process-wide photo storage."""
    global _photo_storage
    if _photo_storage is None:
        _photo_storage = LocalPhotoStorage(settings.photo_storage_dir, settings.photo_base_url)
    return _photo_storage
