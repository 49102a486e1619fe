"""
Local disk storage for uploaded vehicle photos.

Files are written under ``settings.upload_dir`` with collision-free names
(``<epoch-millis>_<uuid-hex><ext>``) and addressed by URL
``<upload_url_prefix>/<name>``.
"""

import logging
import os
import time
import uuid
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

from carlet.app.core.config import settings
from carlet.app.core.exceptions import ResourceNotFoundError, StorageUnavailable, ValidationError
from carlet.app.db.unit_of_work import commit_or_raise
from carlet.app.models.stored_file import StoredFile

logger = logging.getLogger("carlet.storage")

MAX_EXTENSION_LENGTH = 10


class FileStorage:
    """
    Usage:
        storage = FileStorage("/data/uploads", "/uploads")
        url = storage.store(data, "front.jpg")
        data = storage.serve(url)
    """

    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _generate_name(self, original_name: str) -> str:
        extension = Path(original_name or "").suffix.lower()
        if len(extension) > MAX_EXTENSION_LENGTH or not extension[1:].isalnum():
            extension = ""
        return f"{int(time.time() * 1000)}_{uuid.uuid4().hex}{extension}"

    def path_for(self, name: str) -> Path:
        """
        Resolve a stored file name to its path.

        Raises:
            ValidationError: the name tries to leave the storage directory
        """
        if not name or name != os.path.basename(name) or name in (".", ".."):
            raise ValidationError("Invalid file name", details={"name": name})
        return self.root / name

    def name_from_url(self, url: str) -> str:
        prefix = f"{self.url_prefix}/"
        if not url.startswith(prefix):
            raise ValidationError("URL does not belong to this storage", details={"url": url})
        return url[len(prefix):]

    def store(self, data: bytes, original_name: str) -> str:
        """Write ``data`` and return its URL."""
        name = self._generate_name(original_name)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            self.path_for(name).write_bytes(data)
        except OSError as e:
            logger.error("Failed to store %s: %s", original_name, e)
            raise StorageUnavailable("File storage unavailable")
        logger.info("Stored %s (%d bytes) as %s", original_name, len(data), name)
        return f"{self.url_prefix}/{name}"

    def serve(self, url: str) -> bytes:
        path = self.path_for(self.name_from_url(url))
        if not path.is_file():
            raise ResourceNotFoundError("File", url)
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error("Failed to read %s: %s", url, e)
            raise StorageUnavailable("File storage unavailable")

    def delete(self, url: str) -> bool:
        """Remove a stored file. Returns False when it does not exist."""
        path = self.path_for(self.name_from_url(url))
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to delete %s: %s", url, e)
            raise StorageUnavailable("File storage unavailable")


def get_file_storage() -> FileStorage:
    """FastAPI dependency returning storage configured from settings."""
    return FileStorage(settings.upload_dir, settings.upload_url_prefix)


def stage_upload(db: AsyncSession, filename: str, url: str) -> StoredFile:
    """Add the ``files`` row for a stored file to the session without committing."""
    stored = StoredFile(id=str(uuid.uuid4()), filename=filename or "", url=url)
    db.add(stored)
    return stored


async def record_upload(db: AsyncSession, filename: str, url: str) -> StoredFile:
    """Keep a row per stored file so uploads can be traced back to their original name."""
    stored = stage_upload(db, filename, url)
    await commit_or_raise(db, "StoredFile", stored.id)
    return stored
