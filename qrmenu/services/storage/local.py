"""
Local Filesystem Storage

Writes objects below UPLOADS_DIR; the API serves that directory at
/uploads, so the returned URLs are public.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from qrmenu.core.config import get_settings
from qrmenu.core.exceptions import StoreWriteError, ValidationFailedError
from qrmenu.services.storage.base import BaseStorageService

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"


class LocalStorageService(BaseStorageService):
    """Object storage on the local disk."""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or get_settings().uploads_dir).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"LocalStorageService initialized ({self.root})")

    @property
    def provider_name(self) -> str:
        return "local"

    def _target(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root):
            raise ValidationFailedError("Invalid storage path")
        return target

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        target = self._target(path)

        def write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(write)
        except OSError as e:
            logger.error(f"Upload to {path} failed: {e}")
            raise StoreWriteError("Could not store the file") from e

        logger.info(f"Stored {path} ({content_type}, {len(data) / 1024:.1f}KB)")
        return f"{PUBLIC_PREFIX}/{path}"

    async def health_check(self) -> bool:
        return self.root.is_dir()
