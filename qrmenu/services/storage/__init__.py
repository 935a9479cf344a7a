"""
Storage Service Factory

Usage:
    from qrmenu.services.storage import get_storage_service, object_path, optimize_image

    storage = get_storage_service()
    data = optimize_image(raw, "image/png")
    url = await storage.upload(object_path(owner_id, "logo", "image/png"), data, "image/png")

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from qrmenu.services.storage.base import BaseStorageService, object_path
from qrmenu.services.storage.images import ALLOWED_IMAGE_TYPES, optimize_image
from qrmenu.services.storage.local import LocalStorageService

logger = logging.getLogger(__name__)


@lru_cache()
def get_storage_service() -> BaseStorageService:
    """Get the configured storage service."""
    logger.info("Storage Service: Using LocalStorageService")
    return LocalStorageService()


def reset_storage_service() -> None:
    """Clear the cached service instance."""
    get_storage_service.cache_clear()


__all__ = [
    "get_storage_service",
    "reset_storage_service",
    "BaseStorageService",
    "LocalStorageService",
    "ALLOWED_IMAGE_TYPES",
    "object_path",
    "optimize_image",
]
