"""
Object Storage Abstract Base Class

Stores uploaded product images and restaurant logos under owner-namespaced
paths and returns a public URL for each.

    {owner_id}/products/{uuid}.jpg
    {owner_id}/logo/{uuid}.png

Author: Khalil Bannouri
Version: 1.0.0
"""

import uuid
from abc import ABC, abstractmethod

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


def object_path(owner_id: str, kind: str, content_type: str) -> str:
    """Fresh path for an upload of `kind` ("products" or "logo")."""
    return f"{owner_id}/{kind}/{uuid.uuid4()}{EXTENSIONS.get(content_type, '.jpg')}"


class BaseStorageService(ABC):
    """Abstract base class for object storage."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """
        Store `data` at `path`.

        Returns:
            str: Public URL of the stored object
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check that objects can be written."""
        pass
