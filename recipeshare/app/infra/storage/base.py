# recipeshare/app/infra/storage/base.py
"""
Abstract base class for storage providers.
This interface allows easy swapping between different storage backends (R2, S3, GCS, etc.)
"""
from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod


class StorageProvider(ABC):
    """
    Abstract interface for recipe image storage.

    Implementations:
    - R2StorageProvider: Cloudflare R2 (S3-compatible)
    """

    @abstractmethod
    def upload_bytes(
        self,
        object_key: str,
        data: bytes,
        content_type: str,
    ) -> None:
        """
        Store an object.

        Args:
            object_key: The key/path where the object will be stored
            data: Raw object content
            content_type: MIME type of the content (e.g., "image/png")
        """
        pass

    @abstractmethod
    def durable_url(self, object_key: str) -> str:
        """
        URL under which a stored object can be read by browsers.

        Args:
            object_key: The key/path of the object

        Returns:
            A URL that stays valid for as long as the provider allows
        """
        pass

    def generate_object_key(
        self,
        user_id: str,
        filename: str,
        prefix: str = "recipes",
        timestamp_ms: int | None = None,
    ) -> str:
        """
        Generate the object key for a user's upload.

        Format: {prefix}/{user_id}/{epoch_millis}_{filename}
        """
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        safe_filename = re.sub(r"[^a-zA-Z0-9._-]", "_", filename) or "image"
        return f"{prefix}/{user_id}/{timestamp_ms}_{safe_filename}"

    def upload_image(self, user_id: str, filename: str, data: bytes, content_type: str) -> str:
        """Upload an image under the user's prefix and return its durable URL."""
        object_key = self.generate_object_key(user_id=user_id, filename=filename)
        self.upload_bytes(object_key, data, content_type)
        return self.durable_url(object_key)
