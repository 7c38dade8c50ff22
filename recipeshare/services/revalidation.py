from __future__ import annotations

import logging
from typing import Iterable, Optional

import httpx

logger = logging.getLogger(__name__)

HOME_PATH = "/"


def recipe_path(recipe_id: str) -> str:
    return f"/recipe/{recipe_id}"


class PageRevalidator:
    """
    Asks the frontend to drop cached renderings of the given paths.

    Without a webhook URL the paths are only logged. Failures are logged and
    never raised: the write that triggered them has already succeeded.
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        secret: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.secret = secret
        self.timeout = timeout
        self._transport = transport

    def revalidate(self, paths: Iterable[str]) -> bool:
        unique_paths = list(dict.fromkeys(paths))
        if not self.webhook_url:
            logger.info("Revalidation webhook not configured; stale paths: %s", unique_paths)
            return False

        headers = {"x-revalidate-secret": self.secret} if self.secret else {}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.webhook_url, json={"paths": unique_paths}, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as error:
            logger.error("Failed to revalidate %s: %s", unique_paths, error)
            return False

        logger.info("Revalidated paths: %s", unique_paths)
        return True

    def revalidate_recipe(self, recipe_id: str) -> bool:
        return self.revalidate([HOME_PATH, recipe_path(recipe_id)])
