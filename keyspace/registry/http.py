"""HTTP client for a remote key registry service."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..errors import KeyRegistryError
from .base import KeyRegistry, RegisteredKey

logger = logging.getLogger(__name__)


class HttpKeyRegistry(KeyRegistry):
    """Resolve keys with ``GET {base_url}/keys/{key_ref}``.

    The service answers with a JSON document shaped like
    :class:`RegisteredKey`, or 404 when the key is unknown.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def resolve(self, key_ref: str) -> Optional[RegisteredKey]:
        url = f"{self.base_url}/keys/{quote(key_ref, safe='')}"
        try:
            if self._client is not None:
                resp = await self._client.get(url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    resp = await client.get(url, timeout=self.timeout)
        except httpx.HTTPError as exc:
            logger.error("Key registry request failed: %s", exc)
            raise KeyRegistryError(
                "Key registry lookup failed.", key=key_ref, reason=str(exc)
            ) from exc

        if resp.status_code == 404:
            return None
        try:
            resp.raise_for_status()
            return RegisteredKey.model_validate(resp.json())
        except (httpx.HTTPStatusError, ValueError, ValidationError) as exc:
            logger.error("Key registry returned an unusable response: %s", exc)
            raise KeyRegistryError(
                "Key registry lookup failed.", key=key_ref, reason=str(exc)
            ) from exc
