"""In-memory key registry for tests and single-process deployments."""

from __future__ import annotations

from typing import Dict, Optional

from .base import KeyRegistry, KeyStatus, RegisteredKey


class InMemoryKeyRegistry(KeyRegistry):
    """Keep registered keys in a local dictionary."""

    def __init__(self) -> None:
        self._keys: Dict[str, RegisteredKey] = {}

    def register(self, key: RegisteredKey) -> None:
        self._keys[key.id] = key

    def revoke(self, key_id: str) -> None:
        key = self._keys[key_id]
        self._keys[key_id] = key.model_copy(update={"status": KeyStatus.REVOKED})

    async def resolve(self, key_ref: str) -> Optional[RegisteredKey]:
        return self._keys.get(key_ref)
