"""External key registry clients."""

from __future__ import annotations

from typing import Optional

from ..config import KeyspaceConfig, load_config
from .base import KeyRegistry, KeyStatus, RegisteredKey
from .http import HttpKeyRegistry
from .inmemory import InMemoryKeyRegistry


def get_key_registry(config: Optional[KeyspaceConfig] = None) -> KeyRegistry:
    """Factory function to get the configured key registry."""

    config = config or load_config()
    backend = config.registry.backend
    if backend == "inmemory":
        return InMemoryKeyRegistry()
    if backend == "http":
        http_conf = config.registry.http
        return HttpKeyRegistry(http_conf.base_url, timeout=http_conf.timeout)
    raise ValueError(f"Unsupported key registry backend: {backend}")


__all__ = [
    "KeyRegistry",
    "KeyStatus",
    "RegisteredKey",
    "InMemoryKeyRegistry",
    "HttpKeyRegistry",
    "get_key_registry",
]
