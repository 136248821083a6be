"""Persistence layer for namespace records."""

from __future__ import annotations

import os
from typing import Optional

from ..config import KeyspaceConfig, load_config
from .inmemory import InMemoryRecordStore
from .repository import NamespaceRecordStore
from .sqlite import SQLiteRecordStore

try:  # pragma: no cover - optional dependency
    from .postgres import PostgresRecordStore
except ImportError:  # pragma: no cover - optional dependency
    PostgresRecordStore = None  # type: ignore


def get_record_store(
    database_url: Optional[str] = None, config: Optional[KeyspaceConfig] = None
) -> NamespaceRecordStore:
    """Factory function to obtain a namespace record store.

    The backend is selected based on ``database_url`` which can be provided
    explicitly, via environment variable ``KEYSPACE_DATABASE_URL`` or
    ``DATABASE_URL``, or from loaded configuration. When no database is
    configured, an in-memory store is returned.
    """

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("KEYSPACE_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or config.store.database_url
    )

    if not database_url:
        return InMemoryRecordStore()

    if database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        return SQLiteRecordStore(path)
    if database_url.startswith("postgres://") or database_url.startswith(
        "postgresql://"
    ):
        if PostgresRecordStore is None:
            raise RuntimeError("Postgres support not available")
        return PostgresRecordStore(database_url)
    raise ValueError(f"Unsupported database backend: {database_url}")


__all__ = [
    "NamespaceRecordStore",
    "InMemoryRecordStore",
    "SQLiteRecordStore",
    "PostgresRecordStore",
    "get_record_store",
]
