"""In-memory implementation of the namespace record store."""

from __future__ import annotations

import asyncio
import copy
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from ..errors import DuplicateRecordError, NotFoundError
from ..models import NamespaceRecord
from .repository import NamespaceRecordStore, lookup_state_path


class InMemoryRecordStore(NamespaceRecordStore):
    """Store namespace records in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Records are copied on the way in
    and out so callers never share mutable state with the store.
    """

    def __init__(self) -> None:
        self._records: Dict[str, NamespaceRecord] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    async def get(self, namespace_id: str) -> NamespaceRecord:
        async with self._lock:
            record = self._records.get(namespace_id)
            if record is None:
                raise NotFoundError("Namespace not found.", namespace=namespace_id)
            return record.model_copy(deep=True)

    async def insert(self, record: NamespaceRecord) -> None:
        async with self._lock:
            if record.id in self._records:
                raise DuplicateRecordError(
                    "Namespace already exists.", namespace=record.id
                )
            self._records[record.id] = record.model_copy(deep=True)

    async def conditional_update(
        self,
        namespace_id: str,
        state: dict[str, Any],
        match: Mapping[str, Any] | None = None,
    ) -> int:
        async with self._lock:
            record = self._records.get(namespace_id)
            if record is None:
                return 0
            for path, expected in (match or {}).items():
                if lookup_state_path(record.state, path) != expected:
                    return 0
            record.state = copy.deepcopy(state)
            record.meta.updated = datetime.now(timezone.utc)
            return 1

    async def list_namespaces(self) -> list[NamespaceRecord]:
        async with self._lock:
            return [r.model_copy(deep=True) for r in self._records.values()]
