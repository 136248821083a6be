"""Repository abstraction for namespace record persistence."""

from __future__ import annotations

import re
from typing import Any, Mapping, Protocol

from ..models import NamespaceRecord

_STATE_PATH = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


def split_state_path(path: str) -> list[str]:
    """Split a dotted state path such as ``"key.id"`` into its segments."""
    if not _STATE_PATH.match(path):
        raise ValueError(f"Invalid state path: {path!r}")
    return path.split(".")


def lookup_state_path(state: Mapping[str, Any], path: str) -> Any:
    """Return the value at ``path`` inside ``state`` or ``None`` if absent."""
    value: Any = state
    for part in split_state_path(path):
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]
    return value


class NamespaceRecordStore(Protocol):
    """Protocol for namespace record persistence backends."""

    async def get(self, namespace_id: str) -> NamespaceRecord:
        """Return the record for ``namespace_id``.

        Raises ``NotFoundError`` when no such namespace exists.
        """

    async def insert(self, record: NamespaceRecord) -> None:
        """Insert a new record.

        Raises ``DuplicateRecordError`` when the id is already taken.
        """

    async def conditional_update(
        self,
        namespace_id: str,
        state: dict[str, Any],
        match: Mapping[str, Any] | None = None,
    ) -> int:
        """Replace the record's state if every ``match`` path holds.

        ``match`` maps dotted paths inside the stored state to the values
        they must currently have. Returns the number of records changed.
        """

    async def list_namespaces(self) -> list[NamespaceRecord]:
        """Return all stored records."""
