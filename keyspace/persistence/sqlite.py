"""SQLite implementation of the namespace record store."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from ..errors import DuplicateRecordError, InternalError, NotFoundError
from ..models import NamespaceRecord, RecordMeta
from .repository import NamespaceRecordStore, split_state_path

logger = logging.getLogger(__name__)


class SQLiteRecordStore(NamespaceRecordStore):
    """Persist namespace records using SQLite.

    Several stores (or processes) may open the same database file; the
    conditional update is a single ``UPDATE ... WHERE`` statement, so SQLite's
    own write locking makes it atomic.
    """

    def __init__(self, db_path: str | Path, timeout: float = 5.0):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(
            self.db_path, timeout=timeout, check_same_thread=False
        )
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        with self._lock:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS namespaces (
                    id TEXT PRIMARY KEY,
                    algorithm TEXT NOT NULL,
                    token_ttl_in_secs INTEGER NOT NULL,
                    clock_tolerance_in_secs INTEGER NOT NULL,
                    state TEXT NOT NULL,
                    created TEXT NOT NULL,
                    updated TEXT NOT NULL
                )
                """
            )
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> int:
        with self._lock:
            cur = self._conn.cursor()
            try:
                cur.execute(query, params)
                self._conn.commit()
            except sqlite3.Error:
                self._conn.rollback()
                raise
            return cur.rowcount

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(query, params)
            return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(query, params)
            return cur.fetchall()

    @staticmethod
    def _to_record(row: sqlite3.Row) -> NamespaceRecord:
        return NamespaceRecord(
            id=row["id"],
            algorithm=row["algorithm"],
            token_ttl_in_secs=row["token_ttl_in_secs"],
            clock_tolerance_in_secs=row["clock_tolerance_in_secs"],
            state=json.loads(row["state"]),
            meta=RecordMeta(
                created=datetime.fromisoformat(row["created"]),
                updated=datetime.fromisoformat(row["updated"]),
            ),
        )

    # ------------------------------------------------------------------
    # Store API
    async def get(self, namespace_id: str) -> NamespaceRecord:
        try:
            row = await asyncio.to_thread(
                self._fetchone,
                "SELECT * FROM namespaces WHERE id = ?",
                namespace_id,
            )
        except sqlite3.Error as exc:
            logger.error("SQLite error when trying to find namespace: %s", exc)
            raise InternalError(
                "Failed to find namespace due to internal error.",
                namespace=namespace_id,
                operation="get",
            ) from exc
        if row is None:
            raise NotFoundError("Namespace not found.", namespace=namespace_id)
        return self._to_record(row)

    async def insert(self, record: NamespaceRecord) -> None:
        try:
            await asyncio.to_thread(
                self._execute,
                """
                INSERT INTO namespaces (
                    id, algorithm, token_ttl_in_secs, clock_tolerance_in_secs,
                    state, created, updated
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                record.id,
                record.algorithm,
                record.token_ttl_in_secs,
                record.clock_tolerance_in_secs,
                json.dumps(record.state),
                record.meta.created.isoformat(),
                record.meta.updated.isoformat(),
            )
        except sqlite3.IntegrityError as exc:
            raise DuplicateRecordError(
                "Namespace already exists.", namespace=record.id
            ) from exc
        except sqlite3.Error as exc:
            logger.error("SQLite error when trying to insert namespace: %s", exc)
            raise InternalError(
                "Failed to insert namespace due to internal error.",
                namespace=record.id,
                operation="insert",
            ) from exc

    async def conditional_update(
        self,
        namespace_id: str,
        state: dict[str, Any],
        match: Mapping[str, Any] | None = None,
    ) -> int:
        query = "UPDATE namespaces SET state = ?, updated = ? WHERE id = ?"
        params: list[Any] = [
            json.dumps(state),
            datetime.now(timezone.utc).isoformat(),
            namespace_id,
        ]
        for path, expected in (match or {}).items():
            query += " AND json_extract(state, ?) = ?"
            params.extend(["$." + ".".join(split_state_path(path)), expected])
        try:
            return await asyncio.to_thread(self._execute, query, *params)
        except sqlite3.Error as exc:
            logger.error("SQLite error when trying to update namespace: %s", exc)
            raise InternalError(
                "Failed to update namespace due to internal error.",
                namespace=namespace_id,
                operation="conditional_update",
            ) from exc

    async def list_namespaces(self) -> list[NamespaceRecord]:
        try:
            rows = await asyncio.to_thread(
                self._fetchall, "SELECT * FROM namespaces ORDER BY id"
            )
        except sqlite3.Error as exc:
            logger.error("SQLite error when trying to list namespaces: %s", exc)
            raise InternalError(
                "Failed to list namespaces due to internal error.",
                operation="list_namespaces",
            ) from exc
        return [self._to_record(row) for row in rows]
