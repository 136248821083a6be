"""PostgreSQL implementation of the namespace record store."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

import asyncpg

from ..errors import DuplicateRecordError, InternalError, NotFoundError
from ..models import NamespaceRecord, RecordMeta
from .repository import NamespaceRecordStore, split_state_path

logger = logging.getLogger(__name__)


def _load_state(value: Any) -> dict[str, Any]:
    if isinstance(value, str):
        return json.loads(value)
    return dict(value or {})


class PostgresRecordStore(NamespaceRecordStore):
    """Persist namespace records using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS namespaces (
                id TEXT PRIMARY KEY,
                algorithm TEXT NOT NULL,
                token_ttl_in_secs INTEGER NOT NULL,
                clock_tolerance_in_secs INTEGER NOT NULL,
                state JSONB NOT NULL,
                created TIMESTAMPTZ NOT NULL,
                updated TIMESTAMPTZ NOT NULL
            )
            """
        )

    @staticmethod
    def _to_record(row: asyncpg.Record) -> NamespaceRecord:
        return NamespaceRecord(
            id=row["id"],
            algorithm=row["algorithm"],
            token_ttl_in_secs=row["token_ttl_in_secs"],
            clock_tolerance_in_secs=row["clock_tolerance_in_secs"],
            state=_load_state(row["state"]),
            meta=RecordMeta(created=row["created"], updated=row["updated"]),
        )

    # ------------------------------------------------------------------
    async def get(self, namespace_id: str) -> NamespaceRecord:
        try:
            conn = await self._connect()
            try:
                row = await conn.fetchrow(
                    "SELECT * FROM namespaces WHERE id = $1", namespace_id
                )
            finally:
                await conn.close()
        except (asyncpg.PostgresError, OSError) as exc:
            logger.error("Postgres error when trying to find namespace: %s", exc)
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
            conn = await self._connect()
            try:
                await conn.execute(
                    """
                    INSERT INTO namespaces (
                        id, algorithm, token_ttl_in_secs, clock_tolerance_in_secs,
                        state, created, updated
                    ) VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7)
                    """,
                    record.id,
                    record.algorithm,
                    record.token_ttl_in_secs,
                    record.clock_tolerance_in_secs,
                    json.dumps(record.state),
                    record.meta.created,
                    record.meta.updated,
                )
            finally:
                await conn.close()
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRecordError(
                "Namespace already exists.", namespace=record.id
            ) from exc
        except (asyncpg.PostgresError, OSError) as exc:
            logger.error("Postgres error when trying to insert namespace: %s", exc)
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
        query = "UPDATE namespaces SET state = $1::jsonb, updated = $2 WHERE id = $3"
        params: list[Any] = [
            json.dumps(state),
            datetime.now(timezone.utc),
            namespace_id,
        ]
        for path, expected in (match or {}).items():
            n = len(params)
            query += f" AND state #>> ${n + 1}::text[] = ${n + 2}"
            params.extend([split_state_path(path), str(expected)])
        try:
            conn = await self._connect()
            try:
                status = await conn.execute(query, *params)
            finally:
                await conn.close()
        except (asyncpg.PostgresError, OSError) as exc:
            logger.error("Postgres error when trying to update namespace: %s", exc)
            raise InternalError(
                "Failed to update namespace due to internal error.",
                namespace=namespace_id,
                operation="conditional_update",
            ) from exc
        # status looks like "UPDATE <count>"
        return int(status.split()[-1])

    async def list_namespaces(self) -> list[NamespaceRecord]:
        try:
            conn = await self._connect()
            try:
                rows = await conn.fetch("SELECT * FROM namespaces ORDER BY id")
            finally:
                await conn.close()
        except (asyncpg.PostgresError, OSError) as exc:
            logger.error("Postgres error when trying to list namespaces: %s", exc)
            raise InternalError(
                "Failed to list namespaces due to internal error.",
                operation="list_namespaces",
            ) from exc
        return [self._to_record(row) for row in rows]
