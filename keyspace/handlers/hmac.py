"""HMAC namespace handler with lock-free key rotation."""

from __future__ import annotations

import base64
import logging
import secrets
from typing import Any, Dict

from ..codec import TokenCodec
from ..config import RotationConfig
from ..errors import InvalidKeyIdentifierError, RotationConflictError
from ..models import HmacKey, HmacKeyState, NamespaceOptions, NamespaceRecord, ResolvedKey
from ..persistence import NamespaceRecordStore
from ..utils.retry import schedule_retry
from .base import NamespaceHandler, NamespaceRef

logger = logging.getLogger(__name__)

HMAC_KEY_BYTES = 16


def generate_hmac_secret() -> str:
    """Return fresh random key material as base64 text."""
    return base64.b64encode(secrets.token_bytes(HMAC_KEY_BYTES)).decode("ascii")


def decode_hmac_secret(data: str) -> bytes:
    return base64.b64decode(data)


class HmacNamespaceHandler(NamespaceHandler):
    """Handler for symmetric (``HS*``) namespaces.

    Each namespace holds its active key and, after the first rotation, the
    key it replaced. An expired key is rotated on read: the process that
    notices the expiry writes the successor with a conditional update that
    only applies if the stored key is still the one being retired. Losing
    processes drop their candidate, re-read the record and use the winner.

    Correct expiry decisions require the clocks of all cooperating processes
    to agree to well within ``clock_tolerance_in_secs``.
    """

    def __init__(
        self,
        store: NamespaceRecordStore,
        codec: TokenCodec,
        rotation: RotationConfig | None = None,
    ) -> None:
        super().__init__(store, codec)
        self.rotation = rotation or RotationConfig()
        # advisory only; the store is authoritative
        self._cache: Dict[str, NamespaceRecord] = {}

    async def create_state(self, options: NamespaceOptions) -> dict[str, Any]:
        now = self.codec.timestamp()
        key = self._generate_key(
            str(now),
            now,
            options.token_ttl_in_secs + options.clock_tolerance_in_secs,
        )
        return HmacKeyState(key=key).model_dump()

    def invalidate(self, namespace_id: str) -> None:
        """Forget the cached record for ``namespace_id``."""
        self._cache.pop(namespace_id, None)

    async def get_key(self, namespace: NamespaceRef) -> ResolvedKey:
        record = namespace if isinstance(namespace, NamespaceRecord) else None
        namespace_id = record.id if record is not None else namespace

        for attempt in range(self.rotation.max_attempts):
            if record is None:
                record = await self._resolve(namespace_id)
            state = HmacKeyState.model_validate(record.state)
            now = self.codec.timestamp()

            if state.key.expires > now:
                self._cache[namespace_id] = record
                return self._resolved(state.key)

            rotated = self._rotate(record, state, now)
            logger.debug(
                "Rotating HMAC key %s -> %s for namespace %s",
                state.key.id,
                rotated.key.id,
                namespace_id,
            )
            new_state = rotated.model_dump()
            updated = await self.store.conditional_update(
                namespace_id, new_state, match={"key.id": state.key.id}
            )
            if updated:
                record = record.model_copy(update={"state": new_state})
                self._cache[namespace_id] = record
                return self._resolved(rotated.key)

            logger.info(
                "Another process rotated the HMAC key for namespace %s; retrying",
                namespace_id,
            )
            self.invalidate(namespace_id)
            record = None
            if attempt + 1 < self.rotation.max_attempts:
                await schedule_retry(attempt, self.rotation)

        raise RotationConflictError(
            "Gave up rotating HMAC key after repeated conflicts.",
            namespace=namespace_id,
            attempts=self.rotation.max_attempts,
        )

    async def verify(
        self, token: str, namespace: NamespaceRef, key_id: str | None
    ) -> dict[str, Any]:
        record = await self._load(namespace)
        state = HmacKeyState.model_validate(record.state)
        key = state.find(key_id)
        if key is None:
            raise InvalidKeyIdentifierError(
                "Invalid key identifier in token.", namespace=record.id, key_id=key_id
            )
        return self.codec.verify(
            token,
            decode_hmac_secret(key.data),
            algorithms=[record.algorithm],
            clock_tolerance=record.clock_tolerance_in_secs,
        )

    # ------------------------------------------------------------------
    async def _resolve(self, namespace_id: str) -> NamespaceRecord:
        cached = self._cache.get(namespace_id)
        if cached is not None:
            return cached
        return await self.store.get(namespace_id)

    def _rotate(
        self, record: NamespaceRecord, state: HmacKeyState, now: int
    ) -> HmacKeyState:
        # ids must keep increasing even if rotation happens within one second
        key_id = now
        if state.key.id.isdigit():
            key_id = max(now, int(state.key.id) + 1)
        key = self._generate_key(
            str(key_id),
            now,
            record.token_ttl_in_secs + record.clock_tolerance_in_secs,
        )
        return HmacKeyState(key=key, previous_key=state.key)

    @staticmethod
    def _generate_key(key_id: str, now: int, lifetime: int) -> HmacKey:
        return HmacKey(
            id=key_id,
            data=generate_hmac_secret(),
            created=now,
            expires=now + lifetime,
        )

    @staticmethod
    def _resolved(key: HmacKey) -> ResolvedKey:
        return ResolvedKey(id=key.id, material=decode_hmac_secret(key.data))
