"""Namespace handler for keys held by an external key registry."""

from __future__ import annotations

import logging
from typing import Any

from ..codec import TokenCodec
from ..errors import InvalidKeyError, InvalidKeyIdentifierError, KeyRegistryError
from ..models import ExternalKeyState, NamespaceOptions, ResolvedKey
from ..persistence import NamespaceRecordStore
from ..registry import KeyRegistry, KeyStatus, RegisteredKey
from .base import NamespaceHandler, NamespaceRef

logger = logging.getLogger(__name__)


class ExternalKeyNamespaceHandler(NamespaceHandler):
    """Handler for asymmetric namespaces backed by a key registry.

    Only a reference to the key is stored. The registry owns the key's
    lifecycle, so every resolution asks it again and a revoked key stops
    working immediately.
    """

    def __init__(
        self, store: NamespaceRecordStore, codec: TokenCodec, registry: KeyRegistry
    ) -> None:
        super().__init__(store, codec)
        self.registry = registry

    async def create_state(self, options: NamespaceOptions) -> dict[str, Any]:
        if not options.key:
            raise InvalidKeyError(
                "A signing key reference is required.", namespace=options.id
            )
        # validates the key exists and is active
        await self._resolve_active(options.key)
        return ExternalKeyState(key=options.key).model_dump()

    async def get_key(self, namespace: NamespaceRef) -> ResolvedKey:
        record = await self._load(namespace)
        state = ExternalKeyState.model_validate(record.state)
        key = await self._resolve_active(state.key)
        return ResolvedKey(id=key.id, material=key.material)

    async def verify(
        self, token: str, namespace: NamespaceRef, key_id: str | None
    ) -> dict[str, Any]:
        record = await self._load(namespace)
        state = ExternalKeyState.model_validate(record.state)
        key = await self._resolve_active(state.key)
        if key_id != key.id:
            raise InvalidKeyIdentifierError(
                "Invalid key identifier in token.", namespace=record.id, key_id=key_id
            )
        return self.codec.verify(
            token,
            key.verification_material,
            algorithms=[record.algorithm],
            clock_tolerance=record.clock_tolerance_in_secs,
        )

    async def _resolve_active(self, key_ref: str) -> RegisteredKey:
        try:
            key = await self.registry.resolve(key_ref)
        except KeyRegistryError as exc:
            logger.error("Key registry lookup failed for %s: %s", key_ref, exc)
            raise InvalidKeyError("Invalid signing key specified.", key=key_ref) from exc
        if key is None:
            raise InvalidKeyError("Invalid signing key specified.", key=key_ref)
        if key.status is KeyStatus.REVOKED:
            raise InvalidKeyError(
                "The specified signing key has been revoked.", key=key_ref
            )
        if key.status is not KeyStatus.ACTIVE:
            raise InvalidKeyError(
                "The specified signing key is not active.",
                key=key_ref,
                status=key.status.value,
            )
        return key
