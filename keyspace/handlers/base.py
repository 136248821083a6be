"""Base namespace handler interface."""

from __future__ import annotations

import abc
import copy
from typing import Any, Mapping

from ..algorithms import family_for
from ..codec import TokenCodec
from ..models import KID_SEPARATOR, NamespaceOptions, NamespaceRecord, ResolvedKey
from ..persistence import NamespaceRecordStore

NamespaceRef = NamespaceRecord | str


class NamespaceHandler(metaclass=abc.ABCMeta):
    """Key management strategy for one family of signing algorithms.

    A handler creates the namespace-specific ``state`` at provisioning time,
    resolves the key to sign with, and verifies tokens against the state.
    Namespaces are passed either as a loaded :class:`NamespaceRecord` or as
    a namespace id, in which case the handler loads the record itself.
    """

    def __init__(self, store: NamespaceRecordStore, codec: TokenCodec) -> None:
        self.store = store
        self.codec = codec

    @abc.abstractmethod
    async def create_state(self, options: NamespaceOptions) -> dict[str, Any]:
        """Return the initial handler state for a namespace being provisioned."""
        raise NotImplementedError

    @abc.abstractmethod
    async def get_key(self, namespace: NamespaceRef) -> ResolvedKey:
        """Return the key currently valid for signing in ``namespace``."""
        raise NotImplementedError

    @abc.abstractmethod
    async def verify(
        self, token: str, namespace: NamespaceRef, key_id: str | None
    ) -> dict[str, Any]:
        """Verify ``token`` and return its payload.

        ``key_id`` is the namespace-specific key id parsed from the token's
        ``kid`` header, with any namespace prefix already removed.
        """
        raise NotImplementedError

    async def sign(
        self, namespace: NamespaceRecord, payload: Mapping[str, Any]
    ) -> str:
        """Create a token carrying ``payload`` plus ``exp`` and ``iat`` claims."""
        key = await self.get_key(namespace)
        now = self.codec.timestamp()
        claims = copy.deepcopy(dict(payload))
        claims.update(exp=now + namespace.token_ttl_in_secs, iat=now)
        return self.codec.sign(
            claims,
            key.material,
            algorithm=namespace.algorithm,
            headers={"kid": self.key_identifier(namespace, key.id)},
        )

    @staticmethod
    def key_identifier(namespace: NamespaceRecord, key_id: str) -> str:
        """Build the ``kid`` header value for ``key_id`` in ``namespace``."""
        if family_for(namespace.algorithm).symmetric:
            return f"{namespace.id}{KID_SEPARATOR}{key_id}"
        return key_id

    async def _load(self, namespace: NamespaceRef) -> NamespaceRecord:
        if isinstance(namespace, NamespaceRecord):
            return namespace
        return await self.store.get(namespace)
