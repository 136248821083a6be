"""Key store facade: provisioning, signing and verification."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from .algorithms import AlgorithmFamily, family_for
from .codec import TokenCodec
from .config import KeyspaceConfig, load_config
from .errors import (
    DuplicateRecordError,
    InvalidKeyIdentifierError,
    NamespaceMismatchError,
)
from .handlers import (
    ExternalKeyNamespaceHandler,
    HmacNamespaceHandler,
    NamespaceHandler,
)
from .models import KID_SEPARATOR, NamespaceOptions, NamespaceRecord
from .persistence import InMemoryRecordStore, NamespaceRecordStore, get_record_store
from .registry import InMemoryKeyRegistry, KeyRegistry, get_key_registry

logger = logging.getLogger(__name__)


class KeyStore:
    """Single entry point for namespaced token issuance and verification.

    Requests are dispatched to a :class:`NamespaceHandler` chosen by the
    algorithm family of the namespace (or, for verification, of the token
    header). Symmetric tokens carry ``"<namespace>:<key id>"`` in their
    ``kid`` header; asymmetric tokens carry the bare external key id.
    """

    def __init__(
        self,
        store: NamespaceRecordStore | None = None,
        registry: KeyRegistry | None = None,
        codec: TokenCodec | None = None,
        config: KeyspaceConfig | None = None,
    ) -> None:
        self.config = config or KeyspaceConfig()
        self.store = store if store is not None else InMemoryRecordStore()
        self.registry = registry if registry is not None else InMemoryKeyRegistry()
        self.codec = codec or TokenCodec()

        external = ExternalKeyNamespaceHandler(self.store, self.codec, self.registry)
        self.handlers: Dict[AlgorithmFamily, NamespaceHandler] = {
            AlgorithmFamily.HMAC: HmacNamespaceHandler(
                self.store, self.codec, self.config.rotation
            ),
            AlgorithmFamily.RSA: external,
            AlgorithmFamily.ECDSA: external,
        }
        missing = set(AlgorithmFamily) - set(self.handlers)
        if missing:
            raise RuntimeError(f"No namespace handler for {sorted(missing)}")

    def handler_for(self, algorithm: str | None) -> NamespaceHandler:
        """Return the handler for ``algorithm`` or raise ``UnsupportedAlgorithmError``."""
        return self.handlers[family_for(algorithm)]

    async def get_namespace(self, namespace_id: str) -> NamespaceRecord:
        return await self.store.get(namespace_id)

    async def provision(
        self, options: NamespaceOptions | Mapping[str, Any]
    ) -> NamespaceRecord:
        """Create a namespace, or return the existing one with the same id.

        Re-provisioning is idempotent: the stored record wins. If its policy
        differs from ``options`` a warning is logged, or
        ``NamespaceMismatchError`` is raised when
        ``provisioning.on_mismatch`` is ``"reject"``.
        """
        if not isinstance(options, NamespaceOptions):
            options = NamespaceOptions.model_validate(options)
        handler = self.handler_for(options.algorithm)
        state = await handler.create_state(options)
        record = NamespaceRecord.from_options(options, state)
        try:
            await self.store.insert(record)
        except DuplicateRecordError:
            existing = await self.store.get(options.id)
            self._reconcile(existing, options)
            return existing
        logger.info("Provisioned namespace %s (%s)", options.id, options.algorithm)
        return record

    async def sign(self, namespace: str, payload: Mapping[str, Any]) -> str:
        """Sign ``payload`` with the current key of ``namespace``."""
        record = await self.get_namespace(namespace)
        handler = self.handler_for(record.algorithm)
        return await handler.sign(record, payload)

    async def verify(
        self, token: str, namespace: Optional[str] = None
    ) -> dict[str, Any]:
        """Verify ``token`` and return its payload.

        Symmetric tokens name their namespace in the ``kid`` header.
        Asymmetric tokens do not, so ``namespace`` must be given for them.
        """
        header = self.codec.decode_header(token)
        family = family_for(header.get("alg"))
        kid = header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise InvalidKeyIdentifierError("Token has no key identifier.")

        if family.symmetric:
            namespace_id, key_id = self.parse_key_identifier(kid)
            if namespace is not None and namespace != namespace_id:
                raise InvalidKeyIdentifierError(
                    "Token was not issued for this namespace.",
                    namespace=namespace,
                    kid=kid,
                )
        else:
            if namespace is None:
                raise InvalidKeyIdentifierError(
                    "A namespace is required to verify asymmetric tokens.", kid=kid
                )
            namespace_id, key_id = namespace, kid

        record = await self.get_namespace(namespace_id)
        handler = self.handler_for(record.algorithm)
        return await handler.verify(token, record, key_id)

    @staticmethod
    def parse_key_identifier(kid: str) -> tuple[str, str]:
        """Split a symmetric ``kid`` into ``(namespace, key id)``."""
        namespace_id, sep, key_id = kid.partition(KID_SEPARATOR)
        if not sep or not namespace_id or not key_id:
            raise InvalidKeyIdentifierError("Malformed key identifier.", kid=kid)
        return namespace_id, key_id

    def _reconcile(self, existing: NamespaceRecord, options: NamespaceOptions) -> None:
        diffs = existing.policy_differences(options)
        if not diffs:
            logger.info("Namespace %s is already provisioned", options.id)
            return
        if self.config.provisioning.on_mismatch == "reject":
            raise NamespaceMismatchError(
                "Namespace is already provisioned with a different policy.",
                namespace=options.id,
                fields=",".join(sorted(diffs)),
            )
        logger.warning(
            "Namespace %s is already provisioned; keeping stored policy for %s",
            options.id,
            ", ".join(sorted(diffs)),
        )


def get_keystore(config: Optional[KeyspaceConfig] = None) -> KeyStore:
    """Build a :class:`KeyStore` from configuration."""

    config = config or load_config()
    return KeyStore(
        store=get_record_store(config=config),
        registry=get_key_registry(config),
        config=config,
    )
