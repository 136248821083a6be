"""Error taxonomy for keyspace operations."""

from __future__ import annotations

from typing import Any


class KeyspaceError(Exception):
    """Base class for all keyspace errors.

    ``details`` carries diagnostic context such as the namespace id or the
    operation that failed. Key material is never placed in it.
    """

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{k}={v}" for k, v in sorted(self.details.items()))
        return f"{self.message} ({context})"


class UnsupportedAlgorithmError(KeyspaceError):
    """No handler exists for the requested algorithm family."""


class NotFoundError(KeyspaceError):
    """A namespace or key record does not exist."""


class DuplicateRecordError(KeyspaceError):
    """A namespace record with the same id already exists."""


class InvalidKeyError(KeyspaceError):
    """An external key is missing, revoked, or could not be looked up."""


class InvalidKeyIdentifierError(KeyspaceError):
    """A token's key id matches no live key of its namespace."""


class InternalError(KeyspaceError):
    """Storage or other infrastructure failure."""


class RotationConflictError(InternalError):
    """Key rotation kept losing the compare-and-swap race."""


class NamespaceMismatchError(KeyspaceError):
    """A re-provisioned namespace disagrees with the stored policy."""


class TokenVerificationError(KeyspaceError):
    """A token failed signature, structure or time-claim checks."""


class KeyRegistryError(KeyspaceError):
    """The external key registry could not complete a lookup."""


__all__ = [
    "KeyspaceError",
    "UnsupportedAlgorithmError",
    "NotFoundError",
    "DuplicateRecordError",
    "InvalidKeyError",
    "InvalidKeyIdentifierError",
    "InternalError",
    "RotationConflictError",
    "NamespaceMismatchError",
    "TokenVerificationError",
    "KeyRegistryError",
]
