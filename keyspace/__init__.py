"""keyspace: namespaced JWT issuance with lock-free key rotation."""

from .algorithms import AlgorithmFamily, family_for
from .codec import TokenCodec
from .config import KeyspaceConfig, load_config
from .errors import (
    DuplicateRecordError,
    InternalError,
    InvalidKeyError,
    InvalidKeyIdentifierError,
    KeyRegistryError,
    KeyspaceError,
    NamespaceMismatchError,
    NotFoundError,
    RotationConflictError,
    TokenVerificationError,
    UnsupportedAlgorithmError,
)
from .keystore import KeyStore, get_keystore
from .models import NamespaceOptions, NamespaceRecord
from .persistence import get_record_store
from .registry import get_key_registry

__version__ = "0.1.0"
__all__ = [
    "AlgorithmFamily",
    "family_for",
    "TokenCodec",
    "KeyspaceConfig",
    "load_config",
    "KeyStore",
    "get_keystore",
    "NamespaceOptions",
    "NamespaceRecord",
    "get_record_store",
    "get_key_registry",
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
