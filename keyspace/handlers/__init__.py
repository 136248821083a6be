"""Namespace handlers, one per algorithm family."""

from .base import NamespaceHandler, NamespaceRef
from .external import ExternalKeyNamespaceHandler
from .hmac import HmacNamespaceHandler

__all__ = [
    "NamespaceHandler",
    "NamespaceRef",
    "HmacNamespaceHandler",
    "ExternalKeyNamespaceHandler",
]
