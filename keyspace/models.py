"""Data models for namespaces and their key state."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

KID_SEPARATOR = ":"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NamespaceOptions(BaseModel):
    """Options supplied when provisioning a namespace."""

    id: str = Field(..., description="Stable namespace identifier")
    algorithm: str = Field(..., description="JWS signing algorithm, e.g. HS256")
    token_ttl_in_secs: int = Field(..., ge=0)
    clock_tolerance_in_secs: int = Field(default=0, ge=0)
    key: Optional[str] = Field(
        default=None, description="External key reference for asymmetric algorithms"
    )

    @field_validator("id")
    @classmethod
    def _check_id(cls, v: str) -> str:
        if not v:
            raise ValueError("namespace id must be a non-empty string")
        if KID_SEPARATOR in v:
            raise ValueError(f"namespace id must not contain {KID_SEPARATOR!r}")
        return v


class RecordMeta(BaseModel):
    """Bookkeeping timestamps for a stored namespace record."""

    created: datetime = Field(default_factory=_utcnow)
    updated: datetime = Field(default_factory=_utcnow)


class NamespaceRecord(BaseModel):
    """A provisioned namespace as held by the record store.

    ``state`` is opaque to everything except the namespace's handler.
    """

    id: str
    algorithm: str
    token_ttl_in_secs: int
    clock_tolerance_in_secs: int = 0
    state: dict[str, Any] = Field(default_factory=dict)
    meta: RecordMeta = Field(default_factory=RecordMeta)

    @classmethod
    def from_options(
        cls, options: NamespaceOptions, state: dict[str, Any]
    ) -> "NamespaceRecord":
        return cls(
            id=options.id,
            algorithm=options.algorithm,
            token_ttl_in_secs=options.token_ttl_in_secs,
            clock_tolerance_in_secs=options.clock_tolerance_in_secs,
            state=state,
        )

    def policy_differences(self, options: NamespaceOptions) -> dict[str, tuple[Any, Any]]:
        """Return ``{field: (stored, requested)}`` for policy fields that differ."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for name in ("algorithm", "token_ttl_in_secs", "clock_tolerance_in_secs"):
            stored, requested = getattr(self, name), getattr(options, name)
            if stored != requested:
                diffs[name] = (stored, requested)
        return diffs


class HmacKey(BaseModel):
    """A symmetric signing key; ``data`` is base64 text, never raw bytes."""

    id: str
    data: str
    created: int
    expires: int


class HmacKeyState(BaseModel):
    """Handler state for HMAC namespaces: the active key and its predecessor."""

    key: HmacKey
    previous_key: Optional[HmacKey] = None

    def find(self, key_id: str | None) -> Optional[HmacKey]:
        """Return the live key with ``key_id``, if any."""
        if key_id is None:
            return None
        if key_id == self.key.id:
            return self.key
        if self.previous_key is not None and key_id == self.previous_key.id:
            return self.previous_key
        return None


class ExternalKeyState(BaseModel):
    """Handler state for namespaces whose key lives in an external registry."""

    key: str = Field(..., description="Reference understood by the key registry")


class ResolvedKey(BaseModel):
    """A key ready for signing."""

    id: str
    material: Union[bytes, str]


__all__ = [
    "KID_SEPARATOR",
    "NamespaceOptions",
    "RecordMeta",
    "NamespaceRecord",
    "HmacKey",
    "HmacKeyState",
    "ExternalKeyState",
    "ResolvedKey",
]
