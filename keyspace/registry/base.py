"""External key registry interface."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol, Union

from pydantic import BaseModel, Field


class KeyStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    UNKNOWN = "unknown"


class RegisteredKey(BaseModel):
    """A key as reported by the external registry."""

    id: str
    material: Union[bytes, str] = Field(..., description="Signing (private) key")
    public_material: Optional[Union[bytes, str]] = Field(
        default=None, description="Verification key, when it differs from material"
    )
    status: KeyStatus = KeyStatus.UNKNOWN

    @property
    def verification_material(self) -> Union[bytes, str]:
        return self.public_material if self.public_material is not None else self.material


class KeyRegistry(Protocol):
    """Lookup service for externally managed signing keys."""

    async def resolve(self, key_ref: str) -> Optional[RegisteredKey]:
        """Return the key for ``key_ref`` or ``None`` if it does not exist.

        Raises ``KeyRegistryError`` when the lookup itself fails.
        """
