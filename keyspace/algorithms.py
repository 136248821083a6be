"""Signing algorithm families and handler selection."""

from __future__ import annotations

from enum import Enum

from .errors import UnsupportedAlgorithmError


class AlgorithmFamily(str, Enum):
    """Families of JWS algorithms, each served by one namespace handler."""

    HMAC = "HS"
    RSA = "RS"
    ECDSA = "ES"

    @property
    def symmetric(self) -> bool:
        """Whether keys of this family are shared secrets held locally."""
        return self is AlgorithmFamily.HMAC


_ALGORITHMS: dict[str, AlgorithmFamily] = {
    "HS256": AlgorithmFamily.HMAC,
    "HS384": AlgorithmFamily.HMAC,
    "HS512": AlgorithmFamily.HMAC,
    "RS256": AlgorithmFamily.RSA,
    "RS384": AlgorithmFamily.RSA,
    "RS512": AlgorithmFamily.RSA,
    "ES256": AlgorithmFamily.ECDSA,
    "ES384": AlgorithmFamily.ECDSA,
    "ES512": AlgorithmFamily.ECDSA,
}

SUPPORTED_ALGORITHMS = frozenset(_ALGORITHMS)


def family_for(algorithm: str | None) -> AlgorithmFamily:
    """Return the family of ``algorithm`` or raise ``UnsupportedAlgorithmError``."""
    try:
        return _ALGORITHMS[algorithm]  # type: ignore[index]
    except (KeyError, TypeError):
        raise UnsupportedAlgorithmError(
            "Unsupported algorithm.", algorithm=algorithm
        ) from None


__all__ = ["AlgorithmFamily", "SUPPORTED_ALGORITHMS", "family_for"]
