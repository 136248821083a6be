"""JWT encoding and verification on top of PyJWT."""

from __future__ import annotations

import time
from typing import Any, Callable, Iterable, Mapping

import jwt

from .errors import TokenVerificationError

Clock = Callable[[], float]

_DECODE_OPTIONS = {
    "require": ["exp", "iat"],
    # time claims are checked against the codec clock in _check_time_claims
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
}


class TokenCodec:
    """Signs and verifies JSON Web Tokens.

    Signature math is PyJWT's. Time-based claims are evaluated against
    ``clock`` so that key expiry and token expiry share one notion of "now".
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock: Clock = clock or time.time

    def timestamp(self) -> int:
        """Return the current time in whole epoch seconds."""
        return int(self.clock())

    def sign(
        self,
        payload: Mapping[str, Any],
        secret: Any,
        *,
        algorithm: str,
        headers: Mapping[str, Any] | None = None,
    ) -> str:
        return jwt.encode(
            dict(payload), secret, algorithm=algorithm, headers=dict(headers or {})
        )

    def decode_header(self, token: str) -> dict[str, Any]:
        """Return the token header without verifying the signature."""
        try:
            return jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as exc:
            raise TokenVerificationError("Malformed token.", reason=str(exc)) from exc

    def verify(
        self,
        token: str,
        secret: Any,
        *,
        algorithms: Iterable[str],
        clock_tolerance: int = 0,
    ) -> dict[str, Any]:
        """Verify ``token`` and return its payload.

        Raises:
            TokenVerificationError: if the signature, structure or any time
                claim is invalid.
        """
        try:
            payload = jwt.decode(
                token, secret, algorithms=list(algorithms), options=_DECODE_OPTIONS
            )
            self._check_time_claims(payload, clock_tolerance)
        except jwt.InvalidTokenError as exc:
            raise TokenVerificationError(
                "Token verification failed.", reason=str(exc)
            ) from exc
        return payload

    def _check_time_claims(self, payload: Mapping[str, Any], leeway: int) -> None:
        now = self.clock()
        try:
            exp = int(payload["exp"])
            iat = int(payload["iat"])
            nbf = int(payload["nbf"]) if "nbf" in payload else None
        except (TypeError, ValueError) as exc:
            raise jwt.DecodeError("Time claims must be integers.") from exc
        if exp <= now - leeway:
            raise jwt.ExpiredSignatureError("Signature has expired.")
        if iat > now + leeway:
            raise jwt.ImmatureSignatureError("The token is not yet valid (iat).")
        if nbf is not None and nbf > now + leeway:
            raise jwt.ImmatureSignatureError("The token is not yet valid (nbf).")


__all__ = ["Clock", "TokenCodec"]
