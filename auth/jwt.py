"""
JWT-style session token creation and verification.

Tokens are a base64url-encoded JSON payload followed by an HMAC-SHA256
signature over that encoded segment::

    <base64url({"sub": 1, "iat": 1700000000, "exp": 1700086400})>.<hex sig>

Tokens are stateless: nothing is stored server-side, so the only way to
revoke outstanding tokens is to rotate ``JWT_SECRET``.  Secret key and
lifetime are loaded from ``config.jwt_secret`` / ``config.jwt_expiry_seconds``.
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import logging
import string
import time
from base64 import b64decode, urlsafe_b64encode
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable, Dict

from auth.errors import (
    MissingSigningSecret,
    TokenExpired,
    TokenMalformed,
    TokenSignatureInvalid,
)
from config.settings import config

logger = logging.getLogger(__name__)

_SIG_LENGTH = hashlib.sha256().digest_size * 2
_HEX = frozenset(string.hexdigits.lower())
_REQUIRED_CLAIMS = ("sub", "iat", "exp")


@dataclass(frozen=True)
class SessionToken:
    token: str
    principal_id: int
    issued_at: datetime
    expires_at: datetime
    signature: str


def _b64encode(raw: bytes) -> str:
    return urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    return b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class TokenSigner:
    """Mints and validates signed, time-bounded session tokens."""

    def __init__(
        self,
        secret: str,
        expiry_seconds: int = 86400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise MissingSigningSecret("JWT_SECRET must be set to a non-empty value")
        if expiry_seconds <= 0:
            raise ValueError("expiry_seconds must be positive")
        self._key = secret.encode("utf-8")
        self.expiry_seconds = expiry_seconds
        self._clock = clock

    def _sign(self, segment: str) -> str:
        return hmac.new(self._key, segment.encode("ascii"), hashlib.sha256).hexdigest()

    def issue(self, principal_id: int) -> SessionToken:
        """Create a signed token for ``principal_id``."""
        issued_at = int(self._clock())
        expires_at = issued_at + self.expiry_seconds
        payload = {"sub": principal_id, "iat": issued_at, "exp": expires_at}
        segment = _b64encode(
            json.dumps(payload, separators=(",", ":")).encode("utf-8")
        )
        signature = self._sign(segment)
        return SessionToken(
            token=f"{segment}.{signature}",
            principal_id=principal_id,
            issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
            signature=signature,
        )

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Verify ``token`` and return its claims.

        Raises ``TokenMalformed``, ``TokenSignatureInvalid`` or
        ``TokenExpired``.  The signature is checked before any claim is
        trusted.
        """
        if not isinstance(token, str) or token.count(".") != 1:
            raise TokenMalformed("expected <payload>.<signature>")
        segment, signature = token.split(".")
        if not segment or len(signature) != _SIG_LENGTH or not set(signature) <= _HEX:
            raise TokenMalformed("bad token shape")
        try:
            expected = self._sign(segment)
        except UnicodeEncodeError as exc:
            raise TokenMalformed("payload is not ascii") from exc
        if not hmac.compare_digest(signature, expected):
            raise TokenSignatureInvalid("signature mismatch")

        try:
            claims = json.loads(_b64decode(segment))
        except (binascii.Error, ValueError) as exc:
            raise TokenMalformed("payload is not base64 JSON") from exc
        if not isinstance(claims, dict):
            raise TokenMalformed("payload is not an object")
        for name in _REQUIRED_CLAIMS:
            if not _is_int(claims.get(name)):
                raise TokenMalformed(f"missing or invalid claim: {name}")

        if self._clock() >= claims["exp"]:
            raise TokenExpired("token expired")
        return claims

    def verify(self, token: str) -> int:
        """Verify token and return the principal id."""
        return self.decode(token)["sub"]


@lru_cache
def get_token_signer() -> TokenSigner:
    """Process-wide signer; raises ``MissingSigningSecret`` when unconfigured."""
    signer = TokenSigner(config.jwt_secret, config.jwt_expiry_seconds)
    logger.info("Session tokens: HMAC-SHA256, lifetime %ds", signer.expiry_seconds)
    return signer
