"""
Tests for session token issue / verify.
"""

import hashlib
import hmac
import json
from base64 import urlsafe_b64encode

import pytest

from auth.errors import (
    MissingSigningSecret,
    TokenExpired,
    TokenMalformed,
    TokenSignatureInvalid,
)
from auth.jwt import TokenSigner, get_token_signer


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _forge(secret: str, payload) -> str:
    """Build a correctly signed token around an arbitrary payload."""
    segment = urlsafe_b64encode(json.dumps(payload).encode()).rstrip(b"=").decode()
    sig = hmac.new(secret.encode(), segment.encode(), hashlib.sha256).hexdigest()
    return f"{segment}.{sig}"


class TestIssueAndVerify:
    def test_round_trip(self):
        signer = TokenSigner("secret-a")
        issued = signer.issue(42)
        assert signer.verify(issued.token) == 42
        assert issued.principal_id == 42

    def test_token_fields(self):
        clock = FakeClock()
        signer = TokenSigner("secret-a", expiry_seconds=86400, clock=clock)
        issued = signer.issue(7)
        assert (issued.expires_at - issued.issued_at).total_seconds() == 86400
        assert issued.token.endswith("." + issued.signature)
        claims = signer.decode(issued.token)
        assert claims == {"sub": 7, "iat": 1_700_000_000, "exp": 1_700_086_400}

    def test_valid_until_expiry(self):
        clock = FakeClock()
        signer = TokenSigner("secret-a", expiry_seconds=60, clock=clock)
        token = signer.issue(1).token
        clock.now += 59
        assert signer.verify(token) == 1

    def test_expired(self):
        clock = FakeClock()
        signer = TokenSigner("secret-a", expiry_seconds=60, clock=clock)
        token = signer.issue(1).token
        clock.now += 60
        with pytest.raises(TokenExpired):
            signer.verify(token)

    def test_other_secret_rejected(self):
        token = TokenSigner("secret-a").issue(1).token
        with pytest.raises(TokenSignatureInvalid):
            TokenSigner("secret-b").verify(token)


class TestTampering:
    def test_payload_bit_flip(self):
        signer = TokenSigner("secret-a")
        segment, sig = signer.issue(1).token.split(".")
        flipped = chr(ord(segment[5]) ^ 1)
        tampered = segment[:5] + flipped + segment[6:]
        with pytest.raises((TokenSignatureInvalid, TokenMalformed)):
            signer.verify(f"{tampered}.{sig}")

    def test_swapped_principal(self):
        signer = TokenSigner("secret-a")
        _, sig = signer.issue(1).token.split(".")
        segment, _ = signer.issue(2).token.split(".")
        with pytest.raises(TokenSignatureInvalid):
            signer.verify(f"{segment}.{sig}")

    def test_signature_bit_flip(self):
        signer = TokenSigner("secret-a")
        segment, sig = signer.issue(1).token.split(".")
        new_last = "0" if sig[-1] != "0" else "1"
        with pytest.raises(TokenSignatureInvalid):
            signer.verify(f"{segment}.{sig[:-1]}{new_last}")


class TestMalformed:
    @pytest.mark.parametrize(
        "token",
        [
            "",
            "no-dot-at-all",
            "a.b.c",
            ".abcdef",
            "eyJzdWIiOjF9.not-hex-signature",
            "eyJzdWIiOjF9." + "a" * 10,
            "payload-é." + "a" * 64,
        ],
    )
    def test_bad_shape(self, token):
        with pytest.raises(TokenMalformed):
            TokenSigner("secret-a").verify(token)

    def test_non_string(self):
        with pytest.raises(TokenMalformed):
            TokenSigner("secret-a").verify(None)

    @pytest.mark.parametrize(
        "payload",
        [
            {"iat": 1, "exp": 9_999_999_999},
            {"sub": 1, "iat": 1},
            {"sub": "1", "iat": 1, "exp": 9_999_999_999},
            {"sub": True, "iat": 1, "exp": 9_999_999_999},
            [1, 2, 3],
        ],
    )
    def test_signed_but_missing_claims(self, payload):
        token = _forge("secret-a", payload)
        with pytest.raises(TokenMalformed):
            TokenSigner("secret-a").verify(token)

    def test_signed_but_not_json(self):
        segment = urlsafe_b64encode(b"not json").rstrip(b"=").decode()
        sig = hmac.new(b"secret-a", segment.encode(), hashlib.sha256).hexdigest()
        with pytest.raises(TokenMalformed):
            TokenSigner("secret-a").verify(f"{segment}.{sig}")


class TestConfiguration:
    @pytest.mark.parametrize("secret", ["", None])
    def test_missing_secret_is_fatal(self, secret):
        with pytest.raises(MissingSigningSecret):
            TokenSigner(secret)

    def test_non_positive_expiry(self):
        with pytest.raises(ValueError):
            TokenSigner("secret-a", expiry_seconds=0)

    def test_process_signer_requires_secret(self, monkeypatch):
        from config.settings import config

        get_token_signer.cache_clear()
        monkeypatch.setattr(config, "jwt_secret", "")
        try:
            with pytest.raises(MissingSigningSecret):
                get_token_signer()
        finally:
            get_token_signer.cache_clear()

    def test_process_signer_uses_config(self, monkeypatch):
        from config.settings import config

        get_token_signer.cache_clear()
        monkeypatch.setattr(config, "jwt_expiry_seconds", 3600)
        try:
            assert get_token_signer().expiry_seconds == 3600
            assert get_token_signer() is get_token_signer()
        finally:
            get_token_signer.cache_clear()
