"""
Authentication and ownership error taxonomy.

These are raised by the auth services and the ownership-scoped storage
layer.  They carry diagnostic detail for logs only; ``api.errors`` maps
each one to a fixed, non-revealing HTTP response.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every error raised by the auth core."""


class InvalidCredentials(AuthError):
    """Unknown email or wrong password (deliberately not distinguished)."""

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class DuplicateIdentity(AuthError):
    """A principal with this email already exists."""


class InputTooLarge(AuthError):
    """Input exceeds the configured size bound."""


class TokenError(AuthError):
    """Base class for session token failures."""


class TokenMalformed(TokenError):
    """Token is structurally invalid (encoding, shape, missing claims)."""


class TokenSignatureInvalid(TokenError):
    """Token payload does not match its signature."""


class TokenExpired(TokenError):
    """Token is past its ``exp`` claim."""


class Unauthenticated(AuthError):
    """Request carries no usable identity."""

    def __init__(self, reason: str = "Not authenticated") -> None:
        super().__init__(reason)


class NotFound(AuthError):
    """No row matches the (resource id, owner id) pair."""


class MissingSigningSecret(AuthError):
    """``JWT_SECRET`` is absent or empty; the process must not start."""
