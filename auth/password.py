"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic
salting and configurable work factor.
"""

from __future__ import annotations

import asyncio

import bcrypt

from auth.errors import InputTooLarge
from config.settings import config


def _encode(password: str) -> bytes:
    raw = password.encode("utf-8", "surrogatepass")
    if len(raw) > config.password_max_bytes:
        raise InputTooLarge(
            f"Password exceeds {config.password_max_bytes} bytes"
        )
    return raw


def hash_password(password: str) -> str:
    """Hash a password with bcrypt (fresh salt per call, ``BCRYPT_ROUNDS`` work factor)."""
    salt = bcrypt.gensalt(rounds=config.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a bcrypt hash.

    Never raises: a mismatch, an oversized password or a hash string that
    is not a well-formed bcrypt hash all yield ``False``.
    """
    if not isinstance(password, str) or not isinstance(password_hash, str):
        return False
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (InputTooLarge, ValueError, TypeError):
        return False


async def hash_password_async(password: str) -> str:
    """``hash_password`` in a worker thread so the event loop keeps serving."""
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await asyncio.to_thread(verify_password, password, password_hash)
