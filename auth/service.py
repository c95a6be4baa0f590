"""
Login authenticator — registration and credential checks.

Unknown emails and wrong passwords fail identically: same exception,
same message, and a bcrypt comparison is performed in both cases so the
response time does not reveal whether the account exists.
"""

from __future__ import annotations

import asyncio
import logging
from functools import lru_cache

from auth.directory import UserDirectory
from auth.errors import DuplicateIdentity, InvalidCredentials
from auth.jwt import SessionToken, TokenSigner
from auth.password import (
    hash_password,
    hash_password_async,
    verify_password_async,
)
from database.models import User

logger = logging.getLogger(__name__)


@lru_cache
def _dummy_hash() -> str:
    # same cost factor as real hashes; compared against when no user matches
    return hash_password("timing-equaliser")


async def warm_dummy_hash() -> None:
    """Build the dummy hash up front so the first unknown-email login is not slower."""
    await asyncio.to_thread(_dummy_hash)


class Authenticator:
    def __init__(self, directory: UserDirectory, signer: TokenSigner) -> None:
        self.directory = directory
        self.signer = signer

    async def register(self, email: str, username: str, password: str) -> User:
        """Create a principal.  Raises ``DuplicateIdentity`` or ``InputTooLarge``."""
        if await self.directory.find_by_email(email) is not None:
            raise DuplicateIdentity("Email already registered")
        password_hash = await hash_password_async(password)
        user = await self.directory.create(email, username, password_hash)
        logger.info("Registered user %s (%s)", user.username, user.id)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.directory.find_by_email(email)
        if user is not None:
            stored_hash = user.password_hash
        else:
            stored_hash = await asyncio.to_thread(_dummy_hash)
        password_ok = await verify_password_async(password, stored_hash)
        if user is None or not password_ok:
            raise InvalidCredentials()
        return user

    def issue_token(self, user: User) -> SessionToken:
        token = self.signer.issue(user.id)
        logger.info("Login: %s (%s)", user.username, user.id)
        return token

    async def login(self, email: str, password: str) -> SessionToken:
        user = await self.authenticate(email, password)
        return self.issue_token(user)
