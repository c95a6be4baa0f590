"""
User directory — persistence-facing principal lookups.

No authentication logic lives here; ``auth.service`` builds on it.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import DuplicateIdentity
from database.models import User

logger = logging.getLogger(__name__)


class UserDirectory:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: int) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create(self, email: str, username: str, password_hash: str) -> User:
        """
        Insert a new principal.

        The unique index on ``users.email`` is the final arbiter: a
        concurrent registration that slips past the caller's pre-check
        surfaces here as ``DuplicateIdentity``.
        """
        user = User(email=email, username=username, password_hash=password_hash)
        try:
            async with self.session.begin_nested():
                self.session.add(user)
                await self.session.flush()
        except IntegrityError as exc:
            logger.info("Registration rejected: email already registered")
            raise DuplicateIdentity("Email already registered") from exc
        return user
