"""
Ownership-scoped statements for owned rows.

Every statement built here carries ``owner == principal_id`` in its
``WHERE`` clause, and single-row operations address the row by the
compound key ``(id, owner)``.  A row that exists under a different owner
is indistinguishable from one that does not exist: both raise
``NotFound``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from sqlalchemy import Delete, Select, Update, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import NotFound

logger = logging.getLogger(__name__)


class OwnedScope:
    """Statement builder + executor bound to one owned model."""

    def __init__(
        self,
        model: Any,
        *,
        owner_column: str = "user_id",
        id_column: str = "id",
        label: str | None = None,
    ) -> None:
        self.model = model
        self.owner_column = owner_column
        self.id_column = id_column
        self.label = label or model.__name__
        self._owner = getattr(model, owner_column)
        self._id = getattr(model, id_column)

    # ── statements ──────────────────────────────────────────────────────

    def select(self, owner_id: int, *criteria: Any) -> Select:
        return select(self.model).where(self._owner == owner_id, *criteria)

    def select_one(self, resource_id: int, owner_id: int) -> Select:
        return select(self.model).where(self._id == resource_id, self._owner == owner_id)

    def count_statement(self, owner_id: int, *criteria: Any) -> Select:
        return (
            select(func.count())
            .select_from(self.model)
            .where(self._owner == owner_id, *criteria)
        )

    def update_statement(
        self, resource_id: int, owner_id: int, values: Mapping[str, Any]
    ) -> Update:
        return (
            update(self.model)
            .where(self._id == resource_id, self._owner == owner_id)
            .values(**self._writable(values))
            .returning(self.model)
        )

    def delete_statement(self, resource_id: int, owner_id: int) -> Delete:
        return (
            delete(self.model)
            .where(self._id == resource_id, self._owner == owner_id)
            .returning(self.model)
        )

    def _writable(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        # the compound key itself is never writable through this scope
        return {
            k: v for k, v in values.items()
            if k not in (self.owner_column, self.id_column)
        }

    def _missing(self, resource_id: int, owner_id: int) -> NotFound:
        logger.debug("%s %s not found for owner %s", self.label, resource_id, owner_id)
        return NotFound(f"{self.label} not found")

    # ── execution ───────────────────────────────────────────────────────

    async def get(self, session: AsyncSession, resource_id: int, owner_id: int) -> Any:
        result = await session.execute(self.select_one(resource_id, owner_id))
        row = result.scalar_one_or_none()
        if row is None:
            raise self._missing(resource_id, owner_id)
        return row

    async def update(
        self,
        session: AsyncSession,
        resource_id: int,
        owner_id: int,
        values: Mapping[str, Any],
    ) -> Any:
        if not self._writable(values):
            return await self.get(session, resource_id, owner_id)
        result = await session.execute(
            self.update_statement(resource_id, owner_id, values)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise self._missing(resource_id, owner_id)
        return row

    async def delete(self, session: AsyncSession, resource_id: int, owner_id: int) -> Any:
        result = await session.execute(self.delete_statement(resource_id, owner_id))
        row = result.scalar_one_or_none()
        if row is None:
            raise self._missing(resource_id, owner_id)
        return row

    async def count(self, session: AsyncSession, owner_id: int, *criteria: Any) -> int:
        result = await session.execute(self.count_statement(owner_id, *criteria))
        return result.scalar_one()
