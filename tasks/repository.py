"""
Task persistence, scoped to the owning user.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Task
from database.ownership import OwnedScope

task_scope = OwnedScope(Task, owner_column="user_id", label="Task")


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class TaskRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _all(self, owner_id: int, *criteria: Any) -> List[Task]:
        result = await self.session.execute(
            task_scope.select(owner_id, *criteria).order_by(Task.created_at.desc())
        )
        return list(result.scalars().all())

    async def create(
        self,
        owner_id: int,
        *,
        title: str,
        description: Optional[str] = None,
        status: str = "PENDING",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Task:
        task = Task(
            user_id=owner_id,
            title=title,
            description=description,
            status=status,
            start_date=start_date,
            end_date=end_date,
        )
        self.session.add(task)
        await self.session.flush()
        return task

    async def list_for_owner(self, owner_id: int) -> List[Task]:
        """All of the owner's tasks, newest first."""
        return await self._all(owner_id)

    async def get(self, task_id: int, owner_id: int) -> Task:
        return await task_scope.get(self.session, task_id, owner_id)

    async def update(self, task_id: int, owner_id: int, changes: Mapping[str, Any]) -> Task:
        return await task_scope.update(self.session, task_id, owner_id, changes)

    async def delete(self, task_id: int, owner_id: int) -> Task:
        return await task_scope.delete(self.session, task_id, owner_id)

    async def count(self, owner_id: int) -> int:
        return await task_scope.count(self.session, owner_id)

    async def by_status(self, owner_id: int, status: str) -> List[Task]:
        return await self._all(owner_id, Task.status == status)

    async def by_date_range(
        self, owner_id: int, start_date: datetime, end_date: datetime
    ) -> List[Task]:
        """Tasks that start on/after ``start_date`` and end on/before ``end_date``."""
        return await self._all(
            owner_id, Task.start_date >= start_date, Task.end_date <= end_date
        )

    async def search(self, owner_id: int, term: str) -> List[Task]:
        """Case-insensitive substring match on title or description."""
        pattern = _like_pattern(term)
        return await self._all(
            owner_id,
            or_(
                Task.title.ilike(pattern, escape="\\"),
                Task.description.ilike(pattern, escape="\\"),
            ),
        )
