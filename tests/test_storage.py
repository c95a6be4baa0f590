"""
Storage tests against a real engine (in-memory SQLite via aiosqlite).

These exercise the paths mocks cannot: the unique index on ``users.email``
surfacing through the savepoint as ``DuplicateIdentity``, and the
``UPDATE/DELETE … RETURNING`` statements built by ``OwnedScope``.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Tuple

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from auth.directory import UserDirectory
from auth.errors import DuplicateIdentity, NotFound
from database.models import User
from database.session import build_engine, build_session_factory, create_tables
from tasks.repository import TaskRepository


@asynccontextmanager
async def _database() -> AsyncIterator[AsyncSession]:
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    try:
        await create_tables(engine)
        async with build_session_factory(engine)() as session:
            yield session
    finally:
        await engine.dispose()


async def _two_users(session: AsyncSession) -> Tuple[User, User]:
    directory = UserDirectory(session)
    alice = await directory.create("a@x.com", "a", "hash-a")
    bob = await directory.create("b@x.com", "b", "hash-b")
    await session.commit()
    return alice, bob


class TestUserDirectoryOnEngine:
    @pytest.mark.asyncio
    async def test_duplicate_email_hits_unique_index(self):
        async with _database() as session:
            directory = UserDirectory(session)
            first = await directory.create("a@x.com", "a", "hash-1")
            await session.commit()

            # bypasses any pre-check, as a concurrent registration would
            with pytest.raises(DuplicateIdentity):
                await directory.create("a@x.com", "someone-else", "hash-2")

            # only the savepoint was rolled back; the session is still usable
            found = await directory.find_by_email("a@x.com")
            assert found.id == first.id
            assert found.username == "a"
            assert found.password_hash == "hash-1"

            other = await directory.create("c@x.com", "c", "hash-3")
            await session.commit()
            assert await directory.find_by_id(other.id) is not None

    @pytest.mark.asyncio
    async def test_lookups(self):
        async with _database() as session:
            alice, _ = await _two_users(session)
            directory = UserDirectory(session)
            assert (await directory.find_by_id(alice.id)).email == "a@x.com"
            assert await directory.find_by_email("nobody@x.com") is None
            assert await directory.find_by_id(999) is None


class TestOwnedTasksOnEngine:
    @pytest.mark.asyncio
    async def test_other_owner_cannot_read_update_or_delete(self):
        async with _database() as session:
            alice, bob = await _two_users(session)
            repo = TaskRepository(session)
            task = await repo.create(alice.id, title="t1")
            await session.commit()

            with pytest.raises(NotFound):
                await repo.get(task.id, bob.id)
            with pytest.raises(NotFound):
                await repo.update(task.id, bob.id, {"title": "hijacked"})
            with pytest.raises(NotFound):
                await repo.delete(task.id, bob.id)
            await session.commit()

            session.expunge_all()
            kept = await repo.get(task.id, alice.id)
            assert kept.title == "t1"
            assert kept.user_id == alice.id

    @pytest.mark.asyncio
    async def test_owner_update_returns_row_and_keeps_owner(self):
        async with _database() as session:
            alice, bob = await _two_users(session)
            repo = TaskRepository(session)
            task = await repo.create(alice.id, title="t1")
            await session.commit()
            task_id = task.id

            updated = await repo.update(
                task_id, alice.id, {"title": "t2", "status": "COMPLETED", "user_id": bob.id}
            )
            assert updated.id == task_id
            assert updated.title == "t2"
            assert updated.status == "COMPLETED"
            assert updated.user_id == alice.id
            await session.commit()

            session.expunge_all()
            with pytest.raises(NotFound):
                await repo.get(task_id, bob.id)
            assert (await repo.get(task_id, alice.id)).title == "t2"

    @pytest.mark.asyncio
    async def test_owner_delete_returns_row(self):
        async with _database() as session:
            alice, _ = await _two_users(session)
            repo = TaskRepository(session)
            task = await repo.create(alice.id, title="gone soon")
            await session.commit()
            task_id = task.id

            deleted = await repo.delete(task_id, alice.id)
            assert deleted.id == task_id
            assert deleted.title == "gone soon"
            await session.commit()

            with pytest.raises(NotFound):
                await repo.get(task_id, alice.id)
            assert await repo.count(alice.id) == 0

    @pytest.mark.asyncio
    async def test_lists_and_search_are_scoped(self):
        async with _database() as session:
            alice, bob = await _two_users(session)
            repo = TaskRepository(session)
            await repo.create(alice.id, title="Quarterly report", status="PENDING")
            await repo.create(alice.id, title="100% done", status="COMPLETED")
            await repo.create(bob.id, title="Report draft", status="PENDING")
            await session.commit()

            assert [t.title for t in await repo.search(bob.id, "report")] == ["Report draft"]
            assert [t.title for t in await repo.search(alice.id, "REPORT")] == ["Quarterly report"]
            assert [t.title for t in await repo.search(alice.id, "100%")] == ["100% done"]
            # % is matched literally, not as a wildcard
            assert await repo.search(alice.id, "0%d") == []

            assert [t.title for t in await repo.by_status(bob.id, "PENDING")] == ["Report draft"]
            assert await repo.by_status(bob.id, "COMPLETED") == []
            assert await repo.count(alice.id) == 2
            assert await repo.count(bob.id) == 1
            assert len(await repo.list_for_owner(alice.id)) == 2
