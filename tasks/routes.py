"""
Task API routes. Every route requires a valid Bearer token and only ever
touches the caller's own tasks.

Route prefix: /api/v1/tasks
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import db_session, get_current_user_id
from database.models import Task
from tasks.repository import TaskRepository
from tasks.schemas import TaskCount, TaskCreate, TaskResponse, TaskStatus, TaskUpdate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])


def get_task_repository(session: AsyncSession = Depends(db_session)) -> TaskRepository:
    return TaskRepository(session)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    req: TaskCreate,
    user_id: int = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
) -> Task:
    task = await repo.create(
        user_id,
        title=req.title,
        description=req.description,
        status=req.status.value,
        start_date=req.start_date,
        end_date=req.due_date,
    )
    logger.info("Task %s created by user %s", task.id, user_id)
    return task


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    user_id: int = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
) -> List[Task]:
    return await repo.list_for_owner(user_id)


@router.get("/count", response_model=TaskCount)
async def count_tasks(
    user_id: int = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
) -> TaskCount:
    return TaskCount(count=await repo.count(user_id))


@router.get("/status/{task_status}", response_model=List[TaskResponse])
async def tasks_by_status(
    task_status: TaskStatus,
    user_id: int = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
) -> List[Task]:
    return await repo.by_status(user_id, task_status.value)


@router.get("/date", response_model=List[TaskResponse])
async def tasks_by_date(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    user_id: int = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
) -> List[Task]:
    return await repo.by_date_range(user_id, start_date, end_date)


@router.get("/search/{term}", response_model=List[TaskResponse])
async def search_tasks(
    term: str,
    user_id: int = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
) -> List[Task]:
    return await repo.search(user_id, term)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
) -> Task:
    return await repo.get(task_id, user_id)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    req: TaskUpdate,
    user_id: int = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
) -> Task:
    return await repo.update(task_id, user_id, req.to_columns())


@router.delete("/{task_id}", response_model=TaskResponse)
async def delete_task(
    task_id: int,
    user_id: int = Depends(get_current_user_id),
    repo: TaskRepository = Depends(get_task_repository),
) -> Task:
    task = await repo.delete(task_id, user_id)
    logger.info("Task %s deleted by user %s", task_id, user_id)
    return task
