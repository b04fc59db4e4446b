"""
Task routes for the Taskr API.
"""

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.exceptions import ErrorResponse, NotFoundError
from app.logging_config import get_logger
from app.models import Task
from app.repository import Repository
from app.schemas import TaskCreate, TaskRead, TaskUpdate
from app.schemas.fields import SanitizedId, SanitizedPriority

logger = get_logger(__name__)

router = APIRouter(responses={404: {"model": ErrorResponse}})


def _to_read(task: Task, class_name: str | None) -> TaskRead:
    read = TaskRead.model_validate(task)
    read.class_name = class_name
    return read


async def _read_one(repository: Repository, task_id: uuid.UUID) -> TaskRead:
    rows = await repository.find_tasks_with_class_name(Task.id == task_id)
    if not rows:
        raise NotFoundError("Task", str(task_id))
    return _to_read(*rows[0])


async def _require_class(repository: Repository, class_id: uuid.UUID) -> None:
    if await repository.get_class(class_id) is None:
        raise NotFoundError("Class", str(class_id))


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    class_id: Annotated[SanitizedId | None, Query(alias="classId")] = None,
    completed: bool | None = None,
    priority: SanitizedPriority | None = None,
    min_time: Annotated[int | None, Query(alias="minTime")] = None,
    max_time: Annotated[int | None, Query(alias="maxTime")] = None,
    start_date: Annotated[date | None, Query(alias="startDate")] = None,
    end_date: Annotated[date | None, Query(alias="endDate")] = None,
    session: AsyncSession = Depends(get_session),
) -> list[TaskRead]:
    """
    List tasks, newest first, each with its class name.

    Every supplied filter must match. Time and date bounds are inclusive.
    """
    conditions = []
    if class_id is not None:
        conditions.append(Task.class_id == class_id)
    if completed is not None:
        conditions.append(Task.completed == completed)
    if priority is not None:
        conditions.append(Task.priority == priority)
    if min_time is not None:
        conditions.append(Task.estimated_time >= min_time)
    if max_time is not None:
        conditions.append(Task.estimated_time <= max_time)
    if start_date is not None:
        conditions.append(Task.due_date >= start_date)
    if end_date is not None:
        conditions.append(Task.due_date <= end_date)

    rows = await Repository(session).find_tasks_with_class_name(*conditions)

    logger.debug(f"Listed {len(rows)} tasks with {len(conditions)} filters")

    return [_to_read(task, class_name) for task, class_name in rows]


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    """Get a task by ID."""
    return await _read_one(Repository(session), task_id)


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    """
    Create a new task.

    The referenced class must exist.
    """
    repository = Repository(session)
    await _require_class(repository, task_in.class_id)

    task = await repository.save(Task(**task_in.model_dump()))

    logger.info(f"Created task: id={task.id} name='{task.name}' class={task.class_id}")

    return await _read_one(repository, task.id)


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    session: AsyncSession = Depends(get_session),
) -> TaskRead:
    """
    Update a task. Only the supplied fields change.

    Reassigning classId requires the new class to exist.
    """
    repository = Repository(session)
    task = await repository.get_task(task_id)
    if not task:
        raise NotFoundError("Task", str(task_id))

    update_data = task_in.model_dump(exclude_unset=True, exclude_none=True)

    logger.info(f"Updating task {task_id}: {update_data}")

    if "class_id" in update_data and update_data["class_id"] != task.class_id:
        await _require_class(repository, update_data["class_id"])

    for field, value in update_data.items():
        setattr(task, field, value)

    await repository.save(task)
    return await _read_one(repository, task_id)


@router.delete("/{task_id}")
async def delete_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Delete a task."""
    repository = Repository(session)
    task = await repository.get_task(task_id)
    if not task:
        raise NotFoundError("Task", str(task_id))

    logger.info(f"Deleting task {task_id}: '{task.name}'")

    await repository.delete(task)
    return {"message": "Task deleted"}
