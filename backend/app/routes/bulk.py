"""
Bulk operation routes for the Taskr API.

Every endpoint here is all-or-nothing and says so: success and error
bodies both carry ``transactional: true``.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_executor, get_session
from app.exceptions import ErrorResponse, mark_transactional
from app.repository import Repository
from app.schemas import (
    CompleteAllTasksRequest,
    CompleteAllTasksResponse,
    DeleteClassesRequest,
    DeleteClassesResponse,
    DuplicateClassRequest,
    DuplicateClassResponse,
    MoveTasksRequest,
    MoveTasksResponse,
)
from app.services import bulk
from app.transactions import TransactionExecutor


router = APIRouter(
    dependencies=[Depends(mark_transactional)],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


@router.post("/move-tasks", response_model=MoveTasksResponse)
async def move_tasks(
    body: MoveTasksRequest,
    session: AsyncSession = Depends(get_session),
    executor: TransactionExecutor = Depends(get_executor),
) -> MoveTasksResponse:
    """Move every task of one class to another class."""
    result = await bulk.move_tasks(
        Repository(session), executor, body.from_class_id, body.to_class_id
    )
    return MoveTasksResponse(
        message=f"Successfully moved {result.moved_count} tasks",
        moved_count=result.moved_count,
        from_class=result.from_class,
        to_class=result.to_class,
    )


@router.post("/delete-classes", response_model=DeleteClassesResponse)
async def delete_classes(
    body: DeleteClassesRequest,
    session: AsyncSession = Depends(get_session),
    executor: TransactionExecutor = Depends(get_executor),
) -> DeleteClassesResponse:
    """Delete several classes together with all of their tasks."""
    result = await bulk.delete_classes(Repository(session), executor, body.class_ids)
    return DeleteClassesResponse(
        message="Bulk deletion completed successfully",
        classes_deleted=result.classes_deleted,
        tasks_deleted=result.tasks_deleted,
    )


@router.post("/complete-all-tasks", response_model=CompleteAllTasksResponse)
async def complete_all_tasks(
    body: CompleteAllTasksRequest,
    session: AsyncSession = Depends(get_session),
    executor: TransactionExecutor = Depends(get_executor),
) -> CompleteAllTasksResponse:
    """Mark every incomplete task of a class as completed."""
    result = await bulk.complete_all_tasks(Repository(session), executor, body.class_id)
    return CompleteAllTasksResponse(
        message=f'Marked all tasks in "{result.class_name}" as completed',
        class_name=result.class_name,
        tasks_completed=result.tasks_completed,
    )


@router.post("/duplicate-class", response_model=DuplicateClassResponse)
async def duplicate_class(
    body: DuplicateClassRequest,
    session: AsyncSession = Depends(get_session),
    executor: TransactionExecutor = Depends(get_executor),
) -> DuplicateClassResponse:
    """Copy a class and all of its tasks; copies start out incomplete."""
    result = await bulk.duplicate_class(
        Repository(session), executor, body.class_id, body.new_class_name
    )
    return DuplicateClassResponse(
        message="Class duplicated successfully",
        new_class_id=result.new_class_id,
        new_class_name=result.new_class_name,
        tasks_copied=result.tasks_copied,
    )
