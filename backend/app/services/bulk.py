"""
Bulk operations over classes and tasks.

Each workflow follows the same shape:
1. Validate the request and look up the classes involved, outside any
   transaction. Failures here raise ValidationError/NotFoundError and no
   transaction is opened.
2. Run every mutation inside one TransactionExecutor.run() call.
3. Translate raw database errors from step 2 into OperationFailed.

Nothing is ever partially applied: on any error the transaction is rolled
back before the exception reaches the caller.
"""

import uuid
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import NotFoundError, OperationFailed, ValidationError
from app.logging_config import get_logger
from app.models import Class, Task
from app.repository import Repository
from app.services.cascade import assert_no_orphans
from app.transactions import TransactionContext, TransactionExecutor, Workflow

logger = get_logger(__name__)


@dataclass
class MoveResult:
    moved_count: int
    from_class: str
    to_class: str


@dataclass
class DeleteClassesResult:
    classes_deleted: int
    tasks_deleted: int


@dataclass
class CompleteResult:
    class_name: str
    tasks_completed: int


@dataclass
class DuplicateResult:
    new_class_id: uuid.UUID
    new_class_name: str
    tasks_copied: int


async def _run(executor: TransactionExecutor, action: str, workflow: Workflow):
    try:
        return await executor.run(workflow)
    except SQLAlchemyError as exc:
        logger.error(f"Transaction to {action} failed: {exc}")
        raise OperationFailed(action, exc) from exc


async def _require_class(repository: Repository, class_id: uuid.UUID, label: str = "Class") -> Class:
    class_item = await repository.get_class(class_id)
    if class_item is None:
        raise NotFoundError(label, str(class_id))
    return class_item


async def move_tasks(
    repository: Repository,
    executor: TransactionExecutor,
    from_class_id: uuid.UUID | None,
    to_class_id: uuid.UUID | None,
) -> MoveResult:
    """
    Reassign every task of one class to another.

    Moving a class onto itself is allowed; every task matches and the
    matched count is reported.
    """
    if from_class_id is None or to_class_id is None:
        raise ValidationError("Both fromClassId and toClassId are required")

    from_class = await _require_class(repository, from_class_id, "Source class")
    to_class = await _require_class(repository, to_class_id, "Destination class")

    async def workflow(ctx: TransactionContext) -> int:
        repo = ctx.repository
        # Locked so the destination cannot be deleted while tasks move into it
        if await repo.lock_class(to_class_id) is None:
            raise NotFoundError("Destination class", str(to_class_id))
        return await repo.update_tasks(
            [Task.class_id == from_class_id],
            {"class_id": to_class_id},
        )

    moved = await _run(executor, "move tasks", workflow)
    logger.info(f"Moved {moved} tasks from '{from_class.name}' to '{to_class.name}'")
    return MoveResult(moved_count=moved, from_class=from_class.name, to_class=to_class.name)


async def delete_classes(
    repository: Repository,
    executor: TransactionExecutor,
    class_ids: list[uuid.UUID] | None,
) -> DeleteClassesResult:
    """
    Delete several classes and all of their tasks.

    Unknown ids are ignored; the counts reflect rows actually deleted.
    """
    if not class_ids:
        raise ValidationError("classIds must be a non-empty array")
    ids = list(dict.fromkeys(class_ids))

    async def workflow(ctx: TransactionContext) -> DeleteClassesResult:
        repo = ctx.repository
        tasks_deleted = await repo.delete_tasks(Task.class_id.in_(ids))
        classes_deleted = await repo.delete_classes(ids)
        await assert_no_orphans(repo, ids)
        return DeleteClassesResult(classes_deleted=classes_deleted, tasks_deleted=tasks_deleted)

    result = await _run(executor, "delete classes", workflow)
    logger.info(
        f"Bulk deleted {result.classes_deleted} classes and {result.tasks_deleted} tasks "
        f"({len(ids)} ids requested)"
    )
    return result


async def complete_all_tasks(
    repository: Repository,
    executor: TransactionExecutor,
    class_id: uuid.UUID | None,
) -> CompleteResult:
    """Mark every incomplete task of a class as completed."""
    if class_id is None:
        raise ValidationError("classId is required")

    class_item = await _require_class(repository, class_id)

    async def workflow(ctx: TransactionContext) -> int:
        return await ctx.repository.update_tasks(
            [Task.class_id == class_id, Task.completed == False],  # noqa: E712
            {"completed": True},
        )

    completed = await _run(executor, "complete tasks", workflow)
    logger.info(f"Completed {completed} tasks in '{class_item.name}'")
    return CompleteResult(class_name=class_item.name, tasks_completed=completed)


async def duplicate_class(
    repository: Repository,
    executor: TransactionExecutor,
    class_id: uuid.UUID | None,
    new_class_name: str | None = None,
) -> DuplicateResult:
    """
    Copy a class and all of its tasks.

    The copy is named `new_class_name`, or "<original> (Copy)" when no
    name is given. Copied tasks start out incomplete; all other task
    fields are carried over.
    """
    if class_id is None:
        raise ValidationError("classId is required")

    original = await _require_class(repository, class_id)
    name = new_class_name or f"{original.name} (Copy)"

    async def workflow(ctx: TransactionContext) -> DuplicateResult:
        repo = ctx.repository
        new_class = await repo.save(
            Class(name=name, description=original.description, user_id=original.user_id)
        )
        # Read inside the transaction so the copy matches one snapshot
        originals = await repo.find_tasks(Task.class_id == class_id)
        copied = await repo.insert_tasks([task.copy_to(new_class.id) for task in originals])
        return DuplicateResult(
            new_class_id=new_class.id,
            new_class_name=new_class.name,
            tasks_copied=copied,
        )

    result = await _run(executor, "duplicate class", workflow)
    logger.info(
        f"Duplicated class '{original.name}' as '{result.new_class_name}' "
        f"({result.new_class_id}) with {result.tasks_copied} tasks"
    )
    return result
