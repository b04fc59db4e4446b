"""
Transactional cascade delete of a single class.

Tasks are stored independently of their class and linked only by
class_id, so deleting a class must delete its tasks in the same unit of
work.
"""

import uuid

from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import IntegrityViolation, NotFoundError, OperationFailed
from app.logging_config import get_logger
from app.models import Task
from app.repository import Repository
from app.transactions import TransactionContext, TransactionExecutor

logger = get_logger(__name__)


async def assert_no_orphans(repository: Repository, class_ids: list[uuid.UUID]) -> None:
    """Raise IntegrityViolation if any task still references one of `class_ids`."""
    remaining = await repository.count_tasks(Task.class_id.in_(class_ids))
    if remaining:
        raise IntegrityViolation(
            f"{remaining} tasks still reference deleted classes; transaction aborted"
        )


async def delete_class_cascade(
    repository: Repository,
    executor: TransactionExecutor,
    class_id: uuid.UUID,
) -> int:
    """
    Delete a class and every task that references it.

    The existence check runs on `repository` before any transaction is
    opened; both deletes run inside one transaction.

    Returns:
        Number of tasks deleted with the class
    """
    class_item = await repository.get_class(class_id)
    if class_item is None:
        raise NotFoundError("Class", str(class_id))

    async def workflow(ctx: TransactionContext) -> int:
        repo = ctx.repository
        tasks_deleted = await repo.delete_tasks(Task.class_id == class_id)
        await repo.delete_classes([class_id])
        await assert_no_orphans(repo, [class_id])
        return tasks_deleted

    try:
        tasks_deleted = await executor.run(workflow)
    except SQLAlchemyError as exc:
        raise OperationFailed("delete class", exc) from exc

    logger.info(f"Deleted class {class_id} ('{class_item.name}') and {tasks_deleted} tasks")
    return tasks_deleted
