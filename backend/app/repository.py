"""
Persistence adapter for classes and tasks.

A Repository wraps one AsyncSession. Bound to a request session it serves
plain CRUD; bound to a TransactionContext session every call runs inside
that unit of work.
"""

import uuid
from typing import Iterable, Sequence

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models import Class, Task


class Repository:
    """Scoped find / save / *_many operations over both tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # -- single rows ---------------------------------------------------------

    async def get_class(self, class_id: uuid.UUID) -> Class | None:
        return await self.session.get(Class, class_id)

    async def get_task(self, task_id: uuid.UUID) -> Task | None:
        return await self.session.get(Task, task_id)

    async def lock_class(self, class_id: uuid.UUID) -> Class | None:
        """
        Read a class and hold a shared row lock until the transaction ends.

        Concurrent deletes of the row wait for this transaction (PostgreSQL
        FOR SHARE). On SQLite the transaction's snapshot plays that role:
        a delete committed after this read makes the next write fail.
        """
        result = await self.session.execute(
            select(Class).where(Class.id == class_id).with_for_update(read=True)
        )
        return result.scalars().one_or_none()

    async def save(self, obj: Class | Task) -> Class | Task:
        """Insert or update one row and reload server-side values."""
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def delete(self, obj: Class | Task) -> None:
        await self.session.delete(obj)
        await self.session.flush()

    # -- queries -------------------------------------------------------------

    async def list_classes(self) -> list[Class]:
        """All classes, newest first."""
        result = await self.session.execute(
            select(Class).order_by(Class.created_at.desc())
        )
        return list(result.scalars().all())

    async def find_tasks(self, *conditions) -> list[Task]:
        """Tasks matching every condition, oldest first."""
        result = await self.session.execute(
            select(Task).where(*conditions).order_by(Task.created_at)
        )
        return list(result.scalars().all())

    async def find_tasks_with_class_name(self, *conditions) -> list[tuple[Task, str | None]]:
        """
        Tasks matching every condition, newest first, each paired with its
        class name (None when the class no longer exists).
        """
        query = (
            select(Task, Class.name)
            .outerjoin(Class, Class.id == Task.class_id)
            .where(*conditions)
            .order_by(Task.created_at.desc())
        )
        result = await self.session.execute(query)
        return [(task, class_name) for task, class_name in result.all()]

    async def count_tasks(self, *conditions) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Task).where(*conditions)
        )
        return result.scalar_one()

    # -- bulk mutations ------------------------------------------------------

    async def insert_tasks(self, tasks: Sequence[Task]) -> int:
        if not tasks:
            return 0
        self.session.add_all(tasks)
        await self.session.flush()
        return len(tasks)

    async def update_tasks(self, conditions: Iterable, values: dict) -> int:
        """Set `values` on every matching task; returns the matched row count."""
        result = await self.session.execute(
            update(Task)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_tasks(self, *conditions) -> int:
        result = await self.session.execute(
            delete(Task).where(*conditions).execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_classes(self, class_ids: Iterable[uuid.UUID]) -> int:
        result = await self.session.execute(
            delete(Class)
            .where(Class.id.in_(list(class_ids)))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
