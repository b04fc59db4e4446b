#!/usr/bin/env python3
"""
Check that the configured database gives the bulk operations their
all-or-nothing guarantee.

1. Capability probe: can a snapshot-isolated transaction be opened?
2. Atomicity: a workflow that deletes tasks and then fails leaves them intact.
3. Cascade: deleting a class through the service removes all of its tasks.

Everything the script creates is removed again.

Usage:
    python -m scripts.check_transactions
"""

import asyncio
import sys

from app.database import Database
from app.models import Class, Task
from app.repository import Repository
from app.services.cascade import delete_class_cascade
from app.transactions import TransactionContext, TransactionExecutor


class InjectedFailure(Exception):
    pass


async def check_support(executor: TransactionExecutor) -> bool:
    print("\n--- Transaction support ---")
    supported = await executor.transactions_supported()
    if supported:
        print(f"OK: {executor.dialect} supports snapshot-isolated transactions")
    else:
        print(f"FAIL: {executor.dialect} cannot open a snapshot-isolated transaction")
    return supported


async def create_fixture(database: Database) -> Class:
    async with database.session_maker() as session:
        class_item = Class(
            name="Transaction check",
            description="Created by scripts/check_transactions.py",
            user_id="000000000000000000000000",
        )
        session.add(class_item)
        await session.flush()
        session.add_all([
            Task(name=f"Check task {i}", class_id=class_item.id)
            for i in range(3)
        ])
        await session.commit()
        return class_item


async def count_tasks(database: Database, class_item: Class) -> int:
    async with database.session_maker() as session:
        return await Repository(session).count_tasks(Task.class_id == class_item.id)


async def check_atomicity(database: Database, executor: TransactionExecutor, class_item: Class) -> bool:
    print("\n--- Atomicity ---")
    before = await count_tasks(database, class_item)

    async def failing_workflow(ctx: TransactionContext) -> None:
        deleted = await ctx.repository.delete_tasks(Task.class_id == class_item.id)
        print(f"Deleted {deleted} tasks inside the transaction, now failing on purpose")
        raise InjectedFailure("simulated failure")

    try:
        await executor.run(failing_workflow)
    except InjectedFailure:
        pass

    after = await count_tasks(database, class_item)
    ok = before == after
    print(f"{'OK' if ok else 'FAIL'}: {after} of {before} tasks present after rollback")
    return ok


async def check_cascade(database: Database, executor: TransactionExecutor, class_item: Class) -> bool:
    print("\n--- Cascade delete ---")
    async with database.session_maker() as session:
        deleted = await delete_class_cascade(Repository(session), executor, class_item.id)
    async with database.session_maker() as session:
        remaining_class = await Repository(session).get_class(class_item.id)

    remaining_tasks = await count_tasks(database, class_item)
    ok = remaining_class is None and remaining_tasks == 0
    print(f"{'OK' if ok else 'FAIL'}: deleted {deleted} tasks, {remaining_tasks} left, "
          f"class {'gone' if remaining_class is None else 'still present'}")
    return ok


async def main() -> int:
    print("=== Taskr Transaction Check ===")
    database = Database.from_settings()
    executor = TransactionExecutor(database.engine)
    try:
        await database.init_models()
        if not await check_support(executor):
            return 1

        class_item = await create_fixture(database)
        results = [
            await check_atomicity(database, executor, class_item),
            await check_cascade(database, executor, class_item),
        ]
    finally:
        await database.dispose()

    print(f"\n=== {sum(results)}/{len(results)} checks passed ===")
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
