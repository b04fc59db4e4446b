"""
Tests for the transaction executor: commit, rollback, error propagation,
commit failures, session availability and connection release.
"""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Database
from app.exceptions import CommitFailed, SessionUnavailable
from app.models import Class, Task
from app.transactions import SNAPSHOT_DURABLE, TransactionContext, TransactionExecutor, TransactionPolicy


class InjectedFailure(Exception):
    pass


class TestRun:
    """Happy path and rollback behavior of TransactionExecutor.run()."""

    @pytest.mark.asyncio
    async def test_commits_and_returns_workflow_result(self, executor, fetch):
        async def workflow(ctx: TransactionContext):
            class_item = await ctx.repository.save(Class(name="Physics", user_id="u1"))
            await ctx.repository.insert_tasks([
                Task(name="Lab 1", class_id=class_item.id),
                Task(name="Lab 2", class_id=class_item.id),
            ])
            return class_item.id

        class_id = await executor.run(workflow)

        assert (await fetch.class_(class_id)).name == "Physics"
        assert len(await fetch.tasks(Task.class_id == class_id)) == 2

    @pytest.mark.asyncio
    async def test_workflow_error_rolls_back_every_write(self, executor, make_class, make_task, fetch):
        math = await make_class("Math 101")
        await make_task(math, "HW1")
        await make_task(math, "HW2")

        async def workflow(ctx: TransactionContext):
            await ctx.repository.delete_tasks(Task.class_id == math.id)
            await ctx.repository.delete_classes([math.id])
            raise InjectedFailure("after both deletes")

        with pytest.raises(InjectedFailure):
            await executor.run(workflow)

        assert await fetch.class_(math.id) is not None
        assert len(await fetch.tasks(Task.class_id == math.id)) == 2

    @pytest.mark.asyncio
    async def test_original_exception_is_reraised_unchanged(self, executor):
        error = InjectedFailure("boom")

        async def workflow(ctx: TransactionContext):
            await ctx.repository.save(Class(name="Temp", user_id="u1"))
            raise error

        with pytest.raises(InjectedFailure) as exc_info:
            await executor.run(workflow)

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_reads_inside_transaction_see_own_writes(self, executor, make_class):
        math = await make_class("Math 101")

        async def workflow(ctx: TransactionContext):
            await ctx.repository.insert_tasks([Task(name="HW1", class_id=math.id)])
            return await ctx.repository.count_tasks(Task.class_id == math.id)

        assert await executor.run(workflow) == 1

    @pytest.mark.asyncio
    async def test_reads_stay_on_one_snapshot(self, executor, make_class, make_task, fetch):
        math = await make_class("Math 101")
        await make_task(math, "HW1")

        async def workflow(ctx: TransactionContext):
            first = await ctx.repository.count_tasks(Task.class_id == math.id)
            await make_task(math, "HW2")  # committed on another connection
            second = await ctx.repository.count_tasks(Task.class_id == math.id)
            return first, second

        assert await executor.run(workflow) == (1, 1)
        assert len(await fetch.tasks(Task.class_id == math.id)) == 2

    @pytest.mark.asyncio
    async def test_write_on_stale_snapshot_is_rejected(self, executor, make_class, make_task, fetch):
        math = await make_class("Math 101")

        async def workflow(ctx: TransactionContext):
            await ctx.repository.count_tasks(Task.class_id == math.id)
            await make_task(math, "HW1")
            await ctx.repository.insert_tasks([Task(name="HW2", class_id=math.id)])

        with pytest.raises(OperationalError):
            await executor.run(workflow)

        assert [t.name for t in await fetch.tasks(Task.class_id == math.id)] == ["HW1"]

    @pytest.mark.asyncio
    async def test_connection_released_on_every_path(self, database, executor):
        async def ok(ctx: TransactionContext):
            await ctx.repository.save(Class(name="Temp", user_id="u1"))

        async def failing(ctx: TransactionContext):
            raise InjectedFailure()

        await executor.run(ok)
        assert database.engine.pool.checkedout() == 0

        with pytest.raises(InjectedFailure):
            await executor.run(failing)
        assert database.engine.pool.checkedout() == 0


class TestCommitFailure:

    @pytest.mark.asyncio
    async def test_commit_error_raises_commit_failed_and_applies_nothing(
        self, monkeypatch, database, executor, fetch,
    ):
        async def failing_commit(self):
            raise OperationalError("COMMIT", {}, Exception("write conflict"))

        async def workflow(ctx: TransactionContext):
            await ctx.repository.save(Class(name="Never committed", user_id="u1"))

        with monkeypatch.context() as m:
            m.setattr(AsyncSession, "commit", failing_commit)
            with pytest.raises(CommitFailed) as exc_info:
                await executor.run(workflow)

        assert isinstance(exc_info.value.cause, OperationalError)
        assert "write conflict" in exc_info.value.message
        assert await fetch.classes() == []
        assert database.engine.pool.checkedout() == 0


class TestSessionAvailability:

    @pytest.mark.asyncio
    async def test_unreachable_database_raises_session_unavailable(self, tmp_path):
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
        executor = TransactionExecutor(database.engine)

        async def workflow(ctx: TransactionContext):
            raise AssertionError("workflow must not run")

        try:
            with pytest.raises(SessionUnavailable):
                await executor.run(workflow)
        finally:
            await database.dispose()

    @pytest.mark.asyncio
    async def test_dialect_without_snapshot_mapping_is_unavailable(self, monkeypatch, executor):
        monkeypatch.setattr(executor, "policy", TransactionPolicy(isolation_levels={}, setup_statements={}))

        async def workflow(ctx: TransactionContext):
            raise AssertionError("workflow must not run")

        with pytest.raises(SessionUnavailable):
            await executor.run(workflow)


class TestCapabilityProbe:

    @pytest.mark.asyncio
    async def test_supported_on_sqlite(self, executor):
        assert await executor.transactions_supported() is True

    @pytest.mark.asyncio
    async def test_not_supported_when_unreachable(self, tmp_path):
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
        try:
            assert await TransactionExecutor(database.engine).transactions_supported() is False
        finally:
            await database.dispose()

    @pytest.mark.asyncio
    async def test_probe_releases_connection(self, database, executor):
        await executor.transactions_supported()
        assert database.engine.pool.checkedout() == 0


class TestPolicy:

    def test_postgres_uses_snapshot_isolation_and_durable_commit(self):
        assert SNAPSHOT_DURABLE.isolation_for("postgresql") == "REPEATABLE READ"
        assert any("synchronous_commit" in s for s in SNAPSHOT_DURABLE.setup_for("postgresql"))

    def test_sqlite_runs_serializable(self):
        assert SNAPSHOT_DURABLE.isolation_for("sqlite") == "SERIALIZABLE"
        assert SNAPSHOT_DURABLE.setup_for("sqlite") == ()
