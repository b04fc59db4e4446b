"""
Transaction executor for multi-row, multi-table workflows.

Every workflow passed to TransactionExecutor.run() gets its own connection
and session and runs under one fixed policy:

- Snapshot isolation: reads inside the transaction see one consistent
  point-in-time view; nobody outside sees its writes before commit.
- Durable commit: on PostgreSQL the commit is acknowledged only after the
  synchronous standby quorum has applied it (synchronous_commit =
  remote_apply; equivalent to a local durable commit without standbys).
- On SQLite every transaction starts with an explicit BEGIN in WAL mode
  (see app.database), so the first read fixes the snapshot and a write
  on a snapshot that another commit made stale is rejected.

Either every write issued through the context is committed, or none is.
There is no retry: a conflict surfaces to the caller as-is.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncSession

from app.exceptions import CommitFailed, SessionUnavailable
from app.logging_config import get_logger
from app.repository import Repository

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TransactionPolicy:
    """Isolation level per dialect plus statements run right after BEGIN."""

    isolation_levels: dict[str, str]
    setup_statements: dict[str, tuple[str, ...]]

    def isolation_for(self, dialect: str) -> str | None:
        return self.isolation_levels.get(dialect)

    def setup_for(self, dialect: str) -> tuple[str, ...]:
        return self.setup_statements.get(dialect, ())


SNAPSHOT_DURABLE = TransactionPolicy(
    isolation_levels={
        # REPEATABLE READ is snapshot isolation in PostgreSQL
        "postgresql": "REPEATABLE READ",
        "sqlite": "SERIALIZABLE",
    },
    setup_statements={
        "postgresql": ("SET LOCAL synchronous_commit = 'remote_apply'",),
    },
)


@dataclass
class TransactionContext:
    """Handle passed to a workflow; everything issued through it is one unit of work."""

    session: AsyncSession

    @property
    def repository(self) -> Repository:
        return Repository(self.session)


Workflow = Callable[[TransactionContext], Awaitable[T]]


class TransactionExecutor:
    """Runs workflows atomically against one engine."""

    policy = SNAPSHOT_DURABLE

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    async def _connect(self) -> AsyncConnection:
        isolation_level = self.policy.isolation_for(self.dialect)
        if isolation_level is None:
            raise SessionUnavailable(f"dialect '{self.dialect}' has no snapshot isolation mapping")
        try:
            conn = await self.engine.connect()
        except (DBAPIError, OSError) as exc:
            raise SessionUnavailable(str(exc)) from exc
        try:
            return await conn.execution_options(isolation_level=isolation_level)
        except SQLAlchemyError as exc:
            await conn.close()
            raise SessionUnavailable(str(exc)) from exc

    async def _begin(self, session: AsyncSession) -> None:
        try:
            for statement in self.policy.setup_for(self.dialect):
                await session.execute(text(statement))
        except SQLAlchemyError as exc:
            raise SessionUnavailable(str(exc)) from exc

    async def run(self, workflow: Workflow[T]) -> T:
        """
        Run `workflow` inside one transaction.

        Returns the workflow's result after a successful commit.

        Raises:
            SessionUnavailable: no transaction could be opened.
            CommitFailed: the database rejected the commit.
            Any exception raised by the workflow, unchanged, after rollback.
        """
        conn = await self._connect()
        try:
            async with AsyncSession(bind=conn, expire_on_commit=False) as session:
                await self._begin(session)
                try:
                    result = await workflow(TransactionContext(session))
                    await session.flush()
                except Exception:
                    await self._rollback(session)
                    raise

                try:
                    await session.commit()
                except SQLAlchemyError as exc:
                    logger.warning(f"Commit failed, transaction rolled back: {exc}")
                    await self._rollback(session)
                    raise CommitFailed(exc) from exc

                logger.debug("Transaction committed")
                return result
        finally:
            await conn.close()

    async def _rollback(self, session: AsyncSession) -> None:
        try:
            await session.rollback()
            logger.debug("Transaction rolled back")
        except SQLAlchemyError:
            # The connection is discarded by close() either way
            logger.exception("Rollback failed")

    async def transactions_supported(self) -> bool:
        """
        Probe whether a unit of work can be opened with the policy.

        Diagnostic only; a later run() can still raise SessionUnavailable.
        """
        try:
            conn = await self._connect()
        except SessionUnavailable as exc:
            logger.warning(f"Transactions not supported: {exc.message}")
            return False
        try:
            async with AsyncSession(bind=conn) as session:
                await self._begin(session)
                await session.rollback()
            return True
        except SessionUnavailable as exc:
            logger.warning(f"Transactions not supported: {exc.message}")
            return False
        finally:
            await conn.close()
