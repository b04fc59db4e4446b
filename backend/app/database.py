from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.config import Settings, get_settings
from app.transactions import TransactionExecutor

# Table models must be imported before metadata.create_all
from app.models import Class, Task  # noqa: F401


def enable_sqlite_transactions(engine: Engine) -> None:
    """
    Make SQLite transactions start at BEGIN instead of at the first write.

    The sqlite3 driver defers BEGIN until the first INSERT/UPDATE/DELETE,
    so reads before that run in autocommit and see other connections'
    commits. Here the driver's own transaction handling is switched off
    and SQLAlchemy emits BEGIN itself. WAL lets readers and a writer
    proceed side by side; a transaction whose snapshot went stale fails
    on its first write instead of overwriting newer data.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """
    Owns the async engine and session factory for one database.

    Created once per application (or per test) and disposed on shutdown.
    """

    def __init__(self, url: str, echo: bool = False, **pool_options):
        self.url = url
        is_sqlite = make_url(url).get_backend_name() == "sqlite"
        engine_options = {"echo": echo, "future": True}
        if not is_sqlite:
            engine_options.update(pool_options)
            engine_options["pool_pre_ping"] = True  # Verify connection health before use
        self.engine: AsyncEngine = create_async_engine(url, **engine_options)
        if is_sqlite:
            enable_sqlite_transactions(self.engine.sync_engine)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "Database":
        settings = settings or get_settings()
        return cls(
            settings.database_url,
            echo=settings.debug,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            pool_recycle=settings.pool_recycle,  # Recycle connections after 30 min by default
        )

    async def init_models(self) -> None:
        """Create tables that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def drop_models(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """Dependency returning the application's Database."""
    return request.app.state.database


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with get_database(request).session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_executor(request: Request) -> TransactionExecutor:
    """Dependency returning a TransactionExecutor over the application's engine."""
    return TransactionExecutor(get_database(request).engine)
