"""
Pytest configuration and fixtures for Taskr tests.

Each test gets its own SQLite database file, so tests never share state.
"""

import os

# Must be set before app.config is first used
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402

from app.database import Database  # noqa: E402
from app.main import create_app  # noqa: E402
from app.models import Class, Task  # noqa: E402
from app.repository import Repository  # noqa: E402
from app.transactions import TransactionExecutor  # noqa: E402


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path):
    """Create a test database with all tables."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'taskr_test.db'}")
    await database.init_models()

    yield database

    await database.drop_models()
    await database.dispose()


@pytest_asyncio.fixture(scope="function")
async def session(database):
    """Create a test database session."""
    async with database.session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def executor(database):
    return TransactionExecutor(database.engine)


@pytest_asyncio.fixture(scope="function")
async def client(database):
    """Create an async test client bound to the test database."""
    app = create_app(database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def make_class(database):
    """Factory: persist a class and return it."""

    async def _make_class(name: str = "Math 101", **fields) -> Class:
        fields.setdefault("user_id", "000000000000000000000000")
        async with database.session_maker() as session:
            class_item = Class(name=name, **fields)
            session.add(class_item)
            await session.commit()
            return class_item

    return _make_class


@pytest_asyncio.fixture(scope="function")
async def make_task(database):
    """Factory: persist a task under `class_item` and return it."""

    async def _make_task(class_item: Class, name: str = "HW1", **fields) -> Task:
        async with database.session_maker() as session:
            task = Task(name=name, class_id=class_item.id, **fields)
            session.add(task)
            await session.commit()
            return task

    return _make_task


@pytest_asyncio.fixture(scope="function")
async def fetch(database):
    """Fresh-session readers, so assertions never see a cached identity map."""

    class Fetch:
        async def tasks(self, *conditions) -> list[Task]:
            async with database.session_maker() as session:
                return await Repository(session).find_tasks(*conditions)

        async def class_(self, class_id) -> Class | None:
            async with database.session_maker() as session:
                return await session.get(Class, class_id)

        async def classes(self) -> list[Class]:
            async with database.session_maker() as session:
                return await Repository(session).list_classes()

    return Fetch()
