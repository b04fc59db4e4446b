"""
Taskr - classes, tasks and transactional bulk operations.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.database import Database
from app.routes import bulk, classes, tasks
from app.exceptions import register_exception_handlers
from app.logging_config import setup_logging, get_logger
from app.transactions import TransactionExecutor

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    database: Database = app.state.database
    logger.info("Starting Taskr API...")
    await database.init_models()
    logger.info("Database initialized")
    if not await TransactionExecutor(database.engine).transactions_supported():
        logger.warning("Database does not support transactions; bulk operations will fail")
    yield
    logger.info("Shutting down Taskr API...")
    await database.dispose()


def create_app(database: Database | None = None) -> FastAPI:
    """Build the API around `database` (defaults to the configured one)."""
    app = FastAPI(
        title="Taskr",
        description="Classes and tasks with transactional bulk operations",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.database = database or Database.from_settings()

    # Register custom exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(classes.router, prefix="/api/classes", tags=["Classes"])
    app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
    app.include_router(bulk.router, prefix="/api/bulk", tags=["Bulk"])

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint, including the transaction capability probe."""
        executor = TransactionExecutor(request.app.state.database.engine)
        return {
            "status": "healthy",
            "transactionsSupported": await executor.transactions_supported(),
        }

    return app


app = create_app()
