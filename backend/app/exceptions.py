"""
Structured exceptions and error responses for Taskr.

Provides consistent error handling across the API with:
- Custom exception classes
- Structured error response format
- FastAPI exception handlers
"""

from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.logging_config import get_logger

logger = get_logger("error")


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "commit_failed")
    message: str  # Human-readable message
    transactional: Optional[bool] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class TaskrException(Exception):
    """Base exception for all Taskr errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(TaskrException):
    """Missing or malformed request field."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="validation_error",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class NotFoundError(TaskrException):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class TransactionError(TaskrException):
    """Base for failures of a transactional unit of work."""

    def __init__(self, message: str, error_code: str = "transaction_error"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class SessionUnavailable(TransactionError):
    """The database cannot provide a snapshot-isolated transaction."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Transactions are not available: {reason}",
            error_code="session_unavailable",
        )


class CommitFailed(TransactionError):
    """The database rejected the commit; nothing was applied."""

    def __init__(self, cause: Exception):
        super().__init__(
            message=f"Transaction commit failed: {cause}",
            error_code="commit_failed",
        )
        self.cause = cause


class OperationFailed(TransactionError):
    """A database error aborted a transactional workflow."""

    def __init__(self, action: str, cause: Exception):
        super().__init__(
            message=f"Failed to {action}: {cause}",
            error_code="operation_failed",
        )
        self.action = action
        self.cause = cause


class IntegrityViolation(TransactionError):
    """A cross-table invariant did not hold before commit."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="integrity_violation")


# =============================================================================
# Exception Handlers
# =============================================================================

def _error_content(request: Request, error_code: str, message: str) -> dict:
    content = {"error": error_code, "message": message}
    # Set by routes whose outcome is all-or-nothing
    if getattr(request.state, "transactional", False):
        content["transactional"] = True
    return content


async def taskr_exception_handler(request: Request, exc: TaskrException) -> JSONResponse:
    """Handle TaskrException and return structured response."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, exc.error_code, exc.message),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body/query/path validation problems as 400 with the first error."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_content(request, "validation_error", message),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content(request, "internal_error", str(exc) or "An unexpected error occurred"),
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(TaskrException, taskr_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)


def mark_transactional(request: Request) -> None:
    """Route dependency: every response, including errors, carries transactional=true."""
    request.state.transactional = True
