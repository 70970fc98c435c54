"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
"""

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from possync.application.dto.responses import ErrorResponse
from possync.config import get_logger
from possync.core.exceptions import (
    ApplicationError,
    CashSessionError,
    ConfigurationError,
    InvalidSaleStateError,
    OperationNotFoundError,
    PosSyncError,
    QueuePersistenceError,
    SaleNotFoundError,
    SessionNotFoundError,
    StorageError,
    SyncInProgressError,
    TransientNetworkError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first isinstance match wins
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    SessionNotFoundError: status.HTTP_404_NOT_FOUND,
    SaleNotFoundError: status.HTTP_404_NOT_FOUND,
    OperationNotFoundError: status.HTTP_404_NOT_FOUND,
    SyncInProgressError: status.HTTP_409_CONFLICT,
    CashSessionError: status.HTTP_409_CONFLICT,
    InvalidSaleStateError: status.HTTP_409_CONFLICT,
    QueuePersistenceError: status.HTTP_507_INSUFFICIENT_STORAGE,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    TransientNetworkError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ApplicationError: status.HTTP_502_BAD_GATEWAY,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "SESSION_NOT_FOUND": "Check the session ID; open a session with POST /api/cash-sessions.",
    "SESSION_ALREADY_CLOSED": "The session is closed. Open a new session to keep selling.",
    "SESSION_NOT_VALIDATED": "Run GET /api/cash-sessions/{id}/validation before closing.",
    "SESSION_ALREADY_OPEN": "Close the user's current session first.",
    "NO_OPEN_SESSION": "Sales can only be recorded against an open session.",
    "SALE_NOT_FOUND": "Check the sale ID and try GET /api/sales?session_id=... to list sales.",
    "INVALID_SALE_STATE": "Only PENDING sales can change status.",
    "OPERATION_NOT_FOUND": "Try GET /api/sync/dead-letters to list dead-lettered operations.",
    "SYNC_IN_PROGRESS": "A sync is already running. Poll GET /api/sync/status and retry.",
    "QUEUE_PERSISTENCE_FAILED": "The action was NOT recorded. Check local disk space and retry.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "REMOTE_UNAVAILABLE": "The remote service is unreachable. Queued work syncs when it returns.",
    "REMOTE_REJECTED": "The remote service rejected the request. Check the payload.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with the current state.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    503: "The service is temporarily unavailable. Retry later.",
}

HTTP_ERROR_CODES: dict[int, str] = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


# The front end backs off this long before retrying a 503 or a busy sync
RETRY_AFTER_SECONDS = 5


def error_status(exc: Exception) -> int:
    """HTTP status for an exception; the first matching entry wins."""
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: dict[str, Any] | None = None,
    detail: str | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code),
        detail=detail,
        details=details or {},
        path=request.url.path,
    )
    headers = {}
    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE or error_code == "SYNC_IN_PROGRESS":
        headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


def handle_exception(request: Request, exc: Exception) -> JSONResponse:
    """Log an exception and turn it into an ``ErrorResponse``."""
    status_code = error_status(exc)
    if isinstance(exc, PosSyncError):
        error_code, details = exc.code, exc.details
    else:
        error_code, details = type(exc).__name__, {}

    if status_code >= 500:
        logger.error(
            "request_exception",
            path=request.url.path,
            error_code=error_code,
            error=str(exc),
            exc_info=exc,
        )
    else:
        logger.warning(
            "request_rejected", path=request.url.path, error_code=error_code, error=str(exc)
        )

    message = exc.message if isinstance(exc, PosSyncError) else str(exc)
    return error_response(request, status_code, error_code, message, details=details)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last-resort catch for exceptions the registered handlers didn't take."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return handle_exception(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain, validation and HTTP errors."""

    @app.exception_handler(PosSyncError)
    async def domain_error(request: Request, exc: PosSyncError) -> JSONResponse:
        return handle_exception(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        return error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            detail="; ".join(problems),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        error_code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        return error_response(
            request, exc.status_code, error_code, str(exc.detail or "An error occurred")
        )
