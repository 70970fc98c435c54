"""
Domain exceptions for the POS sync agent.

Provides specific exception types for different error scenarios.
"""

from enum import Enum
from typing import Any


class PosSyncError(Exception):
    """Base exception for all POS sync errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Remote Exceptions
class RemoteErrorKind(str, Enum):
    """How a remote call failed, as classified by the transport."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    SERVER = "server"
    CLIENT = "client"


class RemoteError(PosSyncError):
    """Base exception for calls to the remote system of record."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        kind: RemoteErrorKind,
        status_code: int | None = None,
        code: str | None = None,
    ):
        super().__init__(
            message,
            code=code,
            details={"kind": kind.value, "status_code": status_code},
        )
        self.kind = kind
        self.status_code = status_code


class TransientNetworkError(RemoteError):
    """Timeout, refused connection or 5xx. The operation stays queued."""

    retryable = True

    def __init__(
        self,
        message: str,
        kind: RemoteErrorKind = RemoteErrorKind.NETWORK,
        status_code: int | None = None,
    ):
        super().__init__(message, kind, status_code, code="REMOTE_UNAVAILABLE")


class ApplicationError(RemoteError):
    """4xx, or a response that can't be used. Never retried."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message, RemoteErrorKind.CLIENT, status_code, code="REMOTE_REJECTED"
        )


# Storage Exceptions
class StorageError(PosSyncError):
    """Base exception for local storage operations."""

    pass


class QueuePersistenceError(StorageError):
    """An operation could not be durably recorded."""

    def __init__(self, op_id: str, error: str):
        super().__init__(
            f"Could not persist pending operation {op_id}: {error}",
            code="QUEUE_PERSISTENCE_FAILED",
            details={"op_id": op_id, "error": error},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Sync Exceptions
class SyncError(PosSyncError):
    """Base exception for sync orchestration."""

    pass


class SyncInProgressError(SyncError):
    """A drain is already running."""

    def __init__(self) -> None:
        super().__init__(
            "A sync is already in progress",
            code="SYNC_IN_PROGRESS",
        )


class OperationNotFoundError(SyncError):
    """Pending operation not found in the queue or dead-letter set."""

    def __init__(self, op_id: str):
        super().__init__(
            f"Pending operation not found: {op_id}",
            code="OPERATION_NOT_FOUND",
            details={"op_id": op_id},
        )


# Cash session Exceptions
class CashSessionError(PosSyncError):
    """Base exception for cash session operations."""

    pass


class SessionNotFoundError(CashSessionError):
    """Cash session not found locally or remotely."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Cash session not found: {session_id}",
            code="SESSION_NOT_FOUND",
            details={"session_id": session_id},
        )


class SessionAlreadyClosedError(CashSessionError):
    """Close requested on a session that is already closed."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Cash session {session_id} is already closed",
            code="SESSION_ALREADY_CLOSED",
            details={"session_id": session_id},
        )


class SessionNotValidatedError(CashSessionError):
    """Close requested without a passing validation."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Cash session {session_id} must pass closing validation before it can be closed",
            code="SESSION_NOT_VALIDATED",
            details={"session_id": session_id},
        )


class SessionAlreadyOpenError(CashSessionError):
    """User already holds an open session."""

    def __init__(self, user_id: str, session_id: str):
        super().__init__(
            f"User {user_id} already has an open cash session ({session_id})",
            code="SESSION_ALREADY_OPEN",
            details={"user_id": user_id, "session_id": session_id},
        )


class NoOpenSessionError(CashSessionError):
    """A sale was attempted without an open session."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Cash session {session_id} is not open",
            code="NO_OPEN_SESSION",
            details={"session_id": session_id},
        )


# Sale Exceptions
class SaleError(PosSyncError):
    """Base exception for sale operations."""

    pass


class SaleNotFoundError(SaleError):
    """Sale not found in local storage."""

    def __init__(self, sale_id: str):
        super().__init__(
            f"Sale not found: {sale_id}",
            code="SALE_NOT_FOUND",
            details={"sale_id": sale_id},
        )


class InvalidSaleStateError(SaleError):
    """Sale status transition is not allowed."""

    def __init__(self, sale_id: str, current: str, requested: str):
        super().__init__(
            f"Sale {sale_id} cannot move from {current} to {requested}",
            code="INVALID_SALE_STATE",
            details={"sale_id": sale_id, "current": current, "requested": requested},
        )


# Validation Exceptions
class ValidationError(PosSyncError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value else None,
            },
        )


class ConfigurationError(PosSyncError):
    """Configuration error."""

    pass
