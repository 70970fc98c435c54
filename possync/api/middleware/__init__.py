"""API middleware."""

from possync.api.middleware.error_handler import ErrorHandlerMiddleware
from possync.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
