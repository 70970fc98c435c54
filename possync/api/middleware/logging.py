"""
Request logging for the local API.

The POS front end polls the health and sync-status routes continuously, so
those are logged at debug level; everything else at info.
"""

import time
import uuid
from collections.abc import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from possync.config import get_logger

logger = get_logger(__name__)

POLLED_PATHS = ("/api/health", "/api/sync/status")


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one event per request and tags it with a request id.

    The id is taken from ``X-Request-ID`` when the caller sends one and is
    bound into structlog context vars, so queue and drain events logged
    while handling the request carry it too.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        path = request.url.path
        log = logger.debug if path.startswith(POLLED_PATHS) else logger.info

        start = time.perf_counter()
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "request_failed",
                    method=request.method,
                    path=path,
                    error=str(e),
                    duration_ms=round((time.perf_counter() - start) * 1000, 2),
                )
                raise

            duration_ms = (time.perf_counter() - start) * 1000
            log(
                "request_completed",
                method=request.method,
                path=path,
                status=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
