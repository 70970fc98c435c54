"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from possync import __version__
from possync.api.dependencies import get_services
from possync.application.dto.responses import HealthResponse, ProviderHealthResponse
from possync.application.services import SyncServices

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/remote", response_model=HealthResponse)
async def remote_health(services: SyncServices = Depends(get_services)) -> HealthResponse:
    """
    Remote system-of-record health check.

    Runs the same probe the connectivity gate uses. Offline is "degraded",
    not "unhealthy": the terminal keeps working and queues writes.
    """
    start = time.time()
    available = await services.gate.is_online()
    remote_status = ProviderHealthResponse(
        name=services.remote.__class__.__name__,
        available=available,
        latency_ms=(time.time() - start) * 1000,
        error="forced offline" if services.gate.forced_offline else None,
    )

    return HealthResponse(
        status="healthy" if available else "degraded",
        version=__version__,
        uptime_seconds=time.time() - _start_time,
        remote=remote_status,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health(services: SyncServices = Depends(get_services)) -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity and response time.
    """
    db_status = ProviderHealthResponse(name="sqlite", available=False)

    try:
        if services.pool is None:
            raise RuntimeError("no connection pool configured")
        latency_ms = await services.pool.ping()
        db_status = ProviderHealthResponse(name="sqlite", available=True, latency_ms=latency_ms)
    except Exception as e:
        db_status = ProviderHealthResponse(name="sqlite", available=False, error=str(e))

    return HealthResponse(
        status="healthy" if db_status.available else "unhealthy",
        version=__version__,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )
