"""Sync status and operator controls."""

from fastapi import APIRouter, Depends

from possync.api.dependencies import get_coordinator
from possync.application.dto.requests import SetOfflineRequest
from possync.application.dto.responses import (
    ClearErrorsResponse,
    DrainResponse,
    OperationListResponse,
    PendingOperationResponse,
    SyncReportResponse,
    SyncStatusResponse,
)
from possync.core.entities import SyncStatus
from possync.core.services import SyncCoordinator

router = APIRouter(prefix="/api/sync", tags=["sync"])


def _status_response(status: SyncStatus) -> SyncStatusResponse:
    return SyncStatusResponse(
        is_online=status.is_online,
        pending_count=status.pending_count,
        error_count=status.error_count,
        last_sync_at=status.last_sync_at,
        state=status.state.value,
        forced_offline=status.forced_offline,
    )


@router.get("/status", response_model=SyncStatusResponse)
async def get_status(
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> SyncStatusResponse:
    """Connectivity, queue depth and dead-letter count."""
    return _status_response(await coordinator.get_status())


@router.post("/force", response_model=SyncReportResponse)
async def force_sync(
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> SyncReportResponse:
    """
    Drain the queue and refresh all cached state regardless of TTL.

    Returns 409 when a drain is already running.
    """
    report = await coordinator.force_sync()
    return SyncReportResponse(
        drain=DrainResponse.from_result(report.drain),
        refreshed_scopes=report.refreshed_scopes,
        failed_scopes=report.failed_scopes,
        completed_at=report.completed_at,
    )


@router.post("/drain", response_model=DrainResponse)
async def drain(coordinator: SyncCoordinator = Depends(get_coordinator)) -> DrainResponse:
    """Run one drain pass. A concurrent call returns ``skipped``."""
    return DrainResponse.from_result(await coordinator.drain())


@router.put("/offline", response_model=SyncStatusResponse)
async def set_offline(
    request: SetOfflineRequest,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> SyncStatusResponse:
    """Force offline mode on or off."""
    return _status_response(await coordinator.set_offline(request.offline))


@router.get("/pending", response_model=OperationListResponse)
async def list_pending(
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> OperationListResponse:
    """Operations waiting for replay, in replay order."""
    operations = coordinator.queue.pending()
    return OperationListResponse(
        operations=[PendingOperationResponse.from_entity(op) for op in operations],
        total=len(operations),
    )


@router.get("/dead-letters", response_model=OperationListResponse)
async def list_dead_letters(
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> OperationListResponse:
    """Operations that exhausted retries or were rejected by the remote."""
    operations = coordinator.queue.dead_letters()
    return OperationListResponse(
        operations=[PendingOperationResponse.from_entity(op) for op in operations],
        total=len(operations),
    )


@router.delete("/dead-letters", response_model=ClearErrorsResponse)
async def clear_dead_letters(
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> ClearErrorsResponse:
    """Purge the dead-letter set."""
    return ClearErrorsResponse(cleared=await coordinator.clear_errors())


@router.post("/dead-letters/{op_id}/retry", response_model=PendingOperationResponse)
async def retry_dead_letter(
    op_id: str,
    coordinator: SyncCoordinator = Depends(get_coordinator),
) -> PendingOperationResponse:
    """Requeue a dead-lettered operation at the tail with a fresh retry budget."""
    return PendingOperationResponse.from_entity(await coordinator.retry_dead_letter(op_id))
