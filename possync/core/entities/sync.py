"""Sync status and drain results."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class DrainState(str, Enum):
    """Drain state machine: IDLE -> DRAINING -> PAUSED (on error) -> IDLE."""

    IDLE = "idle"
    DRAINING = "draining"
    PAUSED = "paused"


class DrainResult(BaseModel):
    """Outcome of one drain pass."""

    skipped: bool = False
    reason: str | None = None
    succeeded: list[str] = Field(default_factory=list)
    dead_lettered: list[str] = Field(default_factory=list)

    # Operation that stopped the pass on a retryable error
    failed: str | None = None
    retry_in: float | None = None
    remaining: int = 0

    @property
    def stopped_on_error(self) -> bool:
        return self.failed is not None


class SyncReport(BaseModel):
    """Outcome of a forced full resync."""

    drain: DrainResult
    refreshed_scopes: list[str] = Field(default_factory=list)
    failed_scopes: list[str] = Field(default_factory=list)
    completed_at: datetime


class SyncStatus(BaseModel):
    """Status snapshot for indicators."""

    is_online: bool
    pending_count: int
    error_count: int
    last_sync_at: datetime | None = None
    state: DrainState = DrainState.IDLE
    forced_offline: bool = False
