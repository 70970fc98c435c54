"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from possync.core.entities import (
    CashSession,
    ClosingValidation,
    DrainResult,
    PendingOperation,
    ReconciliationSummary,
    Sale,
)


class PendingOperationResponse(BaseModel):
    """A queued or dead-lettered operation."""

    id: str
    kind: str
    entity_kind: str
    owner_key: str | None = None
    attempt_count: int
    status: str
    last_error: str | None = None
    created_at: datetime
    dead_lettered_at: datetime | None = None

    @classmethod
    def from_entity(cls, op: PendingOperation) -> "PendingOperationResponse":
        return cls(
            id=op.id,
            kind=op.kind.value,
            entity_kind=op.entity_kind.value,
            owner_key=op.owner_key,
            attempt_count=op.attempt_count,
            status=op.status.value,
            last_error=op.last_error,
            created_at=op.created_at,
            dead_lettered_at=op.dead_lettered_at,
        )


class OperationListResponse(BaseModel):
    """List of operations."""

    operations: list[PendingOperationResponse]
    total: int


class SyncStatusResponse(BaseModel):
    """Sync status for indicators."""

    is_online: bool
    pending_count: int
    error_count: int
    last_sync_at: datetime | None = None
    state: str
    forced_offline: bool


class DrainResponse(BaseModel):
    """Outcome of one drain pass."""

    skipped: bool
    reason: str | None = None
    succeeded: list[str] = Field(default_factory=list)
    dead_lettered: list[str] = Field(default_factory=list)
    failed: str | None = None
    retry_in: float | None = None
    remaining: int = 0

    @classmethod
    def from_result(cls, result: DrainResult) -> "DrainResponse":
        return cls(**result.model_dump())


class SyncReportResponse(BaseModel):
    """Outcome of a forced full resync."""

    drain: DrainResponse
    refreshed_scopes: list[str]
    failed_scopes: list[str]
    completed_at: datetime


class ClearErrorsResponse(BaseModel):
    """Dead-letter purge result."""

    cleared: int


class CashSessionResponse(BaseModel):
    """Cash session."""

    id: str
    user_id: str
    register_id: str | None = None
    status: str
    opening_amount: float
    declared_closing_amount: float | None = None
    notes: str | None = None
    opened_at: datetime
    closed_at: datetime | None = None

    @classmethod
    def from_entity(cls, session: CashSession) -> "CashSessionResponse":
        return cls(**session.model_dump(mode="json"))


class OpenCashSessionResponse(BaseModel):
    """Open result. ``adopted`` is true when an existing session was returned."""

    session: CashSessionResponse
    adopted: bool


class ClosingValidationResponse(BaseModel):
    """Whether a session can close."""

    session_id: str
    can_close: bool
    issues: list[str]
    degraded: bool

    @classmethod
    def from_entity(cls, validation: ClosingValidation) -> "ClosingValidationResponse":
        return cls(**validation.model_dump())


class ReconciliationSummaryResponse(BaseModel):
    """Drawer reconciliation."""

    session_id: str
    sales_count: int
    totals_by_method: dict[str, float]
    opening_amount: float
    total_sales: float
    expected_cash_amount: float
    declared_closing_amount: float
    difference: float
    net_amount: float
    source: str

    @classmethod
    def from_entity(cls, summary: ReconciliationSummary) -> "ReconciliationSummaryResponse":
        return cls(**summary.model_dump(mode="json"))


class CloseCashSessionResponse(BaseModel):
    """Close result. ``session`` is null when validation blocked the close."""

    closed: bool
    validation: ClosingValidationResponse
    summary: ReconciliationSummaryResponse | None = None
    session: CashSessionResponse | None = None


class SaleItemResponse(BaseModel):
    """Sale line."""

    product_id: str
    name: str
    quantity: int
    unit_price: float


class SaleResponse(BaseModel):
    """Sale."""

    id: str
    session_id: str
    user_id: str | None = None
    total: float
    payment_method: str
    status: str
    items: list[SaleItemResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, sale: Sale) -> "SaleResponse":
        return cls(**sale.model_dump(mode="json"))


class SaleListResponse(BaseModel):
    """Sales for a session."""

    sales: list[SaleResponse]
    total: int


class SettingsResponse(BaseModel):
    """Cached settings document for a scope."""

    scope_key: str
    value: dict[str, Any]
    fetched_at: datetime | None = None
    is_default: bool = False


class ProviderHealthResponse(BaseModel):
    """Provider health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    remote: ProviderHealthResponse | None = None
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. SESSION_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict[str, Any] = Field(
        default_factory=dict, description="Structured context, e.g. the session or operation id"
    )
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
