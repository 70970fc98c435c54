"""Data transfer objects."""

from possync.application.dto.requests import (
    CloseCashSessionRequest,
    OpenCashSessionRequest,
    RecordSaleRequest,
    SaleItemRequest,
    SetOfflineRequest,
    UpdateSaleStatusRequest,
    UpdateSettingsRequest,
)
from possync.application.dto.responses import (
    CashSessionResponse,
    ClearErrorsResponse,
    CloseCashSessionResponse,
    ClosingValidationResponse,
    DrainResponse,
    ErrorResponse,
    HealthResponse,
    OpenCashSessionResponse,
    OperationListResponse,
    PendingOperationResponse,
    ProviderHealthResponse,
    ReconciliationSummaryResponse,
    SaleListResponse,
    SaleResponse,
    SettingsResponse,
    SyncReportResponse,
    SyncStatusResponse,
)

__all__ = [
    # Requests
    "CloseCashSessionRequest",
    "OpenCashSessionRequest",
    "RecordSaleRequest",
    "SaleItemRequest",
    "SetOfflineRequest",
    "UpdateSaleStatusRequest",
    "UpdateSettingsRequest",
    # Responses
    "CashSessionResponse",
    "ClearErrorsResponse",
    "CloseCashSessionResponse",
    "ClosingValidationResponse",
    "DrainResponse",
    "ErrorResponse",
    "HealthResponse",
    "OpenCashSessionResponse",
    "OperationListResponse",
    "PendingOperationResponse",
    "ProviderHealthResponse",
    "ReconciliationSummaryResponse",
    "SaleListResponse",
    "SaleResponse",
    "SettingsResponse",
    "SyncReportResponse",
    "SyncStatusResponse",
]
