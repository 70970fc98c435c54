"""Application use cases."""

from possync.application.use_cases.close_cash_session import (
    CloseCashSessionResult,
    CloseCashSessionUseCase,
)
from possync.application.use_cases.open_cash_session import (
    OpenCashSessionResult,
    OpenCashSessionUseCase,
)
from possync.application.use_cases.record_sale import RecordSaleResult, RecordSaleUseCase
from possync.application.use_cases.update_sale_status import (
    UpdateSaleStatusResult,
    UpdateSaleStatusUseCase,
)

__all__ = [
    "CloseCashSessionResult",
    "CloseCashSessionUseCase",
    "OpenCashSessionResult",
    "OpenCashSessionUseCase",
    "RecordSaleResult",
    "RecordSaleUseCase",
    "UpdateSaleStatusResult",
    "UpdateSaleStatusUseCase",
]
