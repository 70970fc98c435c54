"""Core domain entities."""

from possync.core.entities.cache import CachedState
from possync.core.entities.cash_session import CashSession, CashSessionStatus
from possync.core.entities.money import ZERO, money_sum, to_money
from possync.core.entities.operation import (
    EntityKind,
    OperationKind,
    OperationStatus,
    PendingOperation,
)
from possync.core.entities.reconciliation import (
    ClosingValidation,
    ReconciliationSummary,
    SummarySource,
)
from possync.core.entities.sale import PaymentMethod, Sale, SaleItem, SaleStatus
from possync.core.entities.settings import TerminalSettings, default_settings_document
from possync.core.entities.sync import DrainResult, DrainState, SyncReport, SyncStatus

__all__ = [
    # Cache
    "CachedState",
    # Cash session
    "CashSession",
    "CashSessionStatus",
    # Money
    "ZERO",
    "money_sum",
    "to_money",
    # Operation
    "EntityKind",
    "OperationKind",
    "OperationStatus",
    "PendingOperation",
    # Reconciliation
    "ClosingValidation",
    "ReconciliationSummary",
    "SummarySource",
    # Sale
    "PaymentMethod",
    "Sale",
    "SaleItem",
    "SaleStatus",
    # Settings
    "TerminalSettings",
    "default_settings_document",
    # Sync
    "DrainResult",
    "DrainState",
    "SyncReport",
    "SyncStatus",
]
