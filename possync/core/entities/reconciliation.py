"""Reconciliation results for closing a cash session."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_serializer

from possync.core.entities.money import ZERO


class SummarySource(str, Enum):
    """Where the sales behind a summary came from."""

    REMOTE = "remote"
    LOCAL = "local"


class ReconciliationSummary(BaseModel):
    """
    Drawer count against recorded sales.

    Derived fresh on every request and never stored. Only cash methods feed
    ``expected_cash_amount``; the other totals are informational.
    """

    session_id: str
    sales_count: int = 0
    totals_by_method: dict[str, Decimal] = Field(default_factory=dict)
    opening_amount: Decimal = ZERO
    total_sales: Decimal = ZERO
    expected_cash_amount: Decimal = ZERO
    declared_closing_amount: Decimal = ZERO
    difference: Decimal = ZERO  # declared - expected
    net_amount: Decimal = ZERO  # declared - opening
    source: SummarySource = SummarySource.LOCAL

    @field_serializer(
        "opening_amount",
        "total_sales",
        "expected_cash_amount",
        "declared_closing_amount",
        "difference",
        "net_amount",
        when_used="json",
    )
    def money_as_float(self, v: Decimal) -> float:
        return float(v)

    @field_serializer("totals_by_method", when_used="json")
    def totals_as_float(self, v: dict[str, Decimal]) -> dict[str, float]:
        return {method: float(amount) for method, amount in v.items()}


class ClosingValidation(BaseModel):
    """Whether a session may close. Blocking reasons go in ``issues``."""

    session_id: str
    can_close: bool
    issues: list[str] = Field(default_factory=list)

    # True when remote checks were skipped because the remote was unreachable
    degraded: bool = False
