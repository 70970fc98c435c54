"""Sale entities recorded against a cash session."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, field_serializer, field_validator

from possync.core.clock import utc_now
from possync.core.entities.money import ZERO, to_money


class PaymentMethod(str, Enum):
    """Tender type."""

    CASH = "CASH"
    CARD = "CARD"
    DEBIT_CARD = "DEBIT_CARD"
    CREDIT_CARD = "CREDIT_CARD"
    PIX = "PIX"
    NFC = "NFC"


class SaleStatus(str, Enum):
    """Sale status. PENDING is the only non-terminal value."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class SaleItem(BaseModel):
    """A line on a sale."""

    product_id: str
    name: str = ""
    quantity: int = 1
    unit_price: Decimal = ZERO

    @field_validator("unit_price", mode="before")
    @classmethod
    def quantize_price(cls, v):
        return to_money(v)

    @field_serializer("unit_price", when_used="json")
    def price_as_float(self, v: Decimal) -> float:
        return float(v)

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


class Sale(BaseModel):
    """A sale linked to the cash session it was rung up in."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    session_id: str
    user_id: str | None = None
    total: Decimal = ZERO
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: SaleStatus = SaleStatus.COMPLETED
    items: list[SaleItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("total", mode="before")
    @classmethod
    def quantize_total(cls, v):
        return to_money(v)

    @field_serializer("total", when_used="json")
    def total_as_float(self, v: Decimal) -> float:
        return float(v)

    @property
    def is_pending(self) -> bool:
        return self.status == SaleStatus.PENDING

    def can_transition_to(self, status: SaleStatus) -> bool:
        """Only a pending sale may settle, and only into a terminal status."""
        return self.is_pending and status != SaleStatus.PENDING
