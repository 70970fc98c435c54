"""Cash drawer session entity."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, field_serializer, field_validator

from possync.core.clock import utc_now
from possync.core.entities.money import ZERO, to_money


class CashSessionStatus(str, Enum):
    """Session lifecycle. CLOSED is terminal."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class CashSession(BaseModel):
    """
    A cash drawer session owned by the user who opened it.

    The only transition is OPEN -> CLOSED; a closed session is never edited.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: str
    register_id: str | None = None

    status: CashSessionStatus = CashSessionStatus.OPEN
    opening_amount: Decimal = ZERO
    declared_closing_amount: Decimal | None = None
    notes: str | None = None

    opened_at: datetime = Field(default_factory=utc_now)
    closed_at: datetime | None = None

    @field_validator("opening_amount", mode="before")
    @classmethod
    def quantize_opening(cls, v):
        return to_money(v)

    @field_validator("declared_closing_amount", mode="before")
    @classmethod
    def quantize_declared(cls, v):
        return None if v is None else to_money(v)

    @field_serializer("opening_amount", "declared_closing_amount", when_used="json")
    def money_as_float(self, v: Decimal | None) -> float | None:
        return None if v is None else float(v)

    @property
    def is_open(self) -> bool:
        return self.status == CashSessionStatus.OPEN

    def close(self, declared_closing_amount: Decimal, closed_at: datetime) -> None:
        """Move to CLOSED. Callers check ``is_open`` first."""
        self.status = CashSessionStatus.CLOSED
        self.declared_closing_amount = to_money(declared_closing_amount)
        self.closed_at = closed_at
