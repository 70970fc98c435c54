"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from possync.core.entities.sale import PaymentMethod, SaleStatus


class OpenCashSessionRequest(BaseModel):
    """Request to open a cash drawer session."""

    user_id: str = Field(..., min_length=1, description="User opening the drawer")
    opening_amount: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        description="Cash in the drawer at opening",
        examples=[100.00],
    )
    register_id: str | None = Field(default=None, description="Cash register ID")
    notes: str | None = Field(default=None, max_length=500)


class SaleItemRequest(BaseModel):
    """A line on a sale."""

    product_id: str = Field(..., min_length=1)
    name: str = ""
    quantity: int = Field(default=1, gt=0)
    unit_price: Decimal = Field(..., ge=0)


class RecordSaleRequest(BaseModel):
    """Request to record a sale against an open session."""

    session_id: str = Field(..., min_length=1)
    user_id: str | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: SaleStatus = Field(
        default=SaleStatus.COMPLETED,
        description="PENDING for sales awaiting payment confirmation",
    )
    total: Decimal | None = Field(
        default=None,
        ge=0,
        description="Sale total; computed from items when omitted",
    )
    items: list[SaleItemRequest] = Field(default_factory=list)


class UpdateSaleStatusRequest(BaseModel):
    """Request to settle a pending sale."""

    status: SaleStatus


class CloseCashSessionRequest(BaseModel):
    """Request to close a cash session with the counted drawer amount."""

    declared_closing_amount: Decimal = Field(
        ...,
        ge=0,
        description="Cash physically counted in the drawer",
        examples=[140.00],
    )


class SetOfflineRequest(BaseModel):
    """Force offline mode on or off."""

    offline: bool


class UpdateSettingsRequest(BaseModel):
    """Partial settings update, merged into the cached document."""

    changes: dict[str, Any] = Field(..., min_length=1, examples=[{"darkMode": True}])
