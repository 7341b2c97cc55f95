"""Pricing schema definitions."""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PricingQuoteRequest(BaseModel):
    """Input payload for quoting a stay on one item."""

    item_id: uuid.UUID
    check_in_date: datetime.date
    check_out_date: datetime.date
    guests: dict[str, int] = Field(default_factory=dict)
    voucher_code: str | None = None
    tax_invoice_required: bool = False
    customer_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "PricingQuoteRequest":
        if self.check_out_date < self.check_in_date:
            raise ValueError("check_out_date must not be before check_in_date")
        return self


class NightlyRateRead(BaseModel):
    """Resolved prices for one night of the stay."""

    date: datetime.date
    parameters: dict[str, Decimal]
    pricing_modes: dict[str, str]
    subtotal: Decimal
    chargeable: bool
    event_id: str | None = None


class AppliedDiscountRead(BaseModel):
    discount_id: str
    code: str | None
    scope: str
    amount: Decimal


class VoucherOutcomeRead(BaseModel):
    code: str
    valid: bool
    reason: str | None = None


class PricingQuoteRead(BaseModel):
    """Aggregated pricing response."""

    item_id: uuid.UUID
    zone_id: uuid.UUID
    check_in: datetime.date
    check_out: datetime.date
    nights: int
    nightly: list[NightlyRateRead]
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    applied_discounts: list[AppliedDiscountRead]
    deposit_due: Decimal
    tax_rate: Decimal
    currency: str
    voucher: VoucherOutcomeRead | None = None
    warnings: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
