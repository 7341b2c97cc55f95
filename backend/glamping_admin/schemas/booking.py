"""Pydantic schemas for bookings and their lines."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from glamping_admin.models import BookingStatus, DiscountType, PaymentStatus


class BookingLineCreate(BaseModel):
    """Accommodation line on a booking; dates default to the booking's."""

    item_id: uuid.UUID
    guests: dict[str, int] = Field(default_factory=dict)
    check_in_date: date | None = None
    check_out_date: date | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "BookingLineCreate":
        if (
            self.check_in_date is not None
            and self.check_out_date is not None
            and self.check_out_date < self.check_in_date
        ):
            raise ValueError("check_out_date must not be before check_in_date")
        if any(count < 0 for count in self.guests.values()):
            raise ValueError("guest counts must not be negative")
        return self


class BookingProductCreate(BaseModel):
    menu_item_id: uuid.UUID
    quantity: int = Field(default=1, ge=1)
    parameter_id: uuid.UUID | None = None
    metadata: dict[str, Any] | None = None


class BookingCreate(BaseModel):
    """Payload for creating a booking."""

    zone_id: uuid.UUID
    customer_id: uuid.UUID | None = None
    check_in_date: date
    check_out_date: date
    items: list[BookingLineCreate] = Field(min_length=1)
    products: list[BookingProductCreate] = Field(default_factory=list)
    voucher_code: str | None = None
    tax_invoice_required: bool = False
    notes: str | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "BookingCreate":
        if self.check_out_date < self.check_in_date:
            raise ValueError("check_out_date must not be before check_in_date")
        return self


class BookingUpdate(BaseModel):
    """Mutable booking fields."""

    status: BookingStatus | None = None
    payment_status: PaymentStatus | None = None
    notes: str | None = None
    reason: str | None = Field(default=None, max_length=500)


class TaxInvoiceToggle(BaseModel):
    """Explicit VAT invoice flag; omitted flips the current value."""

    tax_invoice_required: bool | None = None


class VoucherApply(BaseModel):
    code: str = Field(min_length=1, max_length=64)


class PaymentCreate(BaseModel):
    amount: Decimal = Field(gt=Decimal("0"))
    method: str = Field(min_length=1, max_length=32)
    status: str = "completed"
    transaction_reference: str | None = Field(default=None, max_length=128)
    is_vat_payment: bool = False
    notes: str | None = None


class PaymentRead(BaseModel):
    id: uuid.UUID
    method: str
    amount: Decimal
    status: str
    transaction_reference: str | None
    is_vat_payment: bool
    notes: str | None
    paid_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ItemSummary(BaseModel):
    id: uuid.UUID
    name: Any
    sku: str | None = None

    model_config = ConfigDict(from_attributes=True)


class MenuItemSummary(BaseModel):
    id: uuid.UUID
    name: Any
    unit: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BookingItemRead(BaseModel):
    id: uuid.UUID
    item_id: uuid.UUID
    item: ItemSummary | None = None
    check_in_date: date
    check_out_date: date
    nights: int
    guests: dict[str, int]
    nightly_breakdown: list[dict[str, Any]] | None
    subtotal_amount: Decimal
    discount_amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class BookingProductRead(BaseModel):
    id: uuid.UUID
    menu_item_id: uuid.UUID
    menu_item: MenuItemSummary | None = None
    parameter_id: uuid.UUID | None
    quantity: int
    unit_price: Decimal
    discount_amount: Decimal
    voucher_code: str | None
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias="metadata_json"
    )

    model_config = ConfigDict(from_attributes=True)


class BookingDiscountRead(BaseModel):
    id: uuid.UUID
    booking_item_id: uuid.UUID | None = None
    discount_id: uuid.UUID | None
    code: str | None
    scope: str
    discount_type: DiscountType
    value: Decimal
    max_discount_amount: Decimal | None
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class BookingRead(BaseModel):
    """Serialized booking representation."""

    id: uuid.UUID
    booking_code: str
    zone_id: uuid.UUID
    customer_id: uuid.UUID | None
    created_by_user_id: uuid.UUID | None
    status: BookingStatus
    payment_status: PaymentStatus
    check_in_date: date
    check_out_date: date
    guests: dict[str, int]
    subtotal_amount: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    deposit_due: Decimal
    balance_due: Decimal
    vat_payment_due: Decimal
    currency: str
    tax_invoice_required: bool
    tax_rate: Decimal
    notes: str | None
    confirmed_at: datetime | None
    cancelled_at: datetime | None
    created_at: datetime
    updated_at: datetime
    items: list[BookingItemRead] = Field(default_factory=list)
    products: list[BookingProductRead] = Field(default_factory=list)
    discounts: list[BookingDiscountRead] = Field(default_factory=list)
    payments: list[PaymentRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class BookingSummaryRead(BaseModel):
    """Compact booking row for listings."""

    id: uuid.UUID
    booking_code: str
    zone_id: uuid.UUID
    customer_id: uuid.UUID | None
    status: BookingStatus
    payment_status: PaymentStatus
    check_in_date: date
    check_out_date: date
    total_amount: Decimal
    balance_due: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BalanceRead(BaseModel):
    total_amount: Decimal
    amount_paid: Decimal
    remaining: Decimal
    is_fully_paid: bool
    deposit_due: Decimal
    vat_payment_due: Decimal
    payment_status: PaymentStatus


class StatusHistoryRead(BaseModel):
    id: uuid.UUID
    previous_status: str | None
    new_status: str
    previous_payment_status: str | None
    new_payment_status: str | None
    reason: str | None
    changed_by_user_id: uuid.UUID | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
