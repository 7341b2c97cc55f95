"""Pydantic schemas for discounts and vouchers."""
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from glamping_admin.models import (
    ApplicationType,
    DiscountCategory,
    DiscountScope,
    DiscountType,
)


class DiscountBase(BaseModel):
    """Shared discount fields; cross-field rules are checked by the service."""

    name: str | dict[str, str]
    category: DiscountCategory = DiscountCategory.DISCOUNTS
    code: str | None = Field(default=None, max_length=64)
    discount_type: DiscountType
    value: Decimal
    max_discount_amount: Decimal | None = None
    scope: DiscountScope = DiscountScope.PER_BOOKING_BEFORE_TAX
    application_type: ApplicationType = ApplicationType.ALL
    applies_to_all: bool = False
    applicable_zone_ids: list[uuid.UUID] | None = None
    applicable_category_ids: list[uuid.UUID] | None = None
    applicable_item_ids: list[uuid.UUID] | None = None
    valid_from: date | None = None
    valid_until: date | None = None
    weekly_days: list[int] | None = None
    min_order_amount: Decimal | None = Field(default=None, ge=Decimal("0"))
    max_uses: int | None = None
    max_uses_per_customer: int | None = None
    priority: int = 0
    is_active: bool = True


class DiscountCreate(DiscountBase):
    """Payload for creating a discount or voucher."""


class DiscountUpdate(BaseModel):
    """Mutable discount fields."""

    name: str | dict[str, str] | None = None
    category: DiscountCategory | None = None
    code: str | None = Field(default=None, max_length=64)
    discount_type: DiscountType | None = None
    value: Decimal | None = None
    max_discount_amount: Decimal | None = None
    scope: DiscountScope | None = None
    application_type: ApplicationType | None = None
    applies_to_all: bool | None = None
    applicable_zone_ids: list[uuid.UUID] | None = None
    applicable_category_ids: list[uuid.UUID] | None = None
    applicable_item_ids: list[uuid.UUID] | None = None
    valid_from: date | None = None
    valid_until: date | None = None
    weekly_days: list[int] | None = None
    min_order_amount: Decimal | None = Field(default=None, ge=Decimal("0"))
    max_uses: int | None = None
    max_uses_per_customer: int | None = None
    priority: int | None = None
    is_active: bool | None = None


class DiscountRead(BaseModel):
    """Serialized discount representation."""

    id: uuid.UUID
    name: Any
    category: DiscountCategory
    code: str | None
    discount_type: DiscountType
    value: Decimal
    max_discount_amount: Decimal | None
    scope: DiscountScope
    application_type: ApplicationType
    applies_to_all: bool
    applicable_zone_ids: list[str] | None
    applicable_category_ids: list[str] | None
    applicable_item_ids: list[str] | None
    valid_from: date | None
    valid_until: date | None
    weekly_days: list[int] | None
    min_order_amount: Decimal | None
    max_uses: int | None
    max_uses_per_customer: int | None
    current_uses: int
    priority: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoucherValidateRequest(BaseModel):
    """Booking facts a voucher code is checked against."""

    code: str = Field(min_length=1, max_length=64)
    order_amount: Decimal = Field(ge=Decimal("0"))
    zone_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    item_id: uuid.UUID | None = None
    check_in_date: date | None = None
    customer_id: uuid.UUID | None = None
    application_type: ApplicationType = ApplicationType.ALL


class VoucherValidateResponse(BaseModel):
    valid: bool
    code: str
    discount_id: uuid.UUID
    discount_type: DiscountType
    value: Decimal
    scope: DiscountScope
    discount_amount: Decimal
    reason: str | None = None
