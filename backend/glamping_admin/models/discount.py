"""Discount and voucher configuration."""
from __future__ import annotations

import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, Date, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from glamping_admin.db.base import Base
from glamping_admin.models.mixins import JSONB_TYPE, MONEY, TimestampMixin


class DiscountCategory(str, enum.Enum):
    """Automatic discounts vs. code-based vouchers."""

    DISCOUNTS = "discounts"
    VOUCHERS = "vouchers"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class DiscountScope(str, enum.Enum):
    """Which base a discount reduces."""

    PER_ITEM = "per_item"
    PER_BOOKING_BEFORE_TAX = "per_booking_before_tax"
    PER_BOOKING_AFTER_TAX = "per_booking_after_tax"


class ApplicationType(str, enum.Enum):
    """Which booking lines a voucher may be redeemed against."""

    ALL = "all"
    ACCOMMODATION = "accommodation"
    MENU_ONLY = "menu_only"


class Discount(TimestampMixin, Base):
    """A configurable discount rule or voucher."""

    __tablename__ = "discounts"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[Any] = mapped_column(JSONB_TYPE, nullable=False)
    category: Mapped[DiscountCategory] = mapped_column(
        Enum(DiscountCategory), default=DiscountCategory.DISCOUNTS, nullable=False
    )
    code: Mapped[str | None] = mapped_column(String(64), unique=True, index=True)
    discount_type: Mapped[DiscountType] = mapped_column(
        Enum(DiscountType), nullable=False
    )
    value: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    max_discount_amount: Mapped[Decimal | None] = mapped_column(MONEY)
    scope: Mapped[DiscountScope] = mapped_column(
        Enum(DiscountScope),
        default=DiscountScope.PER_BOOKING_BEFORE_TAX,
        nullable=False,
    )
    application_type: Mapped[ApplicationType] = mapped_column(
        Enum(ApplicationType), default=ApplicationType.ALL, nullable=False
    )
    applies_to_all: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    applicable_zone_ids: Mapped[list[str] | None] = mapped_column(JSONB_TYPE)
    applicable_category_ids: Mapped[list[str] | None] = mapped_column(JSONB_TYPE)
    applicable_item_ids: Mapped[list[str] | None] = mapped_column(JSONB_TYPE)
    valid_from: Mapped[date | None] = mapped_column(Date)
    valid_until: Mapped[date | None] = mapped_column(Date)
    weekly_days: Mapped[list[int] | None] = mapped_column(JSONB_TYPE)
    min_order_amount: Mapped[Decimal | None] = mapped_column(MONEY)
    max_uses: Mapped[int | None] = mapped_column(Integer)
    max_uses_per_customer: Mapped[int | None] = mapped_column(Integer)
    current_uses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
