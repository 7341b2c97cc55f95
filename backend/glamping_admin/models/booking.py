"""Booking models: header, accommodation and product lines, payments, history."""
from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glamping_admin.db.base import Base
from glamping_admin.models.discount import DiscountType
from glamping_admin.models.mixins import (
    JSONB_TYPE,
    MONEY,
    RATE,
    TimestampMixin,
    utcnow,
)

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from glamping_admin.models.catalog import Item
    from glamping_admin.models.customer import Customer
    from glamping_admin.models.menu import MenuItem
    from glamping_admin.models.user import User
    from glamping_admin.models.zone import Zone


class BookingStatus(str, enum.Enum):
    """Lifecycle states for bookings."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    """Payment progress of a booking, independent of its lifecycle."""

    PENDING = "pending"
    DEPOSIT_PAID = "deposit_paid"
    FULLY_PAID = "fully_paid"
    REFUND_PENDING = "refund_pending"
    REFUNDED = "refunded"
    NO_REFUND = "no_refund"
    EXPIRED = "expired"


class Booking(TimestampMixin, Base):
    """A reservation of one or more accommodation items for a date range."""

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    booking_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    zone_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("zones.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"), index=True
    )
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=False)
    guests: Mapped[dict[str, int]] = mapped_column(JSONB_TYPE, default=dict)

    subtotal_amount: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    discount_amount: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    tax_amount: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    deposit_due: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    balance_due: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    vat_payment_due: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    currency: Mapped[str] = mapped_column(String(8), default="VND", nullable=False)
    tax_invoice_required: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    tax_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    zone: Mapped["Zone"] = relationship("Zone")
    customer: Mapped["Customer | None"] = relationship(
        "Customer", back_populates="bookings"
    )
    created_by: Mapped["User | None"] = relationship("User")
    items: Mapped[list["BookingItem"]] = relationship(
        "BookingItem",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingItem.display_order",
    )
    products: Mapped[list["BookingProduct"]] = relationship(
        "BookingProduct", back_populates="booking", cascade="all, delete-orphan"
    )
    discounts: Mapped[list["BookingDiscount"]] = relationship(
        "BookingDiscount", back_populates="booking", cascade="all, delete-orphan"
    )
    payments: Mapped[list["BookingPayment"]] = relationship(
        "BookingPayment",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingPayment.created_at",
    )
    status_history: Mapped[list["BookingStatusHistory"]] = relationship(
        "BookingStatusHistory",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingStatusHistory.created_at",
    )


class BookingItem(TimestampMixin, Base):
    """One accommodation unit within a booking."""

    __tablename__ = "booking_items"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("items.id", ondelete="RESTRICT"), nullable=False
    )
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=False)
    nights: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    guests: Mapped[dict[str, int]] = mapped_column(JSONB_TYPE, default=dict)
    nightly_breakdown: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB_TYPE)
    subtotal_amount: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    discount_amount: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    booking: Mapped[Booking] = relationship("Booking", back_populates="items")
    item: Mapped["Item"] = relationship("Item")


class BookingProduct(TimestampMixin, Base):
    """A menu/add-on product purchased with a booking."""

    __tablename__ = "booking_products"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    menu_item_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("menu_items.id", ondelete="RESTRICT"), nullable=False
    )
    parameter_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("parameters.id", ondelete="SET NULL")
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    voucher_code: Mapped[str | None] = mapped_column(String(64))
    discount_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("discounts.id", ondelete="SET NULL")
    )
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSONB_TYPE
    )

    booking: Mapped[Booking] = relationship("Booking", back_populates="products")
    menu_item: Mapped["MenuItem"] = relationship("MenuItem")


class BookingDiscount(TimestampMixin, Base):
    """Snapshot of a discount or voucher applied to a booking or one of its lines."""

    __tablename__ = "booking_discounts"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    booking_item_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("booking_items.id", ondelete="CASCADE"), index=True
    )
    discount_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("discounts.id", ondelete="SET NULL")
    )
    code: Mapped[str | None] = mapped_column(String(64))
    scope: Mapped[str] = mapped_column(String(32), nullable=False)
    discount_type: Mapped[DiscountType] = mapped_column(
        Enum(DiscountType), nullable=False
    )
    value: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    max_discount_amount: Mapped[Decimal | None] = mapped_column(MONEY)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)

    booking: Mapped[Booking] = relationship("Booking", back_populates="discounts")
    booking_item: Mapped["BookingItem | None"] = relationship("BookingItem")


class BookingPayment(Base):
    """Append-only payment event recorded against a booking."""

    __tablename__ = "booking_payments"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    method: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    transaction_reference: Mapped[str | None] = mapped_column(String(128))
    is_vat_payment: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    booking: Mapped[Booking] = relationship("Booking", back_populates="payments")


class BookingStatusHistory(Base):
    """Append-only record of a booking status or payment-state change."""

    __tablename__ = "booking_status_history"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    previous_status: Mapped[str | None] = mapped_column(String(32))
    new_status: Mapped[str] = mapped_column(String(32), nullable=False)
    previous_payment_status: Mapped[str | None] = mapped_column(String(32))
    new_payment_status: Mapped[str | None] = mapped_column(String(32))
    reason: Mapped[str | None] = mapped_column(Text)
    changed_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    booking: Mapped[Booking] = relationship("Booking", back_populates="status_history")
