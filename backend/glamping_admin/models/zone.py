"""Glamping zone (campsite) and its settings audit log."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glamping_admin.db.base import Base
from glamping_admin.models.mixins import (
    JSONB_TYPE,
    MONEY,
    RATE,
    TimestampMixin,
    utcnow,
)

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from glamping_admin.models.catalog import Item
    from glamping_admin.models.user import User


class DepositType(str, enum.Enum):
    """How the deposit due on a booking is derived."""

    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class CommissionType(str, enum.Enum):
    """How the platform commission on a zone is derived."""

    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class Zone(TimestampMixin, Base):
    """A campsite with its own tax, deposit and commission settings."""

    __tablename__ = "zones"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[Any] = mapped_column(JSONB_TYPE, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="VND")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    tax_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"), nullable=False)
    tax_name: Mapped[Any | None] = mapped_column(JSONB_TYPE)

    deposit_type: Mapped[DepositType] = mapped_column(
        Enum(DepositType), default=DepositType.PERCENTAGE, nullable=False
    )
    deposit_value: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    commission_type: Mapped[CommissionType] = mapped_column(
        Enum(CommissionType), default=CommissionType.PERCENTAGE, nullable=False
    )
    commission_value: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    min_stay_nights: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    items: Mapped[list["Item"]] = relationship("Item", back_populates="zone")
    settings_history: Mapped[list["ZoneSettingsHistory"]] = relationship(
        "ZoneSettingsHistory",
        back_populates="zone",
        cascade="all, delete-orphan",
        order_by="ZoneSettingsHistory.created_at",
    )


class ZoneSettingsHistory(Base):
    """Append-only record of a single zone setting change."""

    __tablename__ = "zone_settings_history"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    zone_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("zones.id", ondelete="CASCADE"), nullable=False
    )
    field: Mapped[str] = mapped_column(String(64), nullable=False)
    old_value: Mapped[Any | None] = mapped_column(JSONB_TYPE)
    new_value: Mapped[Any | None] = mapped_column(JSONB_TYPE)
    change_reason: Mapped[str | None] = mapped_column(Text)
    changed_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=sa.func.now(),
    )

    zone: Mapped[Zone] = relationship("Zone", back_populates="settings_history")
    changed_by: Mapped["User | None"] = relationship("User")
