"""Menu (food, drinks, add-on) products sold with bookings."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from glamping_admin.db.base import Base
from glamping_admin.models.mixins import JSONB_TYPE, MONEY, RATE, TimestampMixin


class MenuItem(TimestampMixin, Base):
    """A product that can be added to a booking."""

    __tablename__ = "menu_items"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    zone_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("zones.id", ondelete="CASCADE")
    )
    name: Mapped[Any] = mapped_column(JSONB_TYPE, nullable=False)
    category: Mapped[str | None] = mapped_column(String(120))
    unit: Mapped[str | None] = mapped_column(String(32))
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
