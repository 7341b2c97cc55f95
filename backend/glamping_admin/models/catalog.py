"""Accommodation catalog: categories, items, guest parameters and prices."""

from __future__ import annotations

import datetime
import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    Column,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glamping_admin.db.base import Base
from glamping_admin.models.mixins import JSONB_TYPE, MONEY, TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from glamping_admin.models.zone import Zone


class PricingRate(str, enum.Enum):
    """How an item's unit price relates to the length of stay."""

    PER_NIGHT = "per_night"
    PER_STAY = "per_stay"
    PER_HOUR = "per_hour"


class PricingMode(str, enum.Enum):
    """Whether a parameter price is charged per guest or per party."""

    PER_PERSON = "per_person"
    PER_GROUP = "per_group"


class EventType(str, enum.Enum):
    CLOSURE = "closure"
    SPECIAL = "special"
    SEASONAL = "seasonal"


class EventPricingType(str, enum.Enum):
    BASE_PRICE = "base_price"
    NEW_PRICE = "new_price"
    DYNAMIC = "dynamic"
    YIELD = "yield"


class DynamicPricingMode(str, enum.Enum):
    PERCENT = "percent"
    FIXED = "fixed"


pricing_event_items = Table(
    "pricing_event_items",
    Base.metadata,
    Column(
        "event_id",
        ForeignKey("pricing_events.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("item_id", ForeignKey("items.id", ondelete="CASCADE"), primary_key=True),
    Column("display_order", Integer, nullable=False, default=0),
)


class Category(TimestampMixin, Base):
    """Pitch/item type grouping (e.g. safari tent, bungalow)."""

    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    zone_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("zones.id", ondelete="CASCADE")
    )
    name: Mapped[Any] = mapped_column(JSONB_TYPE, nullable=False)

    items: Mapped[list["Item"]] = relationship("Item", back_populates="category")


class Parameter(TimestampMixin, Base):
    """A guest type (adult, child, extra bed) priced per item."""

    __tablename__ = "parameters"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    zone_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("zones.id", ondelete="CASCADE")
    )
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[Any] = mapped_column(JSONB_TYPE, nullable=False)
    counts_as_guest: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Item(TimestampMixin, Base):
    """A bookable accommodation unit type within a zone."""

    __tablename__ = "items"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    zone_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("zones.id", ondelete="CASCADE"), nullable=False
    )
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL")
    )
    name: Mapped[Any] = mapped_column(JSONB_TYPE, nullable=False)
    sku: Mapped[str | None] = mapped_column(String(64))
    pricing_rate: Mapped[str] = mapped_column(
        String(32), default=PricingRate.PER_NIGHT.value, nullable=False
    )
    inventory_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unlimited_inventory: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    zone: Mapped["Zone"] = relationship("Zone", back_populates="items")
    category: Mapped[Category | None] = relationship(
        "Category", back_populates="items"
    )
    prices: Mapped[list["ItemPrice"]] = relationship(
        "ItemPrice", back_populates="item", cascade="all, delete-orphan"
    )
    events: Mapped[list["PricingEvent"]] = relationship(
        "PricingEvent", secondary=pricing_event_items, back_populates="items"
    )


class ItemPrice(TimestampMixin, Base):
    """A price tier of one parameter on one item, optionally event-specific."""

    __tablename__ = "item_prices"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), nullable=False
    )
    parameter_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("parameters.id", ondelete="CASCADE"), nullable=False
    )
    event_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("pricing_events.id", ondelete="CASCADE")
    )
    group_min: Mapped[int | None] = mapped_column(Integer)
    group_max: Mapped[int | None] = mapped_column(Integer)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    pricing_mode: Mapped[PricingMode] = mapped_column(
        Enum(PricingMode), default=PricingMode.PER_PERSON, nullable=False
    )

    item: Mapped[Item] = relationship("Item", back_populates="prices")


class PricingEvent(TimestampMixin, Base):
    """A dated pricing override (season, holiday, closure) for items."""

    __tablename__ = "pricing_events"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    zone_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("zones.id", ondelete="CASCADE")
    )
    name: Mapped[Any] = mapped_column(JSONB_TYPE, nullable=False)
    event_type: Mapped[EventType] = mapped_column(
        Enum(EventType), default=EventType.SEASONAL, nullable=False
    )
    status: Mapped[str] = mapped_column(String(32), default="available", nullable=False)
    start_date: Mapped[datetime.date] = mapped_column(nullable=False)
    end_date: Mapped[datetime.date | None] = mapped_column(nullable=True)
    days_of_week: Mapped[list[int] | None] = mapped_column(JSONB_TYPE)
    pricing_type: Mapped[EventPricingType] = mapped_column(
        Enum(EventPricingType), default=EventPricingType.BASE_PRICE, nullable=False
    )
    dynamic_pricing_value: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    dynamic_pricing_mode: Mapped[DynamicPricingMode | None] = mapped_column(
        Enum(DynamicPricingMode)
    )
    yield_thresholds: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB_TYPE)

    items: Mapped[list[Item]] = relationship(
        "Item", secondary=pricing_event_items, back_populates="events"
    )
