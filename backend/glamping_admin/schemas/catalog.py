"""Pydantic schemas for bookable items and menu products."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ItemRead(BaseModel):
    id: uuid.UUID
    zone_id: uuid.UUID
    category_id: uuid.UUID | None
    name: Any
    sku: str | None
    pricing_rate: str
    inventory_quantity: int
    unlimited_inventory: bool
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class MenuItemBase(BaseModel):
    """Shared menu product fields."""

    zone_id: uuid.UUID | None = None
    name: str | dict[str, str]
    category: str | None = Field(default=None, max_length=120)
    unit: str | None = Field(default=None, max_length=32)
    price: Decimal = Field(ge=Decimal("0"))
    tax_rate: Decimal = Field(default=Decimal("0"), ge=Decimal("0"), le=Decimal("100"))
    display_order: int = 0
    is_active: bool = True


class MenuItemCreate(MenuItemBase):
    """Payload for creating a menu product."""


class MenuItemUpdate(BaseModel):
    """Mutable menu product fields."""

    name: str | dict[str, str] | None = None
    category: str | None = Field(default=None, max_length=120)
    unit: str | None = Field(default=None, max_length=32)
    price: Decimal | None = Field(default=None, ge=Decimal("0"))
    tax_rate: Decimal | None = Field(default=None, ge=Decimal("0"), le=Decimal("100"))
    display_order: int | None = None
    is_active: bool | None = None


class MenuItemRead(MenuItemBase):
    """Serialized menu product."""

    id: uuid.UUID
    name: Any
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
