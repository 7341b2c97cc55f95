"""Operations for bookable items and the menu catalog."""
from __future__ import annotations

import uuid
from collections.abc import Collection
from decimal import Decimal

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.models import Item, MenuItem
from glamping_admin.schemas.catalog import MenuItemCreate, MenuItemUpdate


def _check_menu_amounts(price: Decimal | None, tax_rate: Decimal | None) -> None:
    if price is not None and price < 0:
        raise ValueError("price must not be negative")
    if tax_rate is not None and not Decimal(0) <= tax_rate <= Decimal(100):
        raise ValueError("tax_rate must be between 0 and 100")


async def list_items(
    session: AsyncSession,
    *,
    zone_scope: Collection[uuid.UUID] | None,
    zone_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
    active_only: bool = True,
) -> list[Item]:
    if zone_scope is not None and not zone_scope:
        return []
    stmt: Select[tuple[Item]] = select(Item)
    if zone_scope is not None:
        stmt = stmt.where(Item.zone_id.in_(list(zone_scope)))
    if zone_id is not None:
        stmt = stmt.where(Item.zone_id == zone_id)
    if category_id is not None:
        stmt = stmt.where(Item.category_id == category_id)
    if active_only:
        stmt = stmt.where(Item.is_active.is_(True))
    stmt = stmt.order_by(Item.created_at.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_menu_items(
    session: AsyncSession,
    *,
    zone_id: uuid.UUID | None = None,
    active_only: bool = False,
) -> list[MenuItem]:
    stmt: Select[tuple[MenuItem]] = select(MenuItem)
    if zone_id is not None:
        stmt = stmt.where((MenuItem.zone_id == zone_id) | MenuItem.zone_id.is_(None))
    if active_only:
        stmt = stmt.where(MenuItem.is_active.is_(True))
    stmt = stmt.order_by(MenuItem.display_order.asc(), MenuItem.created_at.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_menu_item(
    session: AsyncSession, *, menu_item_id: uuid.UUID
) -> MenuItem | None:
    return await session.get(MenuItem, menu_item_id)


async def create_menu_item(
    session: AsyncSession, *, payload: MenuItemCreate
) -> MenuItem:
    _check_menu_amounts(payload.price, payload.tax_rate)
    menu_item = MenuItem(
        zone_id=payload.zone_id,
        name=payload.name,
        category=payload.category,
        unit=payload.unit,
        price=payload.price,
        tax_rate=payload.tax_rate,
        display_order=payload.display_order,
        is_active=payload.is_active,
    )
    session.add(menu_item)
    await session.commit()
    await session.refresh(menu_item)
    return menu_item


async def update_menu_item(
    session: AsyncSession, *, menu_item: MenuItem, payload: MenuItemUpdate
) -> MenuItem:
    data = payload.model_dump(exclude_unset=True)
    _check_menu_amounts(data.get("price"), data.get("tax_rate"))
    for key, value in data.items():
        setattr(menu_item, key, value)
    await session.commit()
    await session.refresh(menu_item)
    return menu_item
