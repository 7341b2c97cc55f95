"""Booking sales report aggregation."""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.core.i18n import localize
from glamping_admin.models import Category, Item, User
from glamping_admin.services.money import to_money
from glamping_admin.reports.sales_specs import (
    PAYMENT_METRICS,
    SPECS,
    Dimension,
    SalesFilters,
    build_facts,
    count_statement,
    data_statement,
    summary_statement,
)

logger = logging.getLogger(__name__)

_MONEY_FIELDS = frozenset(
    {"discounts", "gross_sales", "net_sales", "total", *PAYMENT_METRICS}
)
_COUNT_FIELDS = frozenset({"booking_count", "item_quantity"})
_LOCALIZED_FIELDS = frozenset({"item_name", "category_name", "product_name"})


@dataclass(slots=True)
class Pagination:
    current_page: int
    total_pages: int
    total: int
    limit: int

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.current_page > 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total": self.total,
            "limit": self.limit,
            "has_next_page": self.has_next_page,
            "has_previous_page": self.has_previous_page,
        }


@dataclass(slots=True)
class SalesReport:
    dimension: Dimension
    rows: list[dict[str, Any]]
    summary: dict[str, Any]
    pagination: Pagination
    filter_options: dict[str, list[dict[str, str]]] = field(default_factory=dict)


def _format_value(name: str, value: Any, locale: str | None) -> Any:
    if name in _MONEY_FIELDS:
        return to_money(value)
    if name in _COUNT_FIELDS:
        return int(value or 0)
    if name in _LOCALIZED_FIELDS:
        return localize(value, locale) if value is not None else None
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return getattr(value, "value", value)


def _format_row(mapping: Any, locale: str | None) -> dict[str, Any]:
    return {name: _format_value(name, value, locale) for name, value in mapping.items()}


def empty_report(dimension: Dimension, filters: SalesFilters) -> SalesReport:
    return SalesReport(
        dimension=dimension,
        rows=[],
        summary={},
        pagination=Pagination(
            current_page=filters.page, total_pages=0, total=0, limit=filters.limit
        ),
        filter_options={},
    )


async def aggregate(
    session: AsyncSession,
    *,
    dimension: Dimension,
    filters: SalesFilters,
    zone_scope: Collection[uuid.UUID] | None,
    locale: str | None = None,
) -> SalesReport:
    """Aggregate booking sales by ``dimension``.

    ``zone_scope`` of ``None`` is unrestricted; an empty scope yields an empty
    report. Callers resolve explicit zone requests against the scope first.
    """

    if zone_scope is not None and not zone_scope:
        return empty_report(dimension, filters)

    spec = SPECS[dimension]
    facts = build_facts(spec, filters, zone_scope)

    total = (await session.execute(count_statement(spec, facts))).scalar_one()
    rows = (await session.execute(data_statement(spec, facts, filters))).mappings().all()
    summary_row = (await session.execute(summary_statement(spec, facts))).mappings().one()

    total_pages = math.ceil(total / filters.limit) if total else 0
    logger.debug(
        "Sales report %s: %s groups, page %s/%s",
        dimension.value,
        total,
        filters.page,
        total_pages,
    )
    return SalesReport(
        dimension=dimension,
        rows=[_format_row(row, locale) for row in rows],
        summary=_format_row(summary_row, locale),
        pagination=Pagination(
            current_page=filters.page,
            total_pages=total_pages,
            total=total,
            limit=filters.limit,
        ),
        filter_options=await filter_options(
            session, zone_scope=zone_scope, locale=locale
        ),
    )


async def filter_options(
    session: AsyncSession,
    *,
    zone_scope: Collection[uuid.UUID] | None,
    locale: str | None = None,
) -> dict[str, list[dict[str, str]]]:
    """Categories and items within the zone scope, plus active staff."""

    item_stmt = select(Item.id, Item.name)
    category_stmt = (
        select(Category.id, Category.name)
        .join(Item, Item.category_id == Category.id)
        .distinct()
    )
    if zone_scope is not None:
        item_stmt = item_stmt.where(Item.zone_id.in_(list(zone_scope)))
        category_stmt = category_stmt.where(Item.zone_id.in_(list(zone_scope)))
    staff_stmt = select(User.id, User.first_name, User.last_name).where(
        User.is_active.is_(True)
    )

    categories = [
        {"value": str(category_id), "label": localize(name, locale, default=str(category_id))}
        for category_id, name in (await session.execute(category_stmt)).all()
    ]
    items = [
        {"value": str(item_id), "label": localize(name, locale, default=str(item_id))}
        for item_id, name in (await session.execute(item_stmt)).all()
    ]
    staff = [
        {"value": str(user_id), "label": f"{first or ''} {last or ''}".strip()}
        for user_id, first, last in (await session.execute(staff_stmt)).all()
    ]
    return {
        "categories": sorted(categories, key=lambda option: option["label"]),
        "items": sorted(items, key=lambda option: option["label"]),
        "staff": sorted(staff, key=lambda option: option["label"]),
    }
