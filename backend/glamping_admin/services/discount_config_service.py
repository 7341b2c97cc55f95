"""Discount and voucher configuration management."""
from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.models import Discount, DiscountCategory, DiscountType
from glamping_admin.services.discount_service import (
    DiscountRule,
    order_discounts,
    rule_from_discount,
)

_APPLICABILITY_FIELDS = (
    "applicable_zone_ids",
    "applicable_category_ids",
    "applicable_item_ids",
)

_UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "category",
        "code",
        "discount_type",
        "value",
        "max_discount_amount",
        "scope",
        "application_type",
        "applies_to_all",
        *_APPLICABILITY_FIELDS,
        "valid_from",
        "valid_until",
        "weekly_days",
        "min_order_amount",
        "max_uses",
        "max_uses_per_customer",
        "priority",
        "is_active",
    }
)


class DiscountValidationError(ValueError):
    """A discount configuration error tied to one input field."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def normalize_code(code: str | None) -> str | None:
    if code is None:
        return None
    code = code.strip().upper()
    return code or None


def validate_discount_fields(fields: Mapping[str, Any]) -> None:
    """Check a full discount configuration, raising on the first bad field."""

    category = _enum_value(fields.get("category") or DiscountCategory.DISCOUNTS)
    if category == DiscountCategory.VOUCHERS.value and not fields.get("code"):
        raise DiscountValidationError("code", "Vouchers require a redemption code")

    discount_type = _enum_value(fields.get("discount_type"))
    value = fields.get("value")
    if value is None or Decimal(value) <= 0:
        raise DiscountValidationError("value", "Discount value must be positive")
    if discount_type == DiscountType.PERCENTAGE.value:
        if Decimal(value) > 100:
            raise DiscountValidationError(
                "value", "Percentage discounts must be between 0 and 100"
            )
    elif fields.get("max_discount_amount") is not None:
        raise DiscountValidationError(
            "max_discount_amount",
            "A maximum discount amount only applies to percentage discounts",
        )
    cap = fields.get("max_discount_amount")
    if cap is not None and Decimal(cap) <= 0:
        raise DiscountValidationError(
            "max_discount_amount", "Maximum discount amount must be positive"
        )

    populated = [name for name in _APPLICABILITY_FIELDS if fields.get(name)]
    if fields.get("applies_to_all"):
        if populated:
            raise DiscountValidationError(
                populated[0], "Clear specific targets when applying to all"
            )
    elif len(populated) != 1:
        raise DiscountValidationError(
            populated[1] if populated else "applies_to_all",
            "Choose exactly one of zones, categories or items, or apply to all",
        )

    valid_from, valid_until = fields.get("valid_from"), fields.get("valid_until")
    if valid_from and valid_until and valid_from > valid_until:
        raise DiscountValidationError("valid_until", "valid_until is before valid_from")

    weekly_days: Sequence[int] = fields.get("weekly_days") or ()
    if any(day not in range(7) for day in weekly_days):
        raise DiscountValidationError("weekly_days", "Weekdays must be 0 (Sunday) to 6")

    for name in ("max_uses", "max_uses_per_customer"):
        limit = fields.get(name)
        if limit is not None and limit < 1:
            raise DiscountValidationError(name, "Usage limits must be at least 1")


def _snapshot(discount: Discount) -> dict[str, Any]:
    return {name: getattr(discount, name) for name in _UPDATABLE_FIELDS}


def _as_id_list(values: Sequence[Any] | None) -> list[str] | None:
    if not values:
        return None
    return [str(value) for value in values]


async def _ensure_unique_code(
    session: AsyncSession, code: str | None, *, exclude_id: uuid.UUID | None = None
) -> None:
    if code is None:
        return
    stmt = select(Discount.id).where(func.upper(Discount.code) == code)
    if exclude_id is not None:
        stmt = stmt.where(Discount.id != exclude_id)
    if (await session.execute(stmt)).first() is not None:
        raise DiscountValidationError("code", "Voucher code already exists")


async def list_discounts(
    session: AsyncSession,
    *,
    category: DiscountCategory | None = None,
    active_only: bool = False,
    skip: int = 0,
    limit: int = 100,
) -> list[Discount]:
    stmt = select(Discount).order_by(Discount.priority.desc(), Discount.created_at)
    if category is not None:
        stmt = stmt.where(Discount.category == category)
    if active_only:
        stmt = stmt.where(Discount.is_active.is_(True))
    result = await session.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def get_discount(
    session: AsyncSession, *, discount_id: uuid.UUID
) -> Discount | None:
    return await session.get(Discount, discount_id)


async def create_discount(session: AsyncSession, *, data: Mapping[str, Any]) -> Discount:
    fields = {name: value for name, value in data.items() if name in _UPDATABLE_FIELDS}
    fields["code"] = normalize_code(fields.get("code"))
    for name in _APPLICABILITY_FIELDS:
        fields[name] = _as_id_list(fields.get(name))
    validate_discount_fields(fields)
    await _ensure_unique_code(session, fields["code"])

    discount = Discount(**fields)
    session.add(discount)
    await session.commit()
    await session.refresh(discount)
    return discount


async def update_discount(
    session: AsyncSession, *, discount: Discount, changes: Mapping[str, Any]
) -> Discount:
    """Apply a partial update; selecting one applicability target clears the others."""

    changes = {name: value for name, value in changes.items() if name in _UPDATABLE_FIELDS}
    if "code" in changes:
        changes["code"] = normalize_code(changes["code"])
    for name in _APPLICABILITY_FIELDS:
        if name in changes:
            changes[name] = _as_id_list(changes[name])

    merged = _snapshot(discount)
    merged.update(changes)
    chosen = [name for name in _APPLICABILITY_FIELDS if changes.get(name)]
    if len(chosen) == 1 or changes.get("applies_to_all"):
        for name in _APPLICABILITY_FIELDS:
            if name not in chosen:
                merged[name] = None
        merged["applies_to_all"] = not chosen
    validate_discount_fields(merged)
    await _ensure_unique_code(session, merged["code"], exclude_id=discount.id)

    for name, value in merged.items():
        setattr(discount, name, value)
    await session.commit()
    await session.refresh(discount)
    return discount


async def delete_discount(session: AsyncSession, *, discount: Discount) -> None:
    await session.delete(discount)
    await session.commit()


async def automatic_discounts(
    session: AsyncSession, *, on_date: date
) -> list[tuple[Discount, DiscountRule]]:
    """Active non-voucher discounts valid on ``on_date``, in application order."""

    result = await session.execute(
        select(Discount).where(
            Discount.category == DiscountCategory.DISCOUNTS,
            Discount.is_active.is_(True),
        )
    )
    discounts = {str(discount.id): discount for discount in result.scalars()}
    rules = order_discounts(
        rule
        for rule in map(rule_from_discount, discounts.values())
        if rule.is_valid_on(on_date)
    )
    return [(discounts[rule.id], rule) for rule in rules]
