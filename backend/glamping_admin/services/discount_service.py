"""Discount stacking, voucher eligibility and the booking price chain."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from glamping_admin.models import BookingDiscount, Discount
from glamping_admin.services.money import ZERO, money_str, to_money
from glamping_admin.services.rate_service import weekday_index
from glamping_admin.services.tax_service import apply_tax

PERCENTAGE = "percentage"
FIXED_AMOUNT = "fixed_amount"

PER_ITEM = "per_item"
BEFORE_TAX = "per_booking_before_tax"
AFTER_TAX = "per_booking_after_tax"
SCOPES = (PER_ITEM, BEFORE_TAX, AFTER_TAX)


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


@dataclass(slots=True, frozen=True)
class DiscountTarget:
    """What a discount is being applied to."""

    zone_id: str | None = None
    category_id: str | None = None
    item_id: str | None = None


@dataclass(slots=True, frozen=True)
class DiscountRule:
    """A discount or voucher reduced to the fields the arithmetic needs."""

    id: str
    discount_type: str
    value: Decimal
    scope: str = BEFORE_TAX
    max_discount_amount: Decimal | None = None
    priority: int = 0
    created_at: datetime | None = None
    is_active: bool = True
    code: str | None = None
    applies_to_all: bool = True
    zone_ids: frozenset[str] = frozenset()
    category_ids: frozenset[str] = frozenset()
    item_ids: frozenset[str] = frozenset()
    valid_from: date | None = None
    valid_until: date | None = None
    weekly_days: tuple[int, ...] = ()
    application_type: str = "all"
    min_order_amount: Decimal | None = None
    max_uses: int | None = None
    max_uses_per_customer: int | None = None
    current_uses: int = 0

    def matches(self, target: DiscountTarget) -> bool:
        if self.applies_to_all:
            return True
        if self.zone_ids:
            return target.zone_id in self.zone_ids
        if self.category_ids:
            return target.category_id in self.category_ids
        if self.item_ids:
            return target.item_id in self.item_ids
        return False

    def is_valid_on(self, day: date) -> bool:
        if self.valid_from is not None and day < self.valid_from:
            return False
        if self.valid_until is not None and day > self.valid_until:
            return False
        if self.weekly_days and weekday_index(day) not in self.weekly_days:
            return False
        return True


@dataclass(slots=True)
class AppliedDiscount:
    discount_id: str
    code: str | None
    scope: str
    amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "discount_id": self.discount_id,
            "code": self.code,
            "scope": self.scope,
            "amount": money_str(self.amount),
        }


@dataclass(slots=True)
class DiscountResult:
    discount_amount: Decimal
    net_subtotal: Decimal
    applied: list[AppliedDiscount] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "discount_amount": money_str(self.discount_amount),
            "net_subtotal": money_str(self.net_subtotal),
            "applied": [entry.to_dict() for entry in self.applied],
        }


def compute_discount(rule: DiscountRule, base: Decimal) -> Decimal:
    """Raw amount of one discount on ``base`` before stacking."""
    base = max(to_money(base), ZERO)
    if rule.discount_type == PERCENTAGE:
        amount = to_money(base * Decimal(rule.value) / Decimal(100))
        if rule.max_discount_amount is not None:
            amount = min(amount, to_money(rule.max_discount_amount))
        return max(amount, ZERO)
    return max(min(to_money(rule.value), base), ZERO)


def order_discounts(rules: Iterable[DiscountRule]) -> list[DiscountRule]:
    """Application order: priority desc, then oldest first, then id."""

    def _created(rule: DiscountRule) -> float:
        return rule.created_at.timestamp() if rule.created_at else 0.0

    return sorted(rules, key=lambda rule: (-rule.priority, _created(rule), rule.id))


def apply_discounts(
    line_subtotal: Decimal | int | str,
    applicable_discounts: Iterable[DiscountRule],
    scope: str,
    *,
    target: DiscountTarget | None = None,
    on_date: date | None = None,
) -> DiscountResult:
    """Stack the discounts of one scope on a subtotal.

    Every discount is computed on the same base; the running total is
    clamped so the net never drops below zero.
    """
    base = max(to_money(line_subtotal), ZERO)
    selected = [
        rule
        for rule in applicable_discounts
        if rule.is_active
        and rule.scope == scope
        and (target is None or rule.matches(target))
        and (on_date is None or rule.is_valid_on(on_date))
    ]

    remaining = base
    applied: list[AppliedDiscount] = []
    for rule in order_discounts(selected):
        amount = min(compute_discount(rule, base), remaining)
        remaining -= amount
        applied.append(
            AppliedDiscount(discount_id=rule.id, code=rule.code, scope=scope, amount=amount)
        )
    return DiscountResult(
        discount_amount=base - remaining, net_subtotal=remaining, applied=applied
    )


@dataclass(slots=True)
class LineInput:
    """An accommodation line entering the price chain."""

    line_id: str
    subtotal: Decimal
    discounts: Sequence[DiscountRule] = ()
    target: DiscountTarget | None = None


@dataclass(slots=True)
class ProductInput:
    """A menu product line entering the price chain."""

    line_id: str
    quantity: int
    unit_price: Decimal
    discounts: Sequence[DiscountRule] = ()
    target: DiscountTarget | None = None

    @property
    def gross(self) -> Decimal:
        return to_money(Decimal(self.unit_price) * max(self.quantity, 0))


@dataclass(slots=True)
class BookingPrice:
    """Totals produced by the full discount and tax chain."""

    subtotal: Decimal
    item_discount: Decimal
    before_tax_discount: Decimal
    after_tax_discount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    lines: dict[str, DiscountResult] = field(default_factory=dict)
    products: dict[str, DiscountResult] = field(default_factory=dict)
    booking_applied: list[AppliedDiscount] = field(default_factory=list)

    @property
    def discount_amount(self) -> Decimal:
        return self.item_discount + self.before_tax_discount + self.after_tax_discount

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": money_str(self.subtotal),
            "discount_amount": money_str(self.discount_amount),
            "item_discount": money_str(self.item_discount),
            "before_tax_discount": money_str(self.before_tax_discount),
            "after_tax_discount": money_str(self.after_tax_discount),
            "tax_amount": money_str(self.tax_amount),
            "total_amount": money_str(self.total_amount),
            "lines": {key: value.to_dict() for key, value in self.lines.items()},
            "products": {key: value.to_dict() for key, value in self.products.items()},
            "booking_discounts": [entry.to_dict() for entry in self.booking_applied],
        }


def price_booking(
    lines: Iterable[LineInput],
    products: Iterable[ProductInput],
    booking_discounts: Iterable[DiscountRule],
    tax_rate: Decimal | int | str | None,
    tax_required: bool,
) -> BookingPrice:
    """Run per-item discounts, booking discounts and tax over a booking."""

    booking_discounts = list(booking_discounts)
    subtotal = ZERO
    item_discount = ZERO
    line_results: dict[str, DiscountResult] = {}
    product_results: dict[str, DiscountResult] = {}

    for line in lines:
        gross = to_money(line.subtotal)
        result = apply_discounts(gross, line.discounts, PER_ITEM, target=line.target)
        line_results[line.line_id] = result
        subtotal += gross
        item_discount += result.discount_amount

    for product in products:
        result = apply_discounts(
            product.gross, product.discounts, PER_ITEM, target=product.target
        )
        product_results[product.line_id] = result
        subtotal += product.gross
        item_discount += result.discount_amount

    before = apply_discounts(subtotal - item_discount, booking_discounts, BEFORE_TAX)
    tax = apply_tax(before.net_subtotal, tax_rate, tax_required)
    after = apply_discounts(tax.total_with_tax, booking_discounts, AFTER_TAX)

    return BookingPrice(
        subtotal=subtotal,
        item_discount=item_discount,
        before_tax_discount=before.discount_amount,
        after_tax_discount=after.discount_amount,
        tax_amount=tax.tax_amount,
        total_amount=after.net_subtotal,
        lines=line_results,
        products=product_results,
        booking_applied=before.applied + after.applied,
    )


def deposit_due(
    total_amount: Decimal, deposit_type: str, deposit_value: Decimal | None
) -> Decimal:
    """Deposit owed up front under a zone's deposit settings."""
    total = max(to_money(total_amount), ZERO)
    value = to_money(deposit_value or 0)
    if value <= 0:
        return ZERO
    if _enum_value(deposit_type) == PERCENTAGE:
        return min(to_money(total * value / Decimal(100)), total)
    return min(value, total)


@dataclass(slots=True, frozen=True)
class VoucherContext:
    """Booking facts a voucher is checked against."""

    order_amount: Decimal
    on_date: date | None = None
    target: DiscountTarget | None = None
    customer_uses: int = 0
    application_type: str = "all"


@dataclass(slots=True)
class VoucherCheck:
    valid: bool
    discount_amount: Decimal = ZERO
    reason: str | None = None


def check_voucher_eligibility(rule: DiscountRule, context: VoucherContext) -> VoucherCheck:
    """Check a voucher against usage, date, zone and application rules.

    A failing check is a normal outcome, reported with a reason.
    """
    if not rule.is_active:
        return VoucherCheck(valid=False, reason="Voucher is inactive")
    if rule.max_uses is not None and rule.current_uses >= rule.max_uses:
        return VoucherCheck(valid=False, reason="Voucher usage limit reached")
    if (
        rule.max_uses_per_customer is not None
        and context.customer_uses >= rule.max_uses_per_customer
    ):
        return VoucherCheck(valid=False, reason="Customer usage limit reached")
    order_amount = max(to_money(context.order_amount), ZERO)
    if rule.min_order_amount is not None and order_amount < to_money(rule.min_order_amount):
        return VoucherCheck(valid=False, reason="Order amount below voucher minimum")
    if context.on_date is not None:
        if rule.valid_from is not None and context.on_date < rule.valid_from:
            return VoucherCheck(valid=False, reason="Voucher is not yet valid")
        if rule.valid_until is not None and context.on_date > rule.valid_until:
            return VoucherCheck(valid=False, reason="Voucher has expired")
        if rule.weekly_days and weekday_index(context.on_date) not in rule.weekly_days:
            return VoucherCheck(valid=False, reason="Voucher not valid on this weekday")
    if context.target is not None and not rule.matches(context.target):
        return VoucherCheck(valid=False, reason="Voucher does not apply to this booking")
    if (
        context.application_type != "all"
        and rule.application_type != "all"
        and rule.application_type != context.application_type
    ):
        return VoucherCheck(valid=False, reason="Voucher does not apply to this line type")

    amount = min(compute_discount(rule, order_amount), order_amount)
    return VoucherCheck(valid=True, discount_amount=amount)


def rule_from_discount(discount: Discount) -> DiscountRule:
    """Convert a stored discount into an arithmetic rule."""
    zone_ids = frozenset(str(value) for value in discount.applicable_zone_ids or ())
    category_ids = frozenset(str(value) for value in discount.applicable_category_ids or ())
    item_ids = frozenset(str(value) for value in discount.applicable_item_ids or ())
    return DiscountRule(
        id=str(discount.id),
        discount_type=_enum_value(discount.discount_type),
        value=Decimal(discount.value),
        scope=_enum_value(discount.scope),
        max_discount_amount=discount.max_discount_amount,
        priority=discount.priority or 0,
        created_at=discount.created_at,
        is_active=discount.is_active,
        code=discount.code,
        applies_to_all=discount.applies_to_all,
        zone_ids=zone_ids,
        category_ids=category_ids,
        item_ids=item_ids,
        valid_from=discount.valid_from,
        valid_until=discount.valid_until,
        weekly_days=tuple(discount.weekly_days or ()),
        application_type=_enum_value(discount.application_type),
        min_order_amount=discount.min_order_amount,
        max_uses=discount.max_uses,
        max_uses_per_customer=discount.max_uses_per_customer,
        current_uses=discount.current_uses or 0,
    )


def snapshot_rule(
    *,
    rule_id: str,
    discount_type: Any,
    value: Decimal | None,
    scope: str,
    max_discount_amount: Decimal | None = None,
    priority: int = 0,
    created_at: datetime | None = None,
    code: str | None = None,
) -> DiscountRule | None:
    """Rule rebuilt from a discount snapshot stored on a booking.

    Snapshots are recalculated as-is; validity was checked when applied.
    """
    if discount_type is None or value is None:
        return None
    return DiscountRule(
        id=rule_id,
        discount_type=_enum_value(discount_type),
        value=Decimal(value),
        scope=scope,
        max_discount_amount=max_discount_amount,
        priority=priority,
        created_at=created_at,
        code=code,
    )


def rule_from_booking_discount(entry: BookingDiscount) -> DiscountRule | None:
    return snapshot_rule(
        rule_id=str(entry.id),
        discount_type=entry.discount_type,
        value=entry.value,
        scope=entry.scope,
        max_discount_amount=entry.max_discount_amount,
        priority=entry.priority,
        created_at=entry.created_at,
        code=entry.code,
    )
