"""Tests for discount stacking, the booking price chain and vouchers."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from glamping_admin.services.discount_service import (
    AFTER_TAX,
    BEFORE_TAX,
    FIXED_AMOUNT,
    PER_ITEM,
    PERCENTAGE,
    DiscountRule,
    DiscountTarget,
    LineInput,
    ProductInput,
    VoucherContext,
    apply_discounts,
    check_voucher_eligibility,
    compute_discount,
    deposit_due,
    order_discounts,
    price_booking,
)


def _rule(rule_id: str, discount_type: str, value: str, scope: str = BEFORE_TAX, **kwargs) -> DiscountRule:
    return DiscountRule(
        id=rule_id, discount_type=discount_type, value=Decimal(value), scope=scope, **kwargs
    )


def test_percentage_discount_respects_cap() -> None:
    rule = _rule("save10", PERCENTAGE, "10", max_discount_amount=Decimal("150000"))
    assert compute_discount(rule, Decimal("1000000")) == Decimal("100000.00")
    assert compute_discount(rule, Decimal("2000000")) == Decimal("150000.00")


def test_fixed_discount_never_exceeds_base() -> None:
    rule = _rule("flat", FIXED_AMOUNT, "500000")
    assert compute_discount(rule, Decimal("300000")) == Decimal("300000.00")


def test_stacked_discounts_clamp_at_zero() -> None:
    rules = [
        _rule("a", FIXED_AMOUNT, "700000", priority=2),
        _rule("b", PERCENTAGE, "50", priority=1),
    ]
    result = apply_discounts(Decimal("1000000"), rules, BEFORE_TAX)
    # Both are computed on the same base, the second is clamped to what is left.
    assert [entry.amount for entry in result.applied] == [
        Decimal("700000.00"),
        Decimal("300000.00"),
    ]
    assert result.discount_amount == Decimal("1000000.00")
    assert result.net_subtotal == Decimal("0.00")


def test_apply_discounts_filters_scope_target_and_date() -> None:
    zone_only = _rule("zone", FIXED_AMOUNT, "10000", applies_to_all=False, zone_ids=frozenset({"z1"}))
    after_tax = _rule("after", FIXED_AMOUNT, "20000", scope=AFTER_TAX)
    inactive = _rule("off", FIXED_AMOUNT, "30000", is_active=False)
    expired = _rule("old", FIXED_AMOUNT, "40000", valid_until=date(2024, 12, 31))

    result = apply_discounts(
        Decimal("500000"),
        [zone_only, after_tax, inactive, expired],
        BEFORE_TAX,
        target=DiscountTarget(zone_id="z1"),
        on_date=date(2025, 6, 1),
    )
    assert [entry.discount_id for entry in result.applied] == ["zone"]
    assert result.net_subtotal == Decimal("490000.00")

    other_zone = apply_discounts(
        Decimal("500000"), [zone_only], BEFORE_TAX, target=DiscountTarget(zone_id="z2")
    )
    assert other_zone.applied == []


def test_discount_order_priority_then_age_then_id() -> None:
    early = datetime(2025, 1, 1, tzinfo=timezone.utc)
    late = datetime(2025, 3, 1, tzinfo=timezone.utc)
    rules = [
        _rule("c", FIXED_AMOUNT, "1", created_at=late),
        _rule("b", FIXED_AMOUNT, "1", created_at=early),
        _rule("a", FIXED_AMOUNT, "1", created_at=early),
        _rule("z", FIXED_AMOUNT, "1", priority=10, created_at=late),
    ]
    assert [rule.id for rule in order_discounts(rules)] == ["z", "a", "b", "c"]


def test_price_booking_example_stay() -> None:
    voucher = _rule(
        "save10",
        PERCENTAGE,
        "10",
        max_discount_amount=Decimal("150000"),
        code="SAVE10",
    )
    price = price_booking(
        [LineInput(line_id="tent", subtotal=Decimal("2000000"))],
        [],
        [voucher],
        tax_rate=Decimal("10"),
        tax_required=True,
    )
    assert price.subtotal == Decimal("2000000.00")
    assert price.before_tax_discount == Decimal("150000.00")
    assert price.tax_amount == Decimal("185000.00")
    assert price.total_amount == Decimal("2035000.00")
    assert price.discount_amount == Decimal("150000.00")
    assert deposit_due(price.total_amount, "percentage", Decimal("50")) == Decimal("1017500.00")


def test_price_booking_runs_item_before_booking_and_after_tax_last() -> None:
    line_discount = _rule("line", FIXED_AMOUNT, "100000", scope=PER_ITEM)
    product_discount = _rule("menu", PERCENTAGE, "50", scope=PER_ITEM)
    before = _rule("before", PERCENTAGE, "10")
    after = _rule("after", FIXED_AMOUNT, "50000", scope=AFTER_TAX)

    price = price_booking(
        [LineInput(line_id="l1", subtotal=Decimal("1000000"), discounts=[line_discount])],
        [
            ProductInput(
                line_id="p1",
                quantity=2,
                unit_price=Decimal("100000"),
                discounts=[product_discount],
            )
        ],
        [before, after],
        tax_rate=Decimal("8"),
        tax_required=True,
    )
    assert price.subtotal == Decimal("1200000.00")
    assert price.item_discount == Decimal("200000.00")
    assert price.lines["l1"].net_subtotal == Decimal("900000.00")
    assert price.products["p1"].net_subtotal == Decimal("100000.00")
    # 1,000,000 net of item discounts, 10% off, then 8% VAT, then 50,000 off.
    assert price.before_tax_discount == Decimal("100000.00")
    assert price.tax_amount == Decimal("72000.00")
    assert price.after_tax_discount == Decimal("50000.00")
    assert price.total_amount == Decimal("922000.00")
    assert [entry.discount_id for entry in price.booking_applied] == ["before", "after"]


def test_price_booking_without_tax_invoice() -> None:
    price = price_booking(
        [LineInput(line_id="l1", subtotal=Decimal("500000"))], [], [], Decimal("10"), False
    )
    assert price.tax_amount == Decimal("0.00")
    assert price.total_amount == Decimal("500000.00")


def test_deposit_due_modes() -> None:
    total = Decimal("1000000")
    assert deposit_due(total, "fixed_amount", Decimal("300000")) == Decimal("300000.00")
    assert deposit_due(total, "fixed_amount", Decimal("3000000")) == Decimal("1000000.00")
    assert deposit_due(total, "percentage", Decimal("0")) == Decimal("0.00")
    assert deposit_due(total, "percentage", None) == Decimal("0.00")


def test_voucher_eligibility_reasons() -> None:
    base = dict(code="SUMMER")
    context = VoucherContext(order_amount=Decimal("1000000"), on_date=date(2025, 6, 1))

    checks = {
        "inactive": _rule("v", PERCENTAGE, "10", is_active=False, **base),
        "used up": _rule("v", PERCENTAGE, "10", max_uses=5, current_uses=5, **base),
        "minimum": _rule("v", PERCENTAGE, "10", min_order_amount=Decimal("2000000"), **base),
        "expired": _rule("v", PERCENTAGE, "10", valid_until=date(2025, 5, 31), **base),
        "early": _rule("v", PERCENTAGE, "10", valid_from=date(2025, 7, 1), **base),
        "weekday": _rule("v", PERCENTAGE, "10", weekly_days=(1, 2), **base),
    }
    reasons = {name: check_voucher_eligibility(rule, context) for name, rule in checks.items()}
    assert all(not outcome.valid for outcome in reasons.values())
    assert reasons["used up"].reason == "Voucher usage limit reached"
    assert reasons["expired"].reason == "Voucher has expired"
    assert reasons["weekday"].reason == "Voucher not valid on this weekday"


def test_voucher_per_customer_limit_and_target() -> None:
    rule = _rule(
        "v",
        FIXED_AMOUNT,
        "100000",
        max_uses_per_customer=1,
        applies_to_all=False,
        item_ids=frozenset({"tent"}),
    )
    used = check_voucher_eligibility(
        rule, VoucherContext(order_amount=Decimal("500000"), customer_uses=1)
    )
    assert used.reason == "Customer usage limit reached"

    wrong_item = check_voucher_eligibility(
        rule,
        VoucherContext(order_amount=Decimal("500000"), target=DiscountTarget(item_id="cabin")),
    )
    assert wrong_item.valid is False

    ok = check_voucher_eligibility(
        rule,
        VoucherContext(order_amount=Decimal("500000"), target=DiscountTarget(item_id="tent")),
    )
    assert ok.valid is True
    assert ok.discount_amount == Decimal("100000.00")


def test_voucher_application_type_mismatch() -> None:
    rule = _rule("v", PERCENTAGE, "10", application_type="menu_only")
    outcome = check_voucher_eligibility(
        rule,
        VoucherContext(order_amount=Decimal("500000"), application_type="accommodation"),
    )
    assert outcome.valid is False
    assert outcome.reason == "Voucher does not apply to this line type"
