from __future__ import annotations

from decimal import Decimal

from glamping_admin.services.tax_service import apply_tax, effective_tax_rate, vat_delta


def test_tax_applied_when_invoice_required() -> None:
    result = apply_tax(Decimal("1850000"), Decimal("10"), True)
    assert result.tax_amount == Decimal("185000.00")
    assert result.total_with_tax == Decimal("2035000.00")
    assert result.to_dict() == {"tax_amount": "185000.00", "total_with_tax": "2035000.00"}


def test_no_tax_without_invoice_or_rate() -> None:
    assert apply_tax(Decimal("100"), Decimal("10"), False).tax_amount == Decimal("0.00")
    assert apply_tax(Decimal("100"), None, True).tax_amount == Decimal("0.00")
    assert apply_tax(Decimal("100"), Decimal("0"), True).total_with_tax == Decimal("100.00")


def test_negative_net_is_taxed_as_zero() -> None:
    result = apply_tax(Decimal("-50"), Decimal("10"), True)
    assert result.tax_amount == Decimal("0.00")
    assert result.total_with_tax == Decimal("0.00")


def test_tax_rounds_half_up() -> None:
    assert apply_tax(Decimal("0.05"), Decimal("10"), True).tax_amount == Decimal("0.01")


def test_vat_delta_is_never_negative() -> None:
    assert vat_delta(Decimal("0"), Decimal("185000")) == Decimal("185000.00")
    assert vat_delta(Decimal("185000"), Decimal("0")) == Decimal("0.00")


def test_disabled_zone_tax_has_zero_rate() -> None:
    assert effective_tax_rate(False, Decimal("10")) == Decimal("0")
    assert effective_tax_rate(True, None) == Decimal("0")
    assert effective_tax_rate(True, Decimal("8")) == Decimal("8")
