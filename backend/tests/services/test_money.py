from __future__ import annotations

from decimal import Decimal

from glamping_admin.services.money import ZERO, money_str, to_money


def test_to_money_rounds_half_up_to_cents() -> None:
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(Decimal("-0.004")) == Decimal("0.00")
    assert to_money(None) == ZERO


def test_money_str_keeps_two_places() -> None:
    assert money_str(Decimal("1850000")) == "1850000.00"
    assert money_str(Decimal("0.125")) == "0.13"
