"""Money rounding shared by the pricing pipeline and reports."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

MONEY_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Quantize to two places, half up; ``None`` is zero."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def money_str(value: Decimal) -> str:
    return f"{to_money(value):.2f}"
