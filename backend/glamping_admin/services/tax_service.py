"""VAT calculation for bookings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from glamping_admin.services.money import money_str, to_money


@dataclass(slots=True, frozen=True)
class TaxResult:
    tax_amount: Decimal
    total_with_tax: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "tax_amount": money_str(self.tax_amount),
            "total_with_tax": money_str(self.total_with_tax),
        }


def apply_tax(
    net_subtotal: Decimal | int | str,
    tax_rate: Decimal | int | str | None,
    tax_required: bool,
) -> TaxResult:
    """Add VAT to a net subtotal when the booking asks for a tax invoice.

    Negative nets are treated as zero; a missing rate means no tax.
    """
    net = max(to_money(net_subtotal), Decimal("0.00"))
    rate = Decimal(tax_rate) if tax_rate is not None else Decimal("0")
    if not tax_required or rate <= 0:
        return TaxResult(tax_amount=Decimal("0.00"), total_with_tax=net)
    tax = to_money(net * rate / Decimal(100))
    return TaxResult(tax_amount=tax, total_with_tax=net + tax)


def vat_delta(old_tax: Decimal, new_tax: Decimal) -> Decimal:
    """Extra VAT owed when tax is switched on after the booking was settled."""
    return max(to_money(new_tax) - to_money(old_tax), Decimal("0.00"))


def effective_tax_rate(tax_enabled: bool, tax_rate: Decimal | None) -> Decimal:
    """Rate a zone charges on tax invoices; zero while its tax is switched off."""
    if not tax_enabled or tax_rate is None:
        return Decimal("0")
    return Decimal(tax_rate)
