"""Stay quotes for a single item, without persisting a booking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.models import Item, Zone
from glamping_admin.services import rate_service
from glamping_admin.services.discount_config_service import automatic_discounts
from glamping_admin.services.discount_service import (
    PER_ITEM,
    BookingPrice,
    DiscountTarget,
    LineInput,
    deposit_due,
    price_booking,
    rule_from_discount,
)
from glamping_admin.services.money import money_str
from glamping_admin.services.tax_service import effective_tax_rate
from glamping_admin.services.voucher_service import (
    VoucherNotFoundError,
    validate_voucher,
)


@dataclass(slots=True)
class VoucherOutcome:
    code: str
    valid: bool
    reason: str | None = None


@dataclass(slots=True)
class PricingQuote:
    """Nightly breakdown and totals for one item stay."""

    item_id: UUID
    zone_id: UUID
    check_in: date
    check_out: date
    nights: int
    nightly: list[rate_service.NightlyRate]
    price: BookingPrice
    deposit_due: Decimal
    tax_rate: Decimal
    currency: str
    voucher: VoucherOutcome | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the quote to plain types for responses."""
        totals = self.price.to_dict()
        return {
            "item_id": str(self.item_id),
            "zone_id": str(self.zone_id),
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "nightly": [night.to_dict() for night in self.nightly],
            "subtotal": totals["subtotal"],
            "discount_amount": totals["discount_amount"],
            "tax_amount": totals["tax_amount"],
            "total_amount": totals["total_amount"],
            "applied_discounts": totals["booking_discounts"]
            + [entry for line in totals["lines"].values() for entry in line["applied"]],
            "deposit_due": money_str(self.deposit_due),
            "tax_rate": money_str(self.tax_rate),
            "currency": self.currency,
            "voucher": (
                {
                    "code": self.voucher.code,
                    "valid": self.voucher.valid,
                    "reason": self.voucher.reason,
                }
                if self.voucher
                else None
            ),
            "warnings": list(self.warnings),
        }


async def item_zone_id(session: AsyncSession, *, item_id: UUID) -> UUID | None:
    """Zone of an item, read before anything is priced."""
    result = await session.execute(select(Item.zone_id).where(Item.id == item_id))
    return result.scalar_one_or_none()


async def quote_stay(
    session: AsyncSession,
    *,
    item_id: UUID,
    check_in: date,
    check_out: date,
    guests: dict[str, int],
    voucher_code: str | None = None,
    tax_invoice_required: bool = False,
    customer_id: UUID | None = None,
) -> PricingQuote | None:
    """Price a stay through rates, discounts and tax; ``None`` for unknown items.

    An inapplicable voucher is reported on the quote rather than raised.
    """

    loaded = await rate_service.load_item_pricing(session, item_id=item_id)
    if loaded is None:
        return None
    item, pricing = loaded
    zone = await session.get(Zone, item.zone_id)
    assert zone is not None

    date_range = rate_service.DateRange(check_in, check_out)
    nightly = rate_service.resolve_nightly_rate(pricing, date_range, guests)
    subtotal = rate_service.line_subtotal(nightly)
    target = DiscountTarget(
        zone_id=str(zone.id),
        category_id=str(item.category_id) if item.category_id else None,
        item_id=str(item.id),
    )

    line_rules = []
    booking_rules = []
    for _, rule in await automatic_discounts(session, on_date=check_in):
        if rule.scope == PER_ITEM:
            if rule.matches(target):
                line_rules.append(rule)
        elif rule.matches(DiscountTarget(zone_id=target.zone_id)):
            booking_rules.append(rule)

    outcome = None
    if voucher_code:
        try:
            validation = await validate_voucher(
                session,
                code=voucher_code,
                order_amount=subtotal,
                zone_id=zone.id,
                category_id=item.category_id,
                item_id=item.id,
                check_in=check_in,
                customer_id=customer_id,
                application_type="accommodation",
            )
        except VoucherNotFoundError as exc:
            outcome = VoucherOutcome(code=voucher_code, valid=False, reason=str(exc))
        else:
            check = validation.check
            outcome = VoucherOutcome(
                code=validation.discount.code or voucher_code,
                valid=check.valid,
                reason=check.reason,
            )
            if check.valid:
                rule = rule_from_discount(validation.discount)
                (line_rules if rule.scope == PER_ITEM else booking_rules).append(rule)

    tax_rate = effective_tax_rate(zone.tax_enabled, zone.tax_rate)
    price = price_booking(
        [LineInput(line_id=str(item.id), subtotal=subtotal, discounts=line_rules)],
        [],
        booking_rules,
        tax_rate,
        tax_invoice_required,
    )
    warnings = []
    if pricing.remaining_inventory is not None and pricing.remaining_inventory <= 0:
        warnings.append("Item has no remaining inventory")
    return PricingQuote(
        item_id=item.id,
        zone_id=zone.id,
        check_in=check_in,
        check_out=check_out,
        nights=date_range.nights,
        nightly=nightly,
        price=price,
        deposit_due=deposit_due(price.total_amount, zone.deposit_type, zone.deposit_value),
        tax_rate=tax_rate,
        currency=zone.currency,
        voucher=outcome,
        warnings=warnings,
    )
