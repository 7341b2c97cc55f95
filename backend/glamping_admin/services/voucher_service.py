"""Voucher lookup and eligibility checks against stored bookings."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.models import (
    Booking,
    BookingDiscount,
    BookingProduct,
    Discount,
    DiscountCategory,
)
from glamping_admin.services.discount_config_service import normalize_code
from glamping_admin.services.discount_service import (
    DiscountTarget,
    VoucherCheck,
    VoucherContext,
    check_voucher_eligibility,
    rule_from_discount,
)

_CODE_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9_-]{2,63}$")


class VoucherNotFoundError(LookupError):
    """No voucher exists for the given code."""


@dataclass(slots=True)
class VoucherValidation:
    discount: Discount
    check: VoucherCheck


def parse_code(code: str | None) -> str:
    normalized = normalize_code(code)
    if normalized is None or not _CODE_PATTERN.match(normalized):
        raise ValueError("Voucher code is malformed")
    return normalized


async def find_voucher(session: AsyncSession, *, code: str) -> Discount:
    normalized = parse_code(code)
    voucher = await session.scalar(
        select(Discount).where(
            func.upper(Discount.code) == normalized,
            Discount.category == DiscountCategory.VOUCHERS,
        )
    )
    if voucher is None:
        raise VoucherNotFoundError(f"Voucher {normalized} not found")
    return voucher


async def customer_usage(
    session: AsyncSession, *, discount_id: uuid.UUID, customer_id: uuid.UUID | None
) -> int:
    """Count bookings of ``customer_id`` that already redeemed the voucher."""

    if customer_id is None:
        return 0
    redemptions = union_all(
        select(BookingDiscount.booking_id.label("booking_id")).where(
            BookingDiscount.discount_id == discount_id
        ),
        select(BookingProduct.booking_id.label("booking_id")).where(
            BookingProduct.discount_id == discount_id
        ),
    ).subquery()
    stmt = (
        select(func.count(func.distinct(Booking.id)))
        .join(redemptions, redemptions.c.booking_id == Booking.id)
        .where(Booking.customer_id == customer_id)
    )
    return (await session.execute(stmt)).scalar_one()


async def validate_voucher(
    session: AsyncSession,
    *,
    code: str,
    order_amount: Decimal,
    zone_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
    item_id: uuid.UUID | None = None,
    check_in: date | None = None,
    customer_id: uuid.UUID | None = None,
    application_type: str = "all",
) -> VoucherValidation:
    """Look up a voucher and check it against booking facts.

    Unknown or malformed codes raise; failed checks come back as invalid.
    """

    voucher = await find_voucher(session, code=code)
    uses = await customer_usage(session, discount_id=voucher.id, customer_id=customer_id)
    target = None
    if zone_id is not None or category_id is not None or item_id is not None:
        target = DiscountTarget(
            zone_id=str(zone_id) if zone_id else None,
            category_id=str(category_id) if category_id else None,
            item_id=str(item_id) if item_id else None,
        )
    context = VoucherContext(
        order_amount=order_amount,
        on_date=check_in,
        target=target,
        customer_uses=uses,
        application_type=application_type,
    )
    return VoucherValidation(
        discount=voucher, check=check_voucher_eligibility(rule_from_discount(voucher), context)
    )
