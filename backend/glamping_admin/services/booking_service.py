"""Booking management: lines, vouchers, recalculation, tax, payments and status."""
from __future__ import annotations

import logging
import secrets
import uuid
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from glamping_admin.core.config import get_settings
from glamping_admin.models import (
    Booking,
    BookingDiscount,
    BookingItem,
    BookingPayment,
    BookingProduct,
    BookingStatus,
    BookingStatusHistory,
    Customer,
    Discount,
    MenuItem,
    PaymentStatus,
    Zone,
)
from glamping_admin.services import rate_service
from glamping_admin.services.balance_service import (
    Reconciliation,
    apply_status_transition,
    derive_payment_status,
    is_settled,
    reconcile,
)
from glamping_admin.services.discount_config_service import automatic_discounts
from glamping_admin.services.discount_service import (
    PER_ITEM,
    BookingPrice,
    DiscountRule,
    DiscountTarget,
    LineInput,
    ProductInput,
    compute_discount,
    deposit_due,
    price_booking,
    rule_from_booking_discount,
    rule_from_discount,
    snapshot_rule,
)
from glamping_admin.services.money import ZERO
from glamping_admin.services.tax_service import effective_tax_rate, vat_delta
from glamping_admin.services.voucher_service import validate_voucher

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LineRequest:
    """An accommodation line requested on a new or existing booking."""

    item_id: uuid.UUID
    guests: Mapping[str, int]
    check_in: date | None = None
    check_out: date | None = None


@dataclass(slots=True)
class ProductRequest:
    menu_item_id: uuid.UUID
    quantity: int = 1
    parameter_id: uuid.UUID | None = None
    metadata: dict[str, Any] | None = None


@dataclass(slots=True)
class BookingUpdate:
    booking: Booking
    status_changed: bool
    previous_status: BookingStatus
    payment_status_changed: bool


def _booking_query():
    return select(Booking).options(
        selectinload(Booking.items).selectinload(BookingItem.item),
        selectinload(Booking.products).selectinload(BookingProduct.menu_item),
        selectinload(Booking.discounts),
        selectinload(Booking.payments),
        selectinload(Booking.status_history),
        selectinload(Booking.zone),
        selectinload(Booking.customer),
    )


def _generate_code() -> str:
    prefix = get_settings().booking_code_prefix
    stamp = datetime.now(UTC).strftime("%y%m%d")
    return f"{prefix}{stamp}{secrets.token_hex(3).upper()}"


async def list_bookings(
    session: AsyncSession,
    *,
    zone_scope: Collection[uuid.UUID] | None,
    status: BookingStatus | None = None,
    customer_id: uuid.UUID | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[Booking]:
    if zone_scope is not None and not zone_scope:
        return []
    stmt = _booking_query().order_by(Booking.created_at.desc())
    if zone_scope is not None:
        stmt = stmt.where(Booking.zone_id.in_(list(zone_scope)))
    if status is not None:
        stmt = stmt.where(Booking.status == status)
    if customer_id is not None:
        stmt = stmt.where(Booking.customer_id == customer_id)
    result = await session.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().unique().all())


async def get_booking(session: AsyncSession, *, booking_id: uuid.UUID) -> Booking | None:
    stmt = (
        _booking_query()
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().one_or_none()


async def _reload(session: AsyncSession, booking: Booking) -> Booking:
    reloaded = await get_booking(session, booking_id=booking.id)
    assert reloaded is not None
    return reloaded


def _product_rule(product: BookingProduct) -> DiscountRule | None:
    if not product.discount_amount or product.discount_amount <= 0:
        return None
    return snapshot_rule(
        rule_id=str(product.discount_id or product.id),
        discount_type="fixed_amount",
        value=product.discount_amount,
        scope=PER_ITEM,
        code=product.voucher_code,
    )


def recalculate(booking: Booking) -> BookingPrice:
    """Recompute every derived amount on a loaded booking in place."""

    rules: dict[str, DiscountRule] = {}
    line_rules: dict[uuid.UUID, list[DiscountRule]] = {}
    booking_rules: list[DiscountRule] = []
    for index, entry in enumerate(booking.discounts):
        rule = rule_from_booking_discount(entry)
        if rule is None:
            continue
        rules[str(index)] = rule
        if entry.booking_item_id is None:
            booking_rules.append(rule)
        else:
            line_rules.setdefault(entry.booking_item_id, []).append(rule)

    lines = [
        LineInput(
            line_id=str(index),
            subtotal=line.subtotal_amount,
            discounts=line_rules.get(line.id, []),
        )
        for index, line in enumerate(booking.items)
    ]
    products = [
        ProductInput(
            line_id=str(index),
            quantity=product.quantity,
            unit_price=product.unit_price,
            discounts=[rule] if (rule := _product_rule(product)) else [],
        )
        for index, product in enumerate(booking.products)
    ]
    price = price_booking(
        lines,
        products,
        booking_rules,
        booking.tax_rate,
        booking.tax_invoice_required,
    )

    for index, line in enumerate(booking.items):
        line.discount_amount = price.lines[str(index)].discount_amount
    for index, product in enumerate(booking.products):
        product.discount_amount = price.products[str(index)].discount_amount
    applied = {entry.discount_id: entry.amount for entry in price.booking_applied}
    for result in price.lines.values():
        applied.update((entry.discount_id, entry.amount) for entry in result.applied)
    for index, entry in enumerate(booking.discounts):
        rule = rules.get(str(index))
        entry.amount = applied.get(rule.id, ZERO) if rule is not None else ZERO

    booking.subtotal_amount = price.subtotal
    booking.discount_amount = price.discount_amount
    booking.tax_amount = price.tax_amount
    booking.total_amount = price.total_amount
    booking.deposit_due = deposit_due(
        price.total_amount, booking.zone.deposit_type, booking.zone.deposit_value
    )
    booking.balance_due = reconcile(price.total_amount, booking.payments).remaining
    return price


def _history(
    booking: Booking,
    *,
    previous_status: BookingStatus | None,
    previous_payment_status: PaymentStatus | None,
    reason: str | None,
    actor_id: uuid.UUID | None,
) -> BookingStatusHistory:
    return BookingStatusHistory(
        booking_id=booking.id,
        previous_status=previous_status.value if previous_status else None,
        new_status=booking.status.value,
        previous_payment_status=(
            previous_payment_status.value if previous_payment_status else None
        ),
        new_payment_status=booking.payment_status.value,
        reason=reason,
        changed_by_user_id=actor_id,
    )


async def _build_line(
    session: AsyncSession,
    *,
    zone: Zone,
    request: LineRequest,
    check_in: date,
    check_out: date,
    display_order: int,
) -> BookingItem:
    loaded = await rate_service.load_item_pricing(session, item_id=request.item_id)
    if loaded is None:
        raise ValueError(f"Item {request.item_id} not found")
    item, pricing = loaded
    if item.zone_id != zone.id:
        raise ValueError("Item does not belong to the booking zone")
    if not item.is_active:
        raise ValueError("Item is not available for booking")

    line_in = request.check_in or check_in
    line_out = request.check_out or check_out
    date_range = rate_service.DateRange(line_in, line_out)
    if date_range.nights < zone.min_stay_nights and item.pricing_rate == rate_service.PER_NIGHT:
        raise ValueError(f"Minimum stay is {zone.min_stay_nights} night(s)")
    guests = {str(key): int(count) for key, count in request.guests.items()}
    breakdown = rate_service.resolve_nightly_rate(pricing, date_range, guests)
    return BookingItem(
        id=uuid.uuid4(),
        item_id=item.id,
        item=item,
        check_in_date=line_in,
        check_out_date=line_out,
        nights=date_range.nights,
        guests=guests,
        nightly_breakdown=[night.to_dict() for night in breakdown],
        subtotal_amount=rate_service.line_subtotal(breakdown),
        display_order=display_order,
    )


async def _build_product(
    session: AsyncSession, *, zone: Zone, request: ProductRequest
) -> BookingProduct:
    if request.quantity < 1:
        raise ValueError("Quantity must be at least 1")
    menu_item = await session.get(MenuItem, request.menu_item_id)
    if menu_item is None or not menu_item.is_active:
        raise ValueError(f"Menu item {request.menu_item_id} not found")
    if menu_item.zone_id is not None and menu_item.zone_id != zone.id:
        raise ValueError("Menu item does not belong to the booking zone")
    return BookingProduct(
        id=uuid.uuid4(),
        menu_item_id=menu_item.id,
        menu_item=menu_item,
        parameter_id=request.parameter_id,
        quantity=request.quantity,
        unit_price=menu_item.price,
        metadata_json=request.metadata,
    )


def _line_target(booking: Booking, line: BookingItem) -> DiscountTarget:
    return DiscountTarget(
        zone_id=str(booking.zone_id),
        category_id=str(line.item.category_id) if line.item.category_id else None,
        item_id=str(line.item_id),
    )


def _booking_discount(
    discount: Discount, line: BookingItem | None = None
) -> BookingDiscount:
    """Snapshot ``discount`` onto the booking, or onto one line for per-item scope."""
    return BookingDiscount(
        id=uuid.uuid4(),
        booking_item_id=line.id if line is not None else None,
        booking_item=line,
        discount_id=discount.id,
        code=discount.code,
        scope=discount.scope.value,
        discount_type=discount.discount_type,
        value=discount.value,
        max_discount_amount=discount.max_discount_amount,
        priority=discount.priority,
    )


async def _apply_automatic_discounts(session: AsyncSession, *, booking: Booking) -> None:
    zone_target = DiscountTarget(zone_id=str(booking.zone_id))
    for discount, rule in await automatic_discounts(
        session, on_date=booking.check_in_date
    ):
        if rule.scope == PER_ITEM:
            for line in booking.items:
                if rule.matches(_line_target(booking, line)):
                    booking.discounts.append(_booking_discount(discount, line))
        elif rule.matches(zone_target):
            booking.discounts.append(_booking_discount(discount))


async def _apply_voucher(
    session: AsyncSession, *, booking: Booking, code: str
) -> Discount:
    used = {entry.discount_id for entry in booking.discounts}
    used.update(product.discount_id for product in booking.products if product.voucher_code)

    validation = await validate_voucher(
        session,
        code=code,
        order_amount=booking.subtotal_amount - booking.discount_amount,
        check_in=booking.check_in_date,
        customer_id=booking.customer_id,
    )
    voucher, check = validation.discount, validation.check
    if voucher.id in used:
        raise ValueError("Voucher is already applied to this booking")
    if not check.valid:
        raise ValueError(check.reason or "Voucher is not applicable")

    rule = rule_from_discount(voucher)
    application = voucher.application_type.value
    if rule.scope == PER_ITEM and application == "menu_only":
        targets = list(booking.products)
        if not targets:
            raise ValueError("Voucher only applies to menu products")
        for product in targets:
            gross = product.unit_price * product.quantity
            product.discount_id = voucher.id
            product.voucher_code = voucher.code
            product.discount_amount = compute_discount(rule, gross)
    elif rule.scope == PER_ITEM:
        targets = [
            line
            for line in booking.items
            if rule.matches(_line_target(booking, line))
        ]
        if not targets:
            raise ValueError("Voucher does not apply to any booked item")
        booking.discounts.extend(_booking_discount(voucher, line) for line in targets)
    elif rule.matches(DiscountTarget(zone_id=str(booking.zone_id))):
        booking.discounts.append(_booking_discount(voucher))
    else:
        raise ValueError("Voucher does not apply to this zone")
    voucher.current_uses = (voucher.current_uses or 0) + 1
    return voucher


async def create_booking(
    session: AsyncSession,
    *,
    zone_id: uuid.UUID,
    check_in: date,
    check_out: date,
    lines: Sequence[LineRequest],
    products: Sequence[ProductRequest] = (),
    customer_id: uuid.UUID | None = None,
    created_by_user_id: uuid.UUID | None = None,
    tax_invoice_required: bool = False,
    voucher_code: str | None = None,
    notes: str | None = None,
) -> Booking:
    if check_out < check_in:
        raise ValueError("check_out must not be before check_in")
    if not lines:
        raise ValueError("A booking needs at least one item")
    zone = await session.get(Zone, zone_id)
    if zone is None or not zone.is_active:
        raise ValueError("Zone not found")
    if customer_id is not None and await session.get(Customer, customer_id) is None:
        raise ValueError("Customer not found")

    booking = Booking(
        id=uuid.uuid4(),
        booking_code=_generate_code(),
        zone_id=zone.id,
        zone=zone,
        customer_id=customer_id,
        created_by_user_id=created_by_user_id,
        status=BookingStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        check_in_date=check_in,
        check_out_date=check_out,
        guests={},
        currency=zone.currency,
        tax_invoice_required=tax_invoice_required,
        tax_rate=effective_tax_rate(zone.tax_enabled, zone.tax_rate),
        notes=notes,
        items=[],
        products=[],
        discounts=[],
        payments=[],
    )
    party: dict[str, int] = {}
    for order, request in enumerate(lines):
        line = await _build_line(
            session,
            zone=zone,
            request=request,
            check_in=check_in,
            check_out=check_out,
            display_order=order,
        )
        booking.items.append(line)
        for key, count in line.guests.items():
            party[key] = party.get(key, 0) + count
    booking.guests = party
    for request in products:
        booking.products.append(await _build_product(session, zone=zone, request=request))

    await _apply_automatic_discounts(session, booking=booking)
    recalculate(booking)
    if voucher_code:
        await _apply_voucher(session, booking=booking, code=voucher_code)
        recalculate(booking)

    session.add(booking)
    session.add(
        _history(
            booking,
            previous_status=None,
            previous_payment_status=None,
            reason="Booking created",
            actor_id=created_by_user_id,
        )
    )
    await session.commit()
    logger.info("Created booking %s in zone %s", booking.booking_code, zone.id)
    return await _reload(session, booking)


async def update_booking(
    session: AsyncSession,
    *,
    booking: Booking,
    status: BookingStatus | None = None,
    payment_status: PaymentStatus | None = None,
    notes: str | None = None,
    reason: str | None = None,
    actor_id: uuid.UUID | None = None,
) -> BookingUpdate:
    """Change status, payment status or notes in one transaction.

    Re-setting the current status is a no-op without a history entry.
    """

    previous_status = booking.status
    previous_payment_status = booking.payment_status
    status_changed = False
    if status is not None:
        status_changed = apply_status_transition(booking, status).changed
    payment_changed = payment_status is not None and payment_status != previous_payment_status
    if payment_changed:
        booking.payment_status = payment_status
    if notes is not None:
        booking.notes = notes

    if status_changed or payment_changed:
        session.add(
            _history(
                booking,
                previous_status=previous_status,
                previous_payment_status=previous_payment_status,
                reason=reason,
                actor_id=actor_id,
            )
        )
    await session.commit()
    return BookingUpdate(
        booking=await _reload(session, booking),
        status_changed=status_changed,
        previous_status=previous_status,
        payment_status_changed=payment_changed,
    )


async def toggle_tax_invoice(
    session: AsyncSession,
    *,
    booking: Booking,
    required: bool | None = None,
    actor_id: uuid.UUID | None = None,
) -> Booking:
    """Switch VAT on or off and recompute totals without touching payments."""

    target = (not booking.tax_invoice_required) if required is None else required
    if target == booking.tax_invoice_required:
        return booking

    old_tax = booking.tax_amount
    booking.tax_invoice_required = target
    recalculate(booking)
    if not target:
        booking.vat_payment_due = ZERO
    elif booking.payment_status == PaymentStatus.FULLY_PAID:
        booking.vat_payment_due = vat_delta(old_tax, booking.tax_amount)

    session.add(
        _history(
            booking,
            previous_status=booking.status,
            previous_payment_status=booking.payment_status,
            reason="VAT invoice enabled" if target else "VAT invoice disabled",
            actor_id=actor_id,
        )
    )
    await session.commit()
    return await _reload(session, booking)


def balance(booking: Booking) -> Reconciliation:
    return reconcile(booking.total_amount, booking.payments)


async def add_payment(
    session: AsyncSession,
    *,
    booking: Booking,
    amount: Decimal,
    method: str,
    status: str = "completed",
    transaction_reference: str | None = None,
    is_vat_payment: bool = False,
    notes: str | None = None,
    actor_id: uuid.UUID | None = None,
) -> tuple[Booking, BookingPayment]:
    if amount <= 0:
        raise ValueError("Payment amount must be positive")

    payment = BookingPayment(
        id=uuid.uuid4(),
        booking_id=booking.id,
        method=method,
        amount=amount,
        status=status,
        transaction_reference=transaction_reference,
        is_vat_payment=is_vat_payment,
        notes=notes,
        paid_at=datetime.now(UTC) if is_settled(status) else None,
        created_by_user_id=actor_id,
    )
    booking.payments.append(payment)

    if is_vat_payment and is_settled(status):
        booking.vat_payment_due = max(booking.vat_payment_due - amount, ZERO)

    reconciliation = reconcile(booking.total_amount, booking.payments)
    booking.balance_due = reconciliation.remaining
    previous_payment_status = booking.payment_status
    booking.payment_status = derive_payment_status(previous_payment_status, reconciliation)
    if booking.payment_status != previous_payment_status:
        session.add(
            _history(
                booking,
                previous_status=booking.status,
                previous_payment_status=previous_payment_status,
                reason=f"Payment of {amount} recorded",
                actor_id=actor_id,
            )
        )
    await session.commit()
    return await _reload(session, booking), payment


async def add_item(
    session: AsyncSession, *, booking: Booking, request: LineRequest
) -> Booking:
    line = await _build_line(
        session,
        zone=booking.zone,
        request=request,
        check_in=booking.check_in_date,
        check_out=booking.check_out_date,
        display_order=len(booking.items),
    )
    booking.items.append(line)
    for key, count in line.guests.items():
        booking.guests = {**booking.guests, key: booking.guests.get(key, 0) + count}
    recalculate(booking)
    await session.commit()
    return await _reload(session, booking)


async def remove_item(
    session: AsyncSession, *, booking: Booking, line_id: uuid.UUID
) -> Booking | None:
    """Drop an accommodation line; ``None`` when the line is not on the booking."""

    line = next((entry for entry in booking.items if entry.id == line_id), None)
    if line is None:
        return None
    if len(booking.items) == 1:
        raise ValueError("A booking needs at least one item")
    booking.items.remove(line)
    for entry in [entry for entry in booking.discounts if entry.booking_item_id == line.id]:
        booking.discounts.remove(entry)
    guests = dict(booking.guests)
    for key, count in line.guests.items():
        guests[key] = max(guests.get(key, 0) - count, 0)
    booking.guests = guests
    recalculate(booking)
    await session.commit()
    return await _reload(session, booking)


async def add_product(
    session: AsyncSession, *, booking: Booking, request: ProductRequest
) -> Booking:
    booking.products.append(
        await _build_product(session, zone=booking.zone, request=request)
    )
    recalculate(booking)
    await session.commit()
    return await _reload(session, booking)


async def remove_product(
    session: AsyncSession, *, booking: Booking, product_id: uuid.UUID
) -> Booking | None:
    product = next((entry for entry in booking.products if entry.id == product_id), None)
    if product is None:
        return None
    booking.products.remove(product)
    recalculate(booking)
    await session.commit()
    return await _reload(session, booking)


async def apply_voucher(session: AsyncSession, *, booking: Booking, code: str) -> Booking:
    await _apply_voucher(session, booking=booking, code=code)
    recalculate(booking)
    await session.commit()
    return await _reload(session, booking)


async def list_history(
    session: AsyncSession, *, booking_id: uuid.UUID
) -> list[BookingStatusHistory]:
    result = await session.execute(
        select(BookingStatusHistory)
        .where(BookingStatusHistory.booking_id == booking_id)
        .order_by(BookingStatusHistory.created_at)
    )
    return list(result.scalars().all())

