"""Booking management endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.api import deps
from glamping_admin.models import Booking, BookingStatus
from glamping_admin.models.user import User
from glamping_admin.schemas.booking import (
    BalanceRead,
    BookingCreate,
    BookingLineCreate,
    BookingProductCreate,
    BookingRead,
    BookingSummaryRead,
    BookingUpdate,
    PaymentCreate,
    PaymentRead,
    StatusHistoryRead,
    TaxInvoiceToggle,
    VoucherApply,
)
from glamping_admin.security.permissions import ensure_zone_access
from glamping_admin.services import booking_service, notification_service
from glamping_admin.services.voucher_service import VoucherNotFoundError

router = APIRouter(prefix="/bookings", tags=["bookings"])

ZoneScope = frozenset[uuid.UUID] | None


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


async def _get_booking_or_404(
    session: AsyncSession, booking_id: uuid.UUID, zone_scope: ZoneScope
) -> Booking:
    booking = await booking_service.get_booking(session, booking_id=booking_id)
    if booking is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found"
        )
    ensure_zone_access(zone_scope, booking.zone_id)
    return booking


def _line_request(payload: BookingLineCreate) -> booking_service.LineRequest:
    return booking_service.LineRequest(
        item_id=payload.item_id,
        guests=payload.guests,
        check_in=payload.check_in_date,
        check_out=payload.check_out_date,
    )


def _product_request(payload: BookingProductCreate) -> booking_service.ProductRequest:
    return booking_service.ProductRequest(
        menu_item_id=payload.menu_item_id,
        quantity=payload.quantity,
        parameter_id=payload.parameter_id,
        metadata=payload.metadata,
    )


@router.get("", response_model=list[BookingSummaryRead], summary="List bookings")
async def list_bookings(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
    booking_status: Annotated[BookingStatus | None, Query(alias="status")] = None,
    customer_id: uuid.UUID | None = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[BookingSummaryRead]:
    bookings = await booking_service.list_bookings(
        session,
        zone_scope=zone_scope,
        status=booking_status,
        customer_id=customer_id,
        skip=skip,
        limit=limit,
    )
    return [BookingSummaryRead.model_validate(booking) for booking in bookings]


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking",
)
async def create_booking(
    payload: BookingCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> BookingRead:
    ensure_zone_access(zone_scope, payload.zone_id)
    try:
        booking = await booking_service.create_booking(
            session,
            zone_id=payload.zone_id,
            check_in=payload.check_in_date,
            check_out=payload.check_out_date,
            lines=[_line_request(line) for line in payload.items],
            products=[_product_request(product) for product in payload.products],
            customer_id=payload.customer_id,
            created_by_user_id=current_user.id,
            tax_invoice_required=payload.tax_invoice_required,
            voucher_code=payload.voucher_code,
            notes=payload.notes,
        )
    except VoucherNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise _bad_request(exc) from exc
    return BookingRead.model_validate(booking)


@router.get("/{booking_id}", response_model=BookingRead, summary="Get booking")
async def get_booking(
    booking_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> BookingRead:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    return BookingRead.model_validate(booking)


@router.patch("/{booking_id}", response_model=BookingRead, summary="Update booking")
async def update_booking(
    booking_id: uuid.UUID,
    payload: BookingUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> BookingRead:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    try:
        result = await booking_service.update_booking(
            session,
            booking=booking,
            status=payload.status,
            payment_status=payload.payment_status,
            notes=payload.notes,
            reason=payload.reason,
            actor_id=current_user.id,
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc

    response = BookingRead.model_validate(result.booking)
    if result.status_changed:
        await notification_service.notify_status_change(
            session,
            booking=result.booking,
            previous_status=result.previous_status.value,
        )
    return response


@router.post(
    "/{booking_id}/toggle-tax-invoice",
    response_model=BookingRead,
    summary="Toggle VAT invoice",
)
async def toggle_tax_invoice(
    booking_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
    payload: TaxInvoiceToggle | None = None,
) -> BookingRead:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    booking = await booking_service.toggle_tax_invoice(
        session,
        booking=booking,
        required=payload.tax_invoice_required if payload else None,
        actor_id=current_user.id,
    )
    return BookingRead.model_validate(booking)


@router.get("/{booking_id}/balance", response_model=BalanceRead, summary="Booking balance")
async def get_balance(
    booking_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> BalanceRead:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    reconciliation = booking_service.balance(booking)
    return BalanceRead(
        total_amount=booking.total_amount,
        amount_paid=reconciliation.amount_paid,
        remaining=reconciliation.remaining,
        is_fully_paid=reconciliation.is_fully_paid,
        deposit_due=booking.deposit_due,
        vat_payment_due=booking.vat_payment_due,
        payment_status=booking.payment_status,
    )


@router.get(
    "/{booking_id}/payments", response_model=list[PaymentRead], summary="List payments"
)
async def list_payments(
    booking_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> list[PaymentRead]:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    return [PaymentRead.model_validate(payment) for payment in booking.payments]


@router.post(
    "/{booking_id}/payments",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record payment",
)
async def add_payment(
    booking_id: uuid.UUID,
    payload: PaymentCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> BookingRead:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    try:
        booking, payment = await booking_service.add_payment(
            session,
            booking=booking,
            amount=payload.amount,
            method=payload.method,
            status=payload.status,
            transaction_reference=payload.transaction_reference,
            is_vat_payment=payload.is_vat_payment,
            notes=payload.notes,
            actor_id=current_user.id,
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc

    response = BookingRead.model_validate(booking)
    await notification_service.notify_payment_received(
        session, booking=booking, amount=str(payment.amount)
    )
    return response


@router.post("/{booking_id}/items", response_model=BookingRead, summary="Add item line")
async def add_item(
    booking_id: uuid.UUID,
    payload: BookingLineCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> BookingRead:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    try:
        booking = await booking_service.add_item(
            session, booking=booking, request=_line_request(payload)
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc
    return BookingRead.model_validate(booking)


@router.delete(
    "/{booking_id}/items/{line_id}", response_model=BookingRead, summary="Remove item line"
)
async def remove_item(
    booking_id: uuid.UUID,
    line_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> BookingRead:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    try:
        updated = await booking_service.remove_item(
            session, booking=booking, line_id=line_id
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Booking item not found"
        )
    return BookingRead.model_validate(updated)


@router.post(
    "/{booking_id}/products", response_model=BookingRead, summary="Add menu product"
)
async def add_product(
    booking_id: uuid.UUID,
    payload: BookingProductCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> BookingRead:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    try:
        booking = await booking_service.add_product(
            session, booking=booking, request=_product_request(payload)
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc
    return BookingRead.model_validate(booking)


@router.delete(
    "/{booking_id}/products/{product_id}",
    response_model=BookingRead,
    summary="Remove menu product",
)
async def remove_product(
    booking_id: uuid.UUID,
    product_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> BookingRead:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    updated = await booking_service.remove_product(
        session, booking=booking, product_id=product_id
    )
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Booking product not found"
        )
    return BookingRead.model_validate(updated)


@router.post("/{booking_id}/voucher", response_model=BookingRead, summary="Apply voucher")
async def apply_voucher(
    booking_id: uuid.UUID,
    payload: VoucherApply,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> BookingRead:
    booking = await _get_booking_or_404(session, booking_id, zone_scope)
    try:
        booking = await booking_service.apply_voucher(
            session, booking=booking, code=payload.code
        )
    except VoucherNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise _bad_request(exc) from exc
    return BookingRead.model_validate(booking)


@router.get(
    "/{booking_id}/history",
    response_model=list[StatusHistoryRead],
    summary="Booking status history",
)
async def list_history(
    booking_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> list[StatusHistoryRead]:
    await _get_booking_or_404(session, booking_id, zone_scope)
    entries = await booking_service.list_history(session, booking_id=booking_id)
    return [StatusHistoryRead.model_validate(entry) for entry in entries]

