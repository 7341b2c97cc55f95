"""Payment reconciliation and booking status transitions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol

from glamping_admin.models import Booking, BookingStatus, PaymentStatus
from glamping_admin.models.mixins import utcnow
from glamping_admin.services.money import ZERO, money_str, to_money

SETTLED_PAYMENT_STATUSES = frozenset({"successful", "completed", "success"})

_ALLOWED_STATUS_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {
        BookingStatus.PENDING,
        BookingStatus.CHECKED_IN,
        BookingStatus.CANCELLED,
    },
    BookingStatus.CHECKED_IN: {BookingStatus.CHECKED_OUT},
    BookingStatus.CANCELLED: {BookingStatus.PENDING},
    BookingStatus.CHECKED_OUT: set(),
}

# Refund and expiry states are only ever set by staff.
_MANUAL_PAYMENT_STATUSES = frozenset(
    {
        PaymentStatus.REFUND_PENDING,
        PaymentStatus.REFUNDED,
        PaymentStatus.NO_REFUND,
        PaymentStatus.EXPIRED,
    }
)


class PaymentLike(Protocol):
    amount: Decimal
    status: str


@dataclass(slots=True, frozen=True)
class Reconciliation:
    amount_paid: Decimal
    remaining: Decimal
    is_fully_paid: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "amount_paid": money_str(self.amount_paid),
            "remaining": money_str(self.remaining),
            "is_fully_paid": self.is_fully_paid,
        }


def is_settled(status: str | None) -> bool:
    return (status or "").lower() in SETTLED_PAYMENT_STATUSES


def amount_paid(payments: Iterable[PaymentLike]) -> Decimal:
    return to_money(
        sum(
            (Decimal(payment.amount) for payment in payments if is_settled(payment.status)),
            ZERO,
        )
    )


def reconcile(total_amount: Decimal | int | str, payments: Iterable[PaymentLike]) -> Reconciliation:
    """Compare settled payments against the booking total."""
    paid = amount_paid(payments)
    remaining = max(to_money(total_amount) - paid, ZERO)
    return Reconciliation(
        amount_paid=paid,
        remaining=remaining,
        is_fully_paid=remaining == ZERO and paid > ZERO,
    )


def derive_payment_status(
    current: PaymentStatus, reconciliation: Reconciliation
) -> PaymentStatus:
    """Advance the payment status from the reconciliation, never backwards into refunds."""
    if current in _MANUAL_PAYMENT_STATUSES:
        return current
    if reconciliation.is_fully_paid:
        return PaymentStatus.FULLY_PAID
    if reconciliation.amount_paid > ZERO:
        return PaymentStatus.DEPOSIT_PAID
    return current


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target == current or target in _ALLOWED_STATUS_TRANSITIONS.get(current, set())


@dataclass(slots=True, frozen=True)
class StatusChange:
    previous: BookingStatus
    current: BookingStatus
    changed: bool


def apply_status_transition(
    booking: Booking, target: BookingStatus, *, now: datetime | None = None
) -> StatusChange:
    """Move a booking to ``target``, stamping first confirmation/cancellation.

    Setting the current status again changes nothing.
    """
    previous = booking.status
    if target == previous:
        return StatusChange(previous=previous, current=previous, changed=False)
    if not can_transition(previous, target):
        raise ValueError(
            f"Cannot transition booking from {previous.value} to {target.value}"
        )

    timestamp = now or utcnow()
    booking.status = target
    if target == BookingStatus.CONFIRMED and booking.confirmed_at is None:
        booking.confirmed_at = timestamp
    if target == BookingStatus.CANCELLED and booking.cancelled_at is None:
        booking.cancelled_at = timestamp
    return StatusChange(previous=previous, current=target, changed=True)
