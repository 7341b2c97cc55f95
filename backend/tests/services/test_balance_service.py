"""Tests for payment reconciliation and status transitions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from glamping_admin.models import Booking, BookingStatus, PaymentStatus
from glamping_admin.services.balance_service import (
    apply_status_transition,
    can_transition,
    derive_payment_status,
    reconcile,
)


@dataclass
class _Payment:
    amount: Decimal
    status: str


def test_reconcile_counts_only_settled_payments() -> None:
    payments = [
        _Payment(Decimal("1000000"), "successful"),
        _Payment(Decimal("500000"), "pending"),
        _Payment(Decimal("200000"), "failed"),
    ]
    result = reconcile(Decimal("2035000"), payments)
    assert result.amount_paid == Decimal("1000000.00")
    assert result.remaining == Decimal("1035000.00")
    assert result.is_fully_paid is False


def test_overpayment_leaves_nothing_remaining() -> None:
    result = reconcile(Decimal("100"), [_Payment(Decimal("150"), "completed")])
    assert result.remaining == Decimal("0.00")
    assert result.is_fully_paid is True


def test_zero_total_without_payments_is_not_fully_paid() -> None:
    assert reconcile(Decimal("0"), []).is_fully_paid is False


def test_derive_payment_status() -> None:
    partial = reconcile(Decimal("1000"), [_Payment(Decimal("400"), "successful")])
    full = reconcile(Decimal("1000"), [_Payment(Decimal("1000"), "successful")])
    nothing = reconcile(Decimal("1000"), [])

    assert derive_payment_status(PaymentStatus.PENDING, partial) == PaymentStatus.DEPOSIT_PAID
    assert derive_payment_status(PaymentStatus.DEPOSIT_PAID, full) == PaymentStatus.FULLY_PAID
    assert derive_payment_status(PaymentStatus.PENDING, nothing) == PaymentStatus.PENDING
    assert derive_payment_status(PaymentStatus.REFUNDED, full) == PaymentStatus.REFUNDED


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (BookingStatus.PENDING, BookingStatus.CONFIRMED, True),
        (BookingStatus.PENDING, BookingStatus.CHECKED_IN, False),
        (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN, True),
        (BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT, True),
        (BookingStatus.CHECKED_OUT, BookingStatus.PENDING, False),
        (BookingStatus.CANCELLED, BookingStatus.PENDING, True),
        (BookingStatus.CHECKED_OUT, BookingStatus.CHECKED_OUT, True),
    ],
)
def test_can_transition(current: BookingStatus, target: BookingStatus, allowed: bool) -> None:
    assert can_transition(current, target) is allowed


def test_status_transition_stamps_once_and_is_idempotent() -> None:
    booking = Booking(status=BookingStatus.PENDING)
    first = datetime(2025, 6, 1, tzinfo=timezone.utc)
    later = datetime(2025, 6, 2, tzinfo=timezone.utc)

    change = apply_status_transition(booking, BookingStatus.CONFIRMED, now=first)
    assert change.changed is True
    assert booking.confirmed_at == first

    again = apply_status_transition(booking, BookingStatus.CONFIRMED, now=later)
    assert again.changed is False
    assert booking.confirmed_at == first

    apply_status_transition(booking, BookingStatus.PENDING, now=later)
    apply_status_transition(booking, BookingStatus.CONFIRMED, now=later)
    assert booking.confirmed_at == first


def test_invalid_transition_raises() -> None:
    booking = Booking(status=BookingStatus.CHECKED_OUT)
    with pytest.raises(ValueError):
        apply_status_transition(booking, BookingStatus.CONFIRMED)
