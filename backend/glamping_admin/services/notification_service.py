"""Best-effort in-app notifications for booking events."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.models import Booking, Notification, UserRole

logger = logging.getLogger(__name__)

STATUS_CHANGE_ROLES = (UserRole.ADMIN, UserRole.OPERATIONS)


async def notify(
    session: AsyncSession,
    *,
    event: str,
    payload: dict[str, Any],
    role: UserRole | None = None,
    customer_id: UUID | None = None,
) -> UUID:
    notification = Notification(
        event=event,
        recipient_role=role.value if role is not None else None,
        customer_id=customer_id,
        payload=payload,
    )
    session.add(notification)
    await session.commit()
    return notification.id


async def dispatch(
    session: AsyncSession,
    *,
    event: str,
    payload: dict[str, Any],
    role: UserRole | None = None,
    customer_id: UUID | None = None,
) -> bool:
    """Send one notification, logging instead of raising on failure.

    Must be called after the triggering change is committed.
    """
    try:
        await notify(
            session, event=event, payload=payload, role=role, customer_id=customer_id
        )
    except Exception:
        logger.exception("Failed to dispatch %s notification", event)
        await session.rollback()
        return False
    return True


def booking_payload(booking: Booking, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "booking_id": str(booking.id),
        "booking_code": booking.booking_code,
        "status": booking.status.value,
        "payment_status": booking.payment_status.value,
    }
    payload.update(extra)
    return payload


async def notify_status_change(
    session: AsyncSession,
    *,
    booking: Booking,
    previous_status: str,
) -> int:
    """Tell the guest and the admin/operations staff about a status change."""

    payload = booking_payload(booking, previous_status=previous_status)
    delivered = 0
    if booking.customer_id is not None:
        delivered += await dispatch(
            session,
            event="booking_status_changed",
            payload=payload,
            customer_id=booking.customer_id,
        )
    for role in STATUS_CHANGE_ROLES:
        delivered += await dispatch(
            session, event="booking_status_changed", payload=payload, role=role
        )
    return delivered


async def notify_payment_received(
    session: AsyncSession, *, booking: Booking, amount: str
) -> int:
    payload = booking_payload(booking, amount=amount)
    return int(
        await dispatch(
            session, event="payment_received", payload=payload, role=UserRole.ADMIN
        )
    )
