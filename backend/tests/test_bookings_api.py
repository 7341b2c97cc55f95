"""API tests for booking pricing, payments and the VAT toggle."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from glamping_admin.db.session import get_sessionmaker
from glamping_admin.models import Discount, Notification
from glamping_admin.services import notification_service

pytestmark = pytest.mark.asyncio

CHECK_IN = "2030-06-01"
CHECK_OUT = "2030-06-03"


def _money(value: Any) -> Decimal:
    return Decimal(str(value))


async def _create_booking(
    client: AsyncClient,
    context: dict[str, Any],
    *,
    headers: dict[str, str] | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "zone_id": str(context["zone_a_id"]),
        "customer_id": str(context["customer_id"]),
        "check_in_date": CHECK_IN,
        "check_out_date": CHECK_OUT,
        "items": [
            {"item_id": str(context["tent_id"]), "guests": {str(context["adult_id"]): 1}}
        ],
    }
    payload.update(overrides)
    response = await client.post(
        "/api/v1/bookings", json=payload, headers=headers or context["admin_headers"]
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_example_stay_with_voucher_and_deposit(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["admin_headers"]

    booking = await _create_booking(
        client, app_context, voucher_code="save10", tax_invoice_required=True
    )
    assert booking["booking_code"].startswith("GL")
    assert booking["status"] == "pending"
    assert booking["payment_status"] == "pending"
    assert booking["items"][0]["nights"] == 2
    assert len(booking["items"][0]["nightly_breakdown"]) == 2
    assert _money(booking["subtotal_amount"]) == Decimal("2000000")
    assert _money(booking["discount_amount"]) == Decimal("150000")
    assert _money(booking["tax_amount"]) == Decimal("185000")
    assert _money(booking["total_amount"]) == Decimal("2035000")
    assert _money(booking["deposit_due"]) == Decimal("1017500")
    assert _money(booking["balance_due"]) == Decimal("2035000")
    [discount] = booking["discounts"]
    assert discount["code"] == "SAVE10"
    assert _money(discount["amount"]) == Decimal("150000")

    pay = await client.post(
        f"/api/v1/bookings/{booking['id']}/payments",
        json={"amount": "1000000", "method": "bank_transfer"},
        headers=headers,
    )
    assert pay.status_code == 201, pay.text
    paid = pay.json()
    assert paid["payment_status"] == "deposit_paid"
    assert _money(paid["balance_due"]) == Decimal("1035000")
    assert paid["payments"][0]["paid_at"] is not None

    balance = await client.get(f"/api/v1/bookings/{booking['id']}/balance", headers=headers)
    assert balance.status_code == 200
    body = balance.json()
    assert _money(body["amount_paid"]) == Decimal("1000000")
    assert _money(body["remaining"]) == Decimal("1035000")
    assert body["is_fully_paid"] is False

    payments = await client.get(f"/api/v1/bookings/{booking['id']}/payments", headers=headers)
    assert [entry["method"] for entry in payments.json()] == ["bank_transfer"]

    history = await client.get(f"/api/v1/bookings/{booking['id']}/history", headers=headers)
    assert [entry["new_payment_status"] for entry in history.json()] == [
        "pending",
        "deposit_paid",
    ]

    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        voucher = await session.get(Discount, app_context["voucher_id"])
        assert voucher.current_uses == 1
        payment_notes = await session.scalar(
            select(func.count(Notification.id)).where(Notification.event == "payment_received")
        )
        assert payment_notes == 1


async def test_pending_payment_does_not_reduce_balance(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    booking = await _create_booking(client, app_context)

    response = await client.post(
        f"/api/v1/bookings/{booking['id']}/payments",
        json={"amount": "500000", "method": "card", "status": "pending"},
        headers=app_context["admin_headers"],
    )
    assert response.status_code == 201
    body = response.json()
    assert body["payment_status"] == "pending"
    assert _money(body["balance_due"]) == Decimal("2000000")

    invalid = await client.post(
        f"/api/v1/bookings/{booking['id']}/payments",
        json={"amount": "0", "method": "card"},
        headers=app_context["admin_headers"],
    )
    assert invalid.status_code == 422


async def test_status_transitions_and_notifications(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["admin_headers"]
    booking = await _create_booking(client, app_context)
    url = f"/api/v1/bookings/{booking['id']}"

    confirmed = await client.patch(
        url, json={"status": "confirmed", "reason": "Called guest"}, headers=headers
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"
    assert confirmed.json()["confirmed_at"] is not None

    # Re-setting the same status leaves history untouched.
    again = await client.patch(url, json={"status": "confirmed"}, headers=headers)
    assert again.status_code == 200

    history = (await client.get(f"{url}/history", headers=headers)).json()
    assert [entry["new_status"] for entry in history] == ["pending", "confirmed"]
    assert history[1]["reason"] == "Called guest"
    assert history[1]["changed_by_user_id"] == str(app_context["admin_id"])

    invalid = await client.patch(url, json={"status": "checked_out"}, headers=headers)
    assert invalid.status_code == 400

    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        recipients = (
            await session.execute(
                select(Notification.recipient_role, Notification.customer_id).where(
                    Notification.event == "booking_status_changed"
                )
            )
        ).all()
    assert len(recipients) == 3
    assert {role for role, _ in recipients} == {None, "admin", "operations"}


async def test_status_change_survives_notification_failure(
    app_context: dict[str, Any], monkeypatch: pytest.MonkeyPatch
) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["admin_headers"]
    booking = await _create_booking(client, app_context)
    url = f"/api/v1/bookings/{booking['id']}"

    async def _broken_notify(*args: Any, **kwargs: Any) -> None:
        raise RuntimeError("notification store unavailable")

    monkeypatch.setattr(notification_service, "notify", _broken_notify)

    confirmed = await client.patch(url, json={"status": "confirmed"}, headers=headers)
    assert confirmed.status_code == 200, confirmed.text
    assert confirmed.json()["status"] == "confirmed"

    stored = await client.get(url, headers=headers)
    assert stored.json()["status"] == "confirmed"
    history = (await client.get(f"{url}/history", headers=headers)).json()
    assert [(entry["previous_status"], entry["new_status"]) for entry in history] == [
        (None, "pending"),
        ("pending", "confirmed"),
    ]


async def test_tax_toggle_recomputes_totals(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["admin_headers"]
    booking = await _create_booking(
        client, app_context, voucher_code="SAVE10", tax_invoice_required=True
    )
    url = f"/api/v1/bookings/{booking['id']}/toggle-tax-invoice"

    off = await client.post(url, json={"tax_invoice_required": False}, headers=headers)
    assert off.status_code == 200
    body = off.json()
    assert body["tax_invoice_required"] is False
    assert _money(body["tax_amount"]) == Decimal("0")
    assert _money(body["total_amount"]) == Decimal("1850000")
    assert _money(body["deposit_due"]) == Decimal("925000")

    unchanged = await client.post(url, json={"tax_invoice_required": False}, headers=headers)
    assert _money(unchanged.json()["total_amount"]) == Decimal("1850000")

    flipped = await client.post(url, headers=headers)
    assert flipped.json()["tax_invoice_required"] is True
    assert _money(flipped.json()["total_amount"]) == Decimal("2035000")

    history = (
        await client.get(f"/api/v1/bookings/{booking['id']}/history", headers=headers)
    ).json()
    assert [entry["reason"] for entry in history] == [
        "Booking created",
        "VAT invoice disabled",
        "VAT invoice enabled",
    ]


async def test_vat_enabled_after_full_payment_is_owed_separately(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["admin_headers"]
    booking = await _create_booking(client, app_context)
    base = f"/api/v1/bookings/{booking['id']}"

    paid = await client.post(
        f"{base}/payments", json={"amount": "2000000", "method": "cash"}, headers=headers
    )
    assert paid.json()["payment_status"] == "fully_paid"

    toggled = await client.post(
        f"{base}/toggle-tax-invoice", json={"tax_invoice_required": True}, headers=headers
    )
    body = toggled.json()
    assert _money(body["tax_amount"]) == Decimal("200000")
    assert _money(body["total_amount"]) == Decimal("2200000")
    assert _money(body["vat_payment_due"]) == Decimal("200000")
    assert _money(body["balance_due"]) == Decimal("200000")
    assert body["payment_status"] == "fully_paid"

    vat = await client.post(
        f"{base}/payments",
        json={"amount": "200000", "method": "cash", "is_vat_payment": True},
        headers=headers,
    )
    body = vat.json()
    assert _money(body["vat_payment_due"]) == Decimal("0")
    assert _money(body["balance_due"]) == Decimal("0")
    assert body["payment_status"] == "fully_paid"


async def test_lines_products_and_vouchers(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["admin_headers"]
    booking = await _create_booking(client, app_context)
    base = f"/api/v1/bookings/{booking['id']}"
    line_id = booking["items"][0]["id"]

    with_breakfast = await client.post(
        f"{base}/products",
        json={
            "menu_item_id": str(app_context["breakfast_id"]),
            "quantity": 2,
            "metadata": {"note": "vegetarian"},
        },
        headers=headers,
    )
    assert with_breakfast.status_code == 200, with_breakfast.text
    body = with_breakfast.json()
    assert _money(body["subtotal_amount"]) == Decimal("2200000")
    [product] = body["products"]
    assert product["metadata"] == {"note": "vegetarian"}
    assert _money(product["unit_price"]) == Decimal("100000")

    removed = await client.delete(f"{base}/products/{product['id']}", headers=headers)
    assert _money(removed.json()["subtotal_amount"]) == Decimal("2000000")

    wrong_zone = await client.post(
        f"{base}/items",
        json={"item_id": str(app_context["cabin_id"]), "guests": {"adult": 1}},
        headers=headers,
    )
    assert wrong_zone.status_code == 400
    assert wrong_zone.json()["detail"] == "Item does not belong to the booking zone"

    second = await client.post(
        f"{base}/items",
        json={
            "item_id": str(app_context["tent_id"]),
            "guests": {str(app_context["adult_id"]): 2},
            "check_in_date": "2030-06-01",
            "check_out_date": "2030-06-02",
        },
        headers=headers,
    )
    assert second.status_code == 200
    body = second.json()
    assert _money(body["subtotal_amount"]) == Decimal("4000000")
    assert body["guests"] == {str(app_context["adult_id"]): 3}

    dropped = await client.delete(f"{base}/items/{line_id}", headers=headers)
    assert dropped.status_code == 200
    assert _money(dropped.json()["subtotal_amount"]) == Decimal("2000000")
    last_line = dropped.json()["items"][0]["id"]

    only_line = await client.delete(f"{base}/items/{last_line}", headers=headers)
    assert only_line.status_code == 400
    missing = await client.delete(f"{base}/items/{line_id}", headers=headers)
    assert missing.status_code == 404

    voucher = await client.post(f"{base}/voucher", json={"code": "SAVE10"}, headers=headers)
    assert voucher.status_code == 200
    assert _money(voucher.json()["discount_amount"]) == Decimal("150000")
    twice = await client.post(f"{base}/voucher", json={"code": "SAVE10"}, headers=headers)
    assert twice.status_code == 400
    unknown = await client.post(f"{base}/voucher", json={"code": "NOPE99"}, headers=headers)
    assert unknown.status_code == 404


async def test_create_booking_rejects_bad_input(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["admin_headers"]
    base_payload = {
        "zone_id": str(app_context["zone_a_id"]),
        "check_in_date": CHECK_IN,
        "check_out_date": CHECK_OUT,
        "items": [{"item_id": str(app_context["tent_id"])}],
    }

    reversed_dates = {**base_payload, "check_in_date": CHECK_OUT, "check_out_date": CHECK_IN}
    response = await client.post("/api/v1/bookings", json=reversed_dates, headers=headers)
    assert response.status_code == 422

    no_items = {**base_payload, "items": []}
    response = await client.post("/api/v1/bookings", json=no_items, headers=headers)
    assert response.status_code == 422

    unknown_voucher = {**base_payload, "voucher_code": "MISSING1"}
    response = await client.post("/api/v1/bookings", json=unknown_voucher, headers=headers)
    assert response.status_code == 404

    missing = await client.get(
        "/api/v1/bookings/00000000-0000-0000-0000-000000000000", headers=headers
    )
    assert missing.status_code == 404


async def test_zone_restricted_staff(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    booking = await _create_booking(client, app_context)
    owner = app_context["owner_headers"]

    response = await client.get(f"/api/v1/bookings/{booking['id']}", headers=owner)
    assert response.status_code == 403

    listing = await client.get("/api/v1/bookings", headers=owner)
    assert listing.status_code == 200
    assert listing.json() == []

    response = await client.post(
        "/api/v1/bookings",
        json={
            "zone_id": str(app_context["zone_a_id"]),
            "check_in_date": CHECK_IN,
            "check_out_date": CHECK_OUT,
            "items": [{"item_id": str(app_context["tent_id"])}],
        },
        headers=owner,
    )
    assert response.status_code == 403

    own = await _create_booking(
        client,
        app_context,
        headers=owner,
        zone_id=str(app_context["zone_b_id"]),
        items=[{"item_id": str(app_context["cabin_id"]), "guests": {str(app_context["adult_id"]): 2}}],
    )
    assert _money(own["total_amount"]) == Decimal("2000000")
    listing = await client.get("/api/v1/bookings", headers=owner)
    assert [entry["id"] for entry in listing.json()] == [own["id"]]
