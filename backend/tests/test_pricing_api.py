"""API tests for stay quotes."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


def _quote_payload(context: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "item_id": str(context["tent_id"]),
        "check_in_date": "2030-06-01",
        "check_out_date": "2030-06-03",
        "guests": {str(context["adult_id"]): 1},
    }
    payload.update(overrides)
    return payload


async def test_quote_matches_booking_totals(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/pricing/quote",
        json=_quote_payload(app_context, voucher_code="SAVE10", tax_invoice_required=True),
        headers=app_context["sale_headers"],
    )
    assert response.status_code == 200, response.text
    quote = response.json()
    assert quote["nights"] == 2
    assert [night["date"] for night in quote["nightly"]] == ["2030-06-01", "2030-06-02"]
    assert Decimal(quote["subtotal"]) == Decimal("2000000")
    assert Decimal(quote["discount_amount"]) == Decimal("150000")
    assert Decimal(quote["tax_amount"]) == Decimal("185000")
    assert Decimal(quote["total_amount"]) == Decimal("2035000")
    assert Decimal(quote["deposit_due"]) == Decimal("1017500")
    assert quote["voucher"] == {"code": "SAVE10", "valid": True, "reason": None}
    assert [entry["code"] for entry in quote["applied_discounts"]] == ["SAVE10"]
    assert quote["currency"] == "VND"


async def test_unknown_voucher_is_reported_not_raised(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/pricing/quote",
        json=_quote_payload(app_context, voucher_code="NOPE99", tax_invoice_required=True),
        headers=app_context["admin_headers"],
    )
    assert response.status_code == 200
    quote = response.json()
    assert quote["voucher"]["valid"] is False
    assert "not found" in quote["voucher"]["reason"]
    assert Decimal(quote["total_amount"]) == Decimal("2200000")


async def test_quote_errors(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["admin_headers"]

    missing = await client.post(
        "/api/v1/pricing/quote",
        json=_quote_payload(app_context, item_id="00000000-0000-0000-0000-000000000000"),
        headers=headers,
    )
    assert missing.status_code == 404

    reversed_dates = await client.post(
        "/api/v1/pricing/quote",
        json=_quote_payload(
            app_context, check_in_date="2030-06-03", check_out_date="2030-06-01"
        ),
        headers=headers,
    )
    assert reversed_dates.status_code == 422

    outside_zone = await client.post(
        "/api/v1/pricing/quote",
        json=_quote_payload(app_context),
        headers=app_context["owner_headers"],
    )
    assert outside_zone.status_code == 403

    malformed_voucher = await client.post(
        "/api/v1/pricing/quote",
        json=_quote_payload(app_context, voucher_code="!!"),
        headers=app_context["owner_headers"],
    )
    assert malformed_voucher.status_code == 403


async def test_stacked_item_discounts_quote_equals_booking(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["admin_headers"]
    tent = [str(app_context["tent_id"])]
    for payload in (
        {"name": "Early bird", "applicable_item_ids": tent},
        {"name": "Returning guest", "applies_to_all": True},
        {
            "name": "Tent five",
            "category": "vouchers",
            "code": "TENT5",
            "value": "5",
            "applicable_item_ids": tent,
        },
    ):
        created = await client.post(
            "/api/v1/discounts",
            json={"discount_type": "percentage", "value": "10", "scope": "per_item", **payload},
            headers=headers,
        )
        assert created.status_code == 201, created.text

    quote = await client.post(
        "/api/v1/pricing/quote",
        json=_quote_payload(app_context, voucher_code="TENT5"),
        headers=headers,
    )
    assert quote.status_code == 200, quote.text
    quoted = quote.json()
    assert quoted["voucher"]["valid"] is True
    assert Decimal(quoted["discount_amount"]) == Decimal("500000")
    assert Decimal(quoted["total_amount"]) == Decimal("1500000")

    booking = await client.post(
        "/api/v1/bookings",
        json={
            "zone_id": str(app_context["zone_a_id"]),
            "check_in_date": "2030-06-01",
            "check_out_date": "2030-06-03",
            "items": [{"item_id": tent[0], "guests": {str(app_context["adult_id"]): 1}}],
            "voucher_code": "TENT5",
        },
        headers=headers,
    )
    assert booking.status_code == 201, booking.text
    body = booking.json()
    assert Decimal(body["discount_amount"]) == Decimal(quoted["discount_amount"])
    assert Decimal(body["total_amount"]) == Decimal(quoted["total_amount"])
    line_id = body["items"][0]["id"]
    assert Decimal(body["items"][0]["discount_amount"]) == Decimal("500000")
    assert sorted(
        Decimal(entry["amount"]) for entry in body["discounts"] if entry["booking_item_id"] == line_id
    ) == [Decimal("100000"), Decimal("200000"), Decimal("200000")]

    recalculated = await client.post(
        f"/api/v1/bookings/{body['id']}/toggle-tax-invoice",
        json={"tax_invoice_required": True},
        headers=headers,
    )
    assert recalculated.status_code == 200, recalculated.text
    assert Decimal(recalculated.json()["discount_amount"]) == Decimal("500000")
    assert Decimal(recalculated.json()["total_amount"]) == Decimal("1650000")


async def test_zone_with_tax_switched_off_charges_no_tax(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    zone_url = f"/api/v1/zones/{app_context['zone_b_id']}/settings"
    rate_only = await client.patch(
        zone_url, json={"tax_rate": "10"}, headers=app_context["admin_headers"]
    )
    assert rate_only.status_code == 200, rate_only.text

    cabin_quote = _quote_payload(
        app_context,
        item_id=str(app_context["cabin_id"]),
        guests={str(app_context["adult_id"]): 2},
        tax_invoice_required=True,
    )
    quote = await client.post(
        "/api/v1/pricing/quote", json=cabin_quote, headers=app_context["owner_headers"]
    )
    assert quote.status_code == 200, quote.text
    assert Decimal(quote.json()["tax_amount"]) == Decimal("0")

    booking_payload = {
        "zone_id": str(app_context["zone_b_id"]),
        "check_in_date": "2030-06-01",
        "check_out_date": "2030-06-03",
        "items": [
            {"item_id": str(app_context["cabin_id"]), "guests": {str(app_context["adult_id"]): 2}}
        ],
        "tax_invoice_required": True,
    }
    untaxed = await client.post(
        "/api/v1/bookings", json=booking_payload, headers=app_context["owner_headers"]
    )
    assert untaxed.status_code == 201, untaxed.text
    assert Decimal(untaxed.json()["tax_amount"]) == Decimal("0")
    assert Decimal(untaxed.json()["total_amount"]) == Decimal("2000000")

    enabled = await client.patch(
        zone_url, json={"tax_enabled": True}, headers=app_context["admin_headers"]
    )
    assert enabled.status_code == 200, enabled.text
    taxed = await client.post(
        "/api/v1/bookings", json=booking_payload, headers=app_context["owner_headers"]
    )
    assert taxed.status_code == 201, taxed.text
    assert Decimal(taxed.json()["tax_amount"]) == Decimal("200000")
