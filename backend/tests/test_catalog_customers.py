"""API tests for the item catalog, menu and customer lookups."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_items_are_zone_scoped(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]

    everything = await client.get("/api/v1/catalog/items", headers=app_context["sale_headers"])
    assert {item["sku"] for item in everything.json()} == {"TENT-1", "CABIN-1"}

    by_zone = await client.get(
        "/api/v1/catalog/items",
        params={"zone_id": str(app_context["zone_a_id"])},
        headers=app_context["sale_headers"],
    )
    assert [item["sku"] for item in by_zone.json()] == ["TENT-1"]

    owner = await client.get("/api/v1/catalog/items", headers=app_context["owner_headers"])
    assert [item["sku"] for item in owner.json()] == ["CABIN-1"]

    forbidden = await client.get(
        "/api/v1/catalog/items",
        params={"zone_id": str(app_context["zone_a_id"])},
        headers=app_context["owner_headers"],
    )
    assert forbidden.status_code == 403


async def test_menu_item_management(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["admin_headers"]

    created = await client.post(
        "/api/v1/catalog/menu-items",
        json={"name": {"vi": "Cà phê", "en": "Coffee"}, "category": "drinks", "price": "45000"},
        headers=headers,
    )
    assert created.status_code == 201, created.text
    coffee = created.json()
    assert coffee["zone_id"] is None

    zone_menu = await client.get(
        "/api/v1/catalog/menu-items",
        params={"zone_id": str(app_context["zone_b_id"])},
        headers=headers,
    )
    # Menu items without a zone are offered everywhere.
    assert [entry["id"] for entry in zone_menu.json()] == [coffee["id"]]

    updated = await client.patch(
        f"/api/v1/catalog/menu-items/{coffee['id']}",
        json={"price": "50000", "is_active": False},
        headers=headers,
    )
    assert updated.status_code == 200
    assert Decimal(updated.json()["price"]) == Decimal("50000")
    assert updated.json()["is_active"] is False

    active = await client.get(
        "/api/v1/catalog/menu-items", params={"active_only": True}, headers=headers
    )
    assert [entry["id"] for entry in active.json()] == [str(app_context["breakfast_id"])]

    sale = await client.post(
        "/api/v1/catalog/menu-items",
        json={"name": "Tea", "price": "30000"},
        headers=app_context["sale_headers"],
    )
    assert sale.status_code == 403

    negative = await client.post(
        "/api/v1/catalog/menu-items", json={"name": "Tea", "price": "-1"}, headers=headers
    )
    assert negative.status_code == 422

    missing = await client.patch(
        "/api/v1/catalog/menu-items/00000000-0000-0000-0000-000000000000",
        json={"price": "1"},
        headers=headers,
    )
    assert missing.status_code == 404


async def test_customer_lookup(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["sale_headers"]

    found = await client.get("/api/v1/customers", params={"search": "nguyen"}, headers=headers)
    [customer] = found.json()
    assert customer["full_name"] == "Lan Nguyen"

    by_phone = await client.get("/api/v1/customers", params={"search": "+8490"}, headers=headers)
    assert len(by_phone.json()) == 1

    none = await client.get("/api/v1/customers", params={"search": "nobody"}, headers=headers)
    assert none.json() == []

    detail = await client.get(f"/api/v1/customers/{app_context['customer_id']}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["email"] == "lan@example.com"

    missing = await client.get(
        "/api/v1/customers/00000000-0000-0000-0000-000000000000", headers=headers
    )
    assert missing.status_code == 404
