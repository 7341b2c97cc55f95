"""Test fixtures for the glamping admin backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from glamping_admin.core.config import get_settings
from glamping_admin.core.security import create_access_token
from glamping_admin.db.base import Base
from glamping_admin.db.session import dispose_engine, get_sessionmaker
from glamping_admin.main import app
from glamping_admin.models import (
    Category,
    Customer,
    DepositType,
    Discount,
    DiscountCategory,
    DiscountScope,
    DiscountType,
    Item,
    ItemPrice,
    MenuItem,
    Parameter,
    PricingMode,
    User,
    UserRole,
    UserZone,
    Zone,
)


def auth_headers(user_id: object) -> dict[str, str]:
    """Bearer headers for a seeded staff user."""
    return {"Authorization": f"Bearer {create_access_token(str(user_id))}"}


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def app_context(
    reset_database: AsyncIterator[None], db_url: str
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client and seeded zone, catalog and staff data."""
    sessionmaker = get_sessionmaker(db_url)

    async with sessionmaker() as session:
        zone_a = Zone(
            name={"vi": "Khu Đồi Thông", "en": "Pine Hill"},
            currency="VND",
            tax_enabled=True,
            tax_rate=Decimal("10"),
            tax_name={"vi": "VAT", "en": "VAT"},
            deposit_type=DepositType.PERCENTAGE,
            deposit_value=Decimal("50"),
        )
        zone_b = Zone(name="Lakeside", currency="VND")
        session.add_all([zone_a, zone_b])
        await session.flush()

        tents = Category(zone_id=zone_a.id, name={"vi": "Lều", "en": "Tent"})
        cabins = Category(zone_id=zone_b.id, name={"vi": "Nhà gỗ", "en": "Cabin"})
        session.add_all([tents, cabins])
        await session.flush()

        adult = Parameter(zone_id=None, key="adult", name={"vi": "Người lớn", "en": "Adult"})
        session.add(adult)
        await session.flush()

        tent = Item(
            zone_id=zone_a.id,
            category_id=tents.id,
            name={"vi": "Lều Safari", "en": "Safari Tent"},
            sku="TENT-1",
            pricing_rate="per_night",
            inventory_quantity=5,
        )
        cabin = Item(
            zone_id=zone_b.id,
            category_id=cabins.id,
            name={"vi": "Nhà gỗ ven hồ", "en": "Lake Cabin"},
            sku="CABIN-1",
            pricing_rate="per_night",
            inventory_quantity=2,
        )
        session.add_all([tent, cabin])
        await session.flush()
        session.add_all(
            [
                ItemPrice(
                    item_id=tent.id,
                    parameter_id=adult.id,
                    amount=Decimal("1000000"),
                    pricing_mode=PricingMode.PER_PERSON,
                ),
                ItemPrice(
                    item_id=cabin.id,
                    parameter_id=adult.id,
                    amount=Decimal("500000"),
                    pricing_mode=PricingMode.PER_PERSON,
                ),
            ]
        )

        breakfast = MenuItem(
            zone_id=zone_a.id,
            name={"vi": "Bữa sáng", "en": "Breakfast"},
            category="food",
            unit="set",
            price=Decimal("100000"),
        )
        customer = Customer(
            first_name="Lan",
            last_name="Nguyen",
            email="lan@example.com",
            phone="+84900000000",
        )
        admin = User(
            email="admin@example.com",
            first_name="Minh",
            last_name="Admin",
            role=UserRole.ADMIN,
        )
        sale = User(
            email="sale@example.com",
            first_name="Hoa",
            last_name="Sale",
            role=UserRole.SALE,
        )
        owner = User(
            email="owner@example.com",
            first_name="Tuan",
            last_name="Owner",
            role=UserRole.GLAMPING_OWNER,
        )
        voucher = Discount(
            name={"vi": "Giảm 10%", "en": "10% off"},
            category=DiscountCategory.VOUCHERS,
            code="SAVE10",
            discount_type=DiscountType.PERCENTAGE,
            value=Decimal("10"),
            max_discount_amount=Decimal("150000"),
            scope=DiscountScope.PER_BOOKING_BEFORE_TAX,
            applies_to_all=True,
        )
        session.add_all([breakfast, customer, admin, sale, owner, voucher])
        await session.flush()
        session.add(UserZone(user_id=owner.id, zone_id=zone_b.id))
        await session.commit()

        context: dict[str, object] = {
            "zone_a_id": zone_a.id,
            "zone_b_id": zone_b.id,
            "tent_category_id": tents.id,
            "cabin_category_id": cabins.id,
            "adult_id": adult.id,
            "tent_id": tent.id,
            "cabin_id": cabin.id,
            "breakfast_id": breakfast.id,
            "customer_id": customer.id,
            "voucher_id": voucher.id,
            "admin_id": admin.id,
            "sale_id": sale.id,
            "owner_id": owner.id,
            "admin_headers": auth_headers(admin.id),
            "sale_headers": auth_headers(sale.id),
            "owner_headers": auth_headers(owner.id),
        }

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
