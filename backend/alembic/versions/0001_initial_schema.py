"""Initial glamping admin schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(14, 2)
RATE = sa.Numeric(5, 2)
JSON = postgresql.JSONB().with_variant(sa.JSON(), "sqlite")

ENUM_NAMES = (
    "bookingstatus",
    "paymentstatus",
    "applicationtype",
    "discountscope",
    "discounttype",
    "discountcategory",
    "dynamicpricingmode",
    "eventpricingtype",
    "eventtype",
    "pricingmode",
    "userrole",
    "commissiontype",
    "deposittype",
)


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True)


def _fk(name: str, target: str, ondelete: str, nullable: bool = True) -> sa.Column:
    return sa.Column(
        name,
        sa.Uuid(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _money(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, MONEY)
    return sa.Column(name, MONEY, nullable=False, server_default="0")


def _existing_enum(name: str) -> sa.types.TypeEngine:
    """Reference an enum type created by an earlier table."""
    return postgresql.ENUM(name=name, create_type=False).with_variant(
        sa.String(32), "sqlite"
    )


def upgrade() -> None:
    amount_types = ("PERCENTAGE", "FIXED_AMOUNT")
    deposit_type_enum = sa.Enum(*amount_types, name="deposittype")
    commission_type_enum = sa.Enum(*amount_types, name="commissiontype")

    op.create_table(
        "zones",
        _id(),
        sa.Column("name", JSON, nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=False, server_default="VND"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("tax_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tax_rate", RATE, nullable=False, server_default="0"),
        sa.Column("tax_name", JSON),
        sa.Column("deposit_type", deposit_type_enum, nullable=False),
        _money("deposit_value"),
        sa.Column("commission_type", commission_type_enum, nullable=False),
        _money("commission_value"),
        sa.Column("min_stay_nights", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )

    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column(
            "role",
            sa.Enum("ADMIN", "SALE", "OPERATIONS", "GLAMPING_OWNER", name="userrole"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "user_zones",
        _id(),
        _fk("user_id", "users.id", "CASCADE", nullable=False),
        _fk("zone_id", "zones.id", "CASCADE", nullable=False),
        sa.UniqueConstraint("user_id", "zone_id", name="uq_user_zone"),
    )

    op.create_table(
        "zone_settings_history",
        _id(),
        _fk("zone_id", "zones.id", "CASCADE", nullable=False),
        sa.Column("field", sa.String(length=64), nullable=False),
        sa.Column("old_value", JSON),
        sa.Column("new_value", JSON),
        sa.Column("change_reason", sa.Text()),
        _fk("changed_by_user_id", "users.id", "SET NULL"),
        _created_at(),
    )

    op.create_table(
        "customers",
        _id(),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=320)),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("country", sa.String(length=64)),
        *_timestamps(),
    )
    op.create_index("ix_customers_email", "customers", ["email"])

    op.create_table(
        "categories",
        _id(),
        _fk("zone_id", "zones.id", "CASCADE"),
        sa.Column("name", JSON, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "parameters",
        _id(),
        _fk("zone_id", "zones.id", "CASCADE"),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("name", JSON, nullable=False),
        sa.Column("counts_as_guest", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "items",
        _id(),
        _fk("zone_id", "zones.id", "CASCADE", nullable=False),
        _fk("category_id", "categories.id", "SET NULL"),
        sa.Column("name", JSON, nullable=False),
        sa.Column("sku", sa.String(length=64)),
        sa.Column("pricing_rate", sa.String(length=32), nullable=False, server_default="per_night"),
        sa.Column("inventory_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unlimited_inventory", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "pricing_events",
        _id(),
        _fk("zone_id", "zones.id", "CASCADE"),
        sa.Column("name", JSON, nullable=False),
        sa.Column(
            "event_type",
            sa.Enum("CLOSURE", "SPECIAL", "SEASONAL", name="eventtype"),
            nullable=False,
        ),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="available"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date()),
        sa.Column("days_of_week", JSON),
        sa.Column(
            "pricing_type",
            sa.Enum("BASE_PRICE", "NEW_PRICE", "DYNAMIC", "YIELD", name="eventpricingtype"),
            nullable=False,
        ),
        sa.Column("dynamic_pricing_value", MONEY),
        sa.Column(
            "dynamic_pricing_mode",
            sa.Enum("PERCENT", "FIXED", name="dynamicpricingmode"),
        ),
        sa.Column("yield_thresholds", JSON),
        *_timestamps(),
    )

    op.create_table(
        "pricing_event_items",
        sa.Column(
            "event_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("pricing_events.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "item_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("items.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "item_prices",
        _id(),
        _fk("item_id", "items.id", "CASCADE", nullable=False),
        _fk("parameter_id", "parameters.id", "CASCADE", nullable=False),
        _fk("event_id", "pricing_events.id", "CASCADE"),
        sa.Column("group_min", sa.Integer()),
        sa.Column("group_max", sa.Integer()),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column(
            "pricing_mode",
            sa.Enum("PER_PERSON", "PER_GROUP", name="pricingmode"),
            nullable=False,
        ),
        *_timestamps(),
    )

    op.create_table(
        "menu_items",
        _id(),
        _fk("zone_id", "zones.id", "CASCADE"),
        sa.Column("name", JSON, nullable=False),
        sa.Column("category", sa.String(length=120)),
        sa.Column("unit", sa.String(length=32)),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("tax_rate", RATE, nullable=False, server_default="0"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "discounts",
        _id(),
        sa.Column("name", JSON, nullable=False),
        sa.Column(
            "category",
            sa.Enum("DISCOUNTS", "VOUCHERS", name="discountcategory"),
            nullable=False,
        ),
        sa.Column("code", sa.String(length=64)),
        sa.Column(
            "discount_type",
            sa.Enum("PERCENTAGE", "FIXED_AMOUNT", name="discounttype"),
            nullable=False,
        ),
        sa.Column("value", MONEY, nullable=False),
        _money("max_discount_amount", nullable=True),
        sa.Column(
            "scope",
            sa.Enum(
                "PER_ITEM",
                "PER_BOOKING_BEFORE_TAX",
                "PER_BOOKING_AFTER_TAX",
                name="discountscope",
            ),
            nullable=False,
        ),
        sa.Column(
            "application_type",
            sa.Enum("ALL", "ACCOMMODATION", "MENU_ONLY", name="applicationtype"),
            nullable=False,
        ),
        sa.Column("applies_to_all", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("applicable_zone_ids", JSON),
        sa.Column("applicable_category_ids", JSON),
        sa.Column("applicable_item_ids", JSON),
        sa.Column("valid_from", sa.Date()),
        sa.Column("valid_until", sa.Date()),
        sa.Column("weekly_days", JSON),
        _money("min_order_amount", nullable=True),
        sa.Column("max_uses", sa.Integer()),
        sa.Column("max_uses_per_customer", sa.Integer()),
        sa.Column("current_uses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_discounts_code", "discounts", ["code"], unique=True)

    op.create_table(
        "bookings",
        _id(),
        sa.Column("booking_code", sa.String(length=32), nullable=False, unique=True),
        _fk("zone_id", "zones.id", "RESTRICT", nullable=False),
        _fk("customer_id", "customers.id", "SET NULL"),
        _fk("created_by_user_id", "users.id", "SET NULL"),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING",
                "CONFIRMED",
                "CHECKED_IN",
                "CHECKED_OUT",
                "CANCELLED",
                name="bookingstatus",
            ),
            nullable=False,
        ),
        sa.Column(
            "payment_status",
            sa.Enum(
                "PENDING",
                "DEPOSIT_PAID",
                "FULLY_PAID",
                "REFUND_PENDING",
                "REFUNDED",
                "NO_REFUND",
                "EXPIRED",
                name="paymentstatus",
            ),
            nullable=False,
        ),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("guests", JSON),
        _money("subtotal_amount"),
        _money("discount_amount"),
        _money("tax_amount"),
        _money("total_amount"),
        _money("deposit_due"),
        _money("balance_due"),
        _money("vat_payment_due"),
        sa.Column("currency", sa.String(length=8), nullable=False, server_default="VND"),
        sa.Column(
            "tax_invoice_required", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("tax_rate", RATE, nullable=False, server_default="0"),
        sa.Column("notes", sa.Text()),
        sa.Column("confirmed_at", sa.DateTime(timezone=True)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_bookings_zone_id", "bookings", ["zone_id"])
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_created_by_user_id", "bookings", ["created_by_user_id"])

    op.create_table(
        "booking_items",
        _id(),
        _fk("booking_id", "bookings.id", "CASCADE", nullable=False),
        _fk("item_id", "items.id", "RESTRICT", nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("nights", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("guests", JSON),
        sa.Column("nightly_breakdown", JSON),
        _money("subtotal_amount"),
        _money("discount_amount"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_booking_items_booking_id", "booking_items", ["booking_id"])

    op.create_table(
        "booking_products",
        _id(),
        _fk("booking_id", "bookings.id", "CASCADE", nullable=False),
        _fk("menu_item_id", "menu_items.id", "RESTRICT", nullable=False),
        _fk("parameter_id", "parameters.id", "SET NULL"),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("unit_price", MONEY, nullable=False),
        _money("discount_amount"),
        sa.Column("voucher_code", sa.String(length=64)),
        _fk("discount_id", "discounts.id", "SET NULL"),
        sa.Column("metadata", JSON),
        *_timestamps(),
    )
    op.create_index("ix_booking_products_booking_id", "booking_products", ["booking_id"])

    op.create_table(
        "booking_discounts",
        _id(),
        _fk("booking_id", "bookings.id", "CASCADE", nullable=False),
        _fk("booking_item_id", "booking_items.id", "CASCADE"),
        _fk("discount_id", "discounts.id", "SET NULL"),
        sa.Column("code", sa.String(length=64)),
        sa.Column("scope", sa.String(length=32), nullable=False),
        sa.Column("discount_type", _existing_enum("discounttype"), nullable=False),
        sa.Column("value", MONEY, nullable=False),
        _money("max_discount_amount", nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        _money("amount"),
        *_timestamps(),
    )
    op.create_index("ix_booking_discounts_booking_id", "booking_discounts", ["booking_id"])
    op.create_index(
        "ix_booking_discounts_booking_item_id", "booking_discounts", ["booking_item_id"]
    )

    op.create_table(
        "booking_payments",
        _id(),
        _fk("booking_id", "bookings.id", "CASCADE", nullable=False),
        sa.Column("method", sa.String(length=32), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("transaction_reference", sa.String(length=128)),
        sa.Column("is_vat_payment", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text()),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        _fk("created_by_user_id", "users.id", "SET NULL"),
        _created_at(),
    )
    op.create_index("ix_booking_payments_booking_id", "booking_payments", ["booking_id"])

    op.create_table(
        "booking_status_history",
        _id(),
        _fk("booking_id", "bookings.id", "CASCADE", nullable=False),
        sa.Column("previous_status", sa.String(length=32)),
        sa.Column("new_status", sa.String(length=32), nullable=False),
        sa.Column("previous_payment_status", sa.String(length=32)),
        sa.Column("new_payment_status", sa.String(length=32)),
        sa.Column("reason", sa.Text()),
        _fk("changed_by_user_id", "users.id", "SET NULL"),
        _created_at(),
    )
    op.create_index(
        "ix_booking_status_history_booking_id", "booking_status_history", ["booking_id"]
    )

    op.create_table(
        "notifications",
        _id(),
        sa.Column("event", sa.String(length=64), nullable=False),
        sa.Column("recipient_role", sa.String(length=32)),
        _fk("customer_id", "customers.id", "CASCADE"),
        sa.Column("payload", JSON),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index("ix_notifications_recipient_role", "notifications", ["recipient_role"])
    op.create_index("ix_notifications_customer_id", "notifications", ["customer_id"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("booking_status_history")
    op.drop_table("booking_payments")
    op.drop_table("booking_discounts")
    op.drop_table("booking_products")
    op.drop_table("booking_items")
    op.drop_table("bookings")
    op.drop_table("discounts")
    op.drop_table("menu_items")
    op.drop_table("item_prices")
    op.drop_table("pricing_event_items")
    op.drop_table("pricing_events")
    op.drop_table("items")
    op.drop_table("parameters")
    op.drop_table("categories")
    op.drop_table("customers")
    op.drop_table("zone_settings_history")
    op.drop_table("user_zones")
    op.drop_table("users")
    op.drop_table("zones")

    for name in ENUM_NAMES:
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
