"""Booking sales report dimensions compiled to SQLAlchemy statements.

Every dimension reads from one filtered fact subquery at a fixed grain
(booking, accommodation line or menu product). The data, count and summary
statements share that subquery, so row totals always add up to the summary.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Collection
from dataclasses import dataclass
from datetime import date

from sqlalchemy import (
    ColumnElement,
    Date,
    Select,
    Subquery,
    distinct,
    exists,
    func,
    literal,
    select,
)

from glamping_admin.models import (
    Booking,
    BookingItem,
    BookingPayment,
    BookingProduct,
    Category,
    Customer,
    Item,
    MenuItem,
    User,
)
from glamping_admin.reports.date_ranges import DateWindow, resolve_date_range
from glamping_admin.services.balance_service import SETTLED_PAYMENT_STATUSES

MAX_PAGE_SIZE = 500
DEFAULT_PAGE_SIZE = 50


class Dimension(str, enum.Enum):
    DAY = "day"
    BOOKING = "booking"
    BOOKING_ITEM = "booking_item"
    CUSTOMER = "customer"
    STAFF = "staff"
    CATEGORY = "category"
    ITEM = "item"
    PRODUCT = "product"


class Grain(str, enum.Enum):
    BOOKING = "booking"
    LINE = "line"
    PRODUCT = "product"


class DateSource(str, enum.Enum):
    CREATED = "created"
    CHECK_IN = "check_in"


@dataclass(slots=True, frozen=True)
class SalesFilters:
    """Validated, immutable report filters."""

    date_range: str = "this_month"
    date_source: DateSource = DateSource.CREATED
    date_from: date | None = None
    date_to: date | None = None
    staff_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    item_id: uuid.UUID | None = None
    zone_id: uuid.UUID | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    today: date | None = None

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be at least 1")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        # Fails early on unknown presets.
        self.window()

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def window(self) -> DateWindow | None:
        return resolve_date_range(
            self.date_range,
            today=self.today,
            date_from=self.date_from,
            date_to=self.date_to,
        )


METRICS = ("booking_count", "item_quantity", "discounts", "gross_sales", "net_sales", "total")
PAYMENT_METRICS = ("paid_total", "balance_owing")


@dataclass(slots=True, frozen=True)
class AggregationSpec:
    """How one report tab groups the facts of its grain."""

    dimension: Dimension
    grain: Grain
    key: str
    labels: tuple[str, ...] = ()
    require_key: bool = False
    order: str = "total"
    with_payments: bool = False


SPECS: dict[Dimension, AggregationSpec] = {
    Dimension.DAY: AggregationSpec(Dimension.DAY, Grain.BOOKING, "day", order="key"),
    Dimension.BOOKING: AggregationSpec(
        Dimension.BOOKING,
        Grain.BOOKING,
        "booking_id",
        labels=(
            "booking_code",
            "status",
            "payment_status",
            "staff_name",
            "created_at",
            "customer_name",
        ),
        order="created_at",
        with_payments=True,
    ),
    Dimension.BOOKING_ITEM: AggregationSpec(
        Dimension.BOOKING_ITEM,
        Grain.LINE,
        "line_id",
        labels=(
            "booking_code",
            "status",
            "item_name",
            "item_sku",
            "staff_name",
            "created_at",
            "customer_name",
        ),
        order="created_at",
    ),
    Dimension.CUSTOMER: AggregationSpec(
        Dimension.CUSTOMER,
        Grain.BOOKING,
        "customer_id",
        labels=("customer_name", "customer_email", "customer_phone"),
        with_payments=True,
    ),
    Dimension.STAFF: AggregationSpec(
        Dimension.STAFF,
        Grain.BOOKING,
        "staff_id",
        labels=("staff_name",),
        require_key=True,
    ),
    Dimension.CATEGORY: AggregationSpec(
        Dimension.CATEGORY,
        Grain.LINE,
        "category_id",
        labels=("category_name",),
        require_key=True,
    ),
    Dimension.ITEM: AggregationSpec(
        Dimension.ITEM,
        Grain.LINE,
        "item_id",
        labels=("item_name", "item_sku", "category_id"),
        require_key=True,
    ),
    Dimension.PRODUCT: AggregationSpec(
        Dimension.PRODUCT,
        Grain.PRODUCT,
        "menu_item_id",
        labels=("product_name", "product_category"),
        require_key=True,
    ),
}


def _full_name(first: ColumnElement, last: ColumnElement) -> ColumnElement:
    return first + literal(" ") + last


def _date_column(filters: SalesFilters) -> ColumnElement:
    if filters.date_source == DateSource.CHECK_IN:
        return func.date(Booking.check_in_date, type_=Date)
    return func.date(Booking.created_at, type_=Date)


def _booking_conditions(
    filters: SalesFilters, zone_scope: Collection[uuid.UUID] | None, *, grain: Grain
) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if filters.zone_id is not None:
        conditions.append(Booking.zone_id == filters.zone_id)
    elif zone_scope is not None:
        conditions.append(Booking.zone_id.in_(list(zone_scope)))

    window = filters.window()
    if window is not None:
        day = _date_column(filters)
        if window.start is not None:
            conditions.append(day >= window.start)
        if window.end is not None:
            conditions.append(day <= window.end)

    if filters.staff_id is not None:
        conditions.append(Booking.created_by_user_id == filters.staff_id)

    if grain == Grain.LINE:
        if filters.category_id is not None:
            conditions.append(Item.category_id == filters.category_id)
        if filters.item_id is not None:
            conditions.append(BookingItem.item_id == filters.item_id)
    elif filters.category_id is not None or filters.item_id is not None:
        line_filter = [BookingItem.booking_id == Booking.id]
        if filters.category_id is not None:
            line_filter.append(Item.category_id == filters.category_id)
        if filters.item_id is not None:
            line_filter.append(BookingItem.item_id == filters.item_id)
        conditions.append(
            exists(
                select(BookingItem.id)
                .join(Item, Item.id == BookingItem.item_id)
                .where(*line_filter)
            )
        )
    return conditions


def _common_columns(filters: SalesFilters) -> list[ColumnElement]:
    return [
        Booking.id.label("booking_id"),
        Booking.booking_code.label("booking_code"),
        Booking.status.label("status"),
        Booking.payment_status.label("payment_status"),
        Booking.created_at.label("created_at"),
        _date_column(filters).label("day"),
        Booking.customer_id.label("customer_id"),
        _full_name(Customer.first_name, Customer.last_name).label("customer_name"),
        Customer.email.label("customer_email"),
        Customer.phone.label("customer_phone"),
        Booking.created_by_user_id.label("staff_id"),
        _full_name(User.first_name, User.last_name).label("staff_name"),
    ]


def _with_people(stmt: Select) -> Select:
    return stmt.outerjoin(Customer, Customer.id == Booking.customer_id).outerjoin(
        User, User.id == Booking.created_by_user_id
    )


def booking_facts(
    filters: SalesFilters, zone_scope: Collection[uuid.UUID] | None
) -> Subquery:
    line_count = (
        select(func.count(BookingItem.id))
        .where(BookingItem.booking_id == Booking.id)
        .correlate(Booking)
        .scalar_subquery()
    )
    paid_total = (
        select(func.coalesce(func.sum(BookingPayment.amount), 0))
        .where(
            BookingPayment.booking_id == Booking.id,
            BookingPayment.status.in_(sorted(SETTLED_PAYMENT_STATUSES)),
        )
        .correlate(Booking)
        .scalar_subquery()
    )
    stmt = select(
        *_common_columns(filters),
        line_count.label("item_quantity"),
        Booking.discount_amount.label("discounts"),
        Booking.subtotal_amount.label("gross_sales"),
        (Booking.subtotal_amount - Booking.discount_amount).label("net_sales"),
        Booking.total_amount.label("total"),
        paid_total.label("paid_total"),
        Booking.balance_due.label("balance_owing"),
    ).select_from(Booking)
    stmt = _with_people(stmt).where(
        *_booking_conditions(filters, zone_scope, grain=Grain.BOOKING)
    )
    return stmt.subquery("booking_facts")


def line_facts(
    filters: SalesFilters, zone_scope: Collection[uuid.UUID] | None
) -> Subquery:
    net = BookingItem.subtotal_amount - BookingItem.discount_amount
    stmt = (
        select(
            *_common_columns(filters),
            BookingItem.id.label("line_id"),
            BookingItem.item_id.label("item_id"),
            Item.name.label("item_name"),
            Item.sku.label("item_sku"),
            Item.category_id.label("category_id"),
            Category.name.label("category_name"),
            literal(1).label("item_quantity"),
            BookingItem.discount_amount.label("discounts"),
            BookingItem.subtotal_amount.label("gross_sales"),
            net.label("net_sales"),
            net.label("total"),
        )
        .select_from(BookingItem)
        .join(Booking, Booking.id == BookingItem.booking_id)
        .join(Item, Item.id == BookingItem.item_id)
        .outerjoin(Category, Category.id == Item.category_id)
    )
    stmt = _with_people(stmt).where(
        *_booking_conditions(filters, zone_scope, grain=Grain.LINE)
    )
    return stmt.subquery("line_facts")


def product_facts(
    filters: SalesFilters, zone_scope: Collection[uuid.UUID] | None
) -> Subquery:
    gross = BookingProduct.quantity * BookingProduct.unit_price
    net = gross - BookingProduct.discount_amount
    stmt = (
        select(
            *_common_columns(filters),
            BookingProduct.id.label("line_id"),
            BookingProduct.menu_item_id.label("menu_item_id"),
            MenuItem.name.label("product_name"),
            MenuItem.category.label("product_category"),
            BookingProduct.quantity.label("item_quantity"),
            BookingProduct.discount_amount.label("discounts"),
            gross.label("gross_sales"),
            net.label("net_sales"),
            net.label("total"),
        )
        .select_from(BookingProduct)
        .join(Booking, Booking.id == BookingProduct.booking_id)
        .join(MenuItem, MenuItem.id == BookingProduct.menu_item_id)
    )
    stmt = _with_people(stmt).where(
        *_booking_conditions(filters, zone_scope, grain=Grain.PRODUCT)
    )
    return stmt.subquery("product_facts")


_FACT_BUILDERS = {
    Grain.BOOKING: booking_facts,
    Grain.LINE: line_facts,
    Grain.PRODUCT: product_facts,
}


def build_facts(
    spec: AggregationSpec,
    filters: SalesFilters,
    zone_scope: Collection[uuid.UUID] | None,
) -> Subquery:
    return _FACT_BUILDERS[spec.grain](filters, zone_scope)


def _aggregates(spec: AggregationSpec, facts: Subquery) -> list[ColumnElement]:
    columns = [
        func.count(distinct(facts.c.booking_id)).label("booking_count"),
        func.coalesce(func.sum(facts.c.item_quantity), 0).label("item_quantity"),
        func.coalesce(func.sum(facts.c.discounts), 0).label("discounts"),
        func.coalesce(func.sum(facts.c.gross_sales), 0).label("gross_sales"),
        func.coalesce(func.sum(facts.c.net_sales), 0).label("net_sales"),
        func.coalesce(func.sum(facts.c.total), 0).label("total"),
    ]
    if spec.with_payments:
        columns.extend(
            [
                func.coalesce(func.sum(facts.c.paid_total), 0).label("paid_total"),
                func.coalesce(func.sum(facts.c.balance_owing), 0).label("balance_owing"),
            ]
        )
    return columns


def _key_filter(spec: AggregationSpec, facts: Subquery) -> list[ColumnElement[bool]]:
    return [facts.c[spec.key].is_not(None)] if spec.require_key else []


def data_statement(spec: AggregationSpec, facts: Subquery, filters: SalesFilters) -> Select:
    key = facts.c[spec.key]
    labels = [facts.c[name] for name in spec.labels]
    stmt = (
        select(key.label("id"), *labels, *_aggregates(spec, facts))
        .where(*_key_filter(spec, facts))
        .group_by(key, *labels)
    )
    if spec.order == "key":
        stmt = stmt.order_by(key.desc())
    elif spec.order == "created_at":
        stmt = stmt.order_by(facts.c.created_at.desc(), key)
    else:
        stmt = stmt.order_by(func.coalesce(func.sum(facts.c.total), 0).desc(), key)
    return stmt.limit(filters.limit).offset(filters.offset)


def count_statement(spec: AggregationSpec, facts: Subquery) -> Select:
    groups = (
        select(facts.c[spec.key])
        .where(*_key_filter(spec, facts))
        .group_by(facts.c[spec.key])
        .subquery("groups")
    )
    return select(func.count()).select_from(groups)


def summary_statement(spec: AggregationSpec, facts: Subquery) -> Select:
    return select(*_aggregates(spec, facts)).where(*_key_filter(spec, facts))
