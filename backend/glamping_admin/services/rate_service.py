"""Nightly rate resolution for accommodation items."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from glamping_admin.models import Item, PricingEvent, pricing_event_items
from glamping_admin.services.money import money_str, to_money

logger = logging.getLogger(__name__)

UNLIMITED_STOCK = 999

PER_NIGHT = "per_night"
PER_STAY = "per_stay"
PER_HOUR = "per_hour"
PER_PERSON = "per_person"
PER_GROUP = "per_group"

_EVENT_TYPE_RANK = {"closure": 1, "special": 2, "seasonal": 3}


@dataclass(slots=True, frozen=True)
class DateRange:
    check_in: date
    check_out: date

    def __post_init__(self) -> None:
        if self.check_out < self.check_in:
            raise ValueError("check_out must not be before check_in")

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days


@dataclass(slots=True, frozen=True)
class PriceTier:
    """One configured price of a guest parameter on an item."""

    parameter_id: str
    amount: Decimal
    group_min: int | None = None
    group_max: int | None = None
    pricing_mode: str = PER_PERSON
    event_id: str | None = None

    @property
    def is_base(self) -> bool:
        return self.group_min is None and self.group_max is None


@dataclass(slots=True, frozen=True)
class YieldThreshold:
    stock: int
    rate_adjustment: Decimal


@dataclass(slots=True, frozen=True)
class EventRule:
    """A pricing event as seen by one item."""

    id: str
    event_type: str
    start_date: date
    end_date: date | None = None
    days_of_week: tuple[int, ...] = ()
    pricing_type: str = "base_price"
    dynamic_value: Decimal | None = None
    dynamic_mode: str | None = None
    yield_thresholds: tuple[YieldThreshold, ...] = ()
    display_order: int = 0
    created_at: datetime | None = None
    status: str = "available"

    def covers(self, night: date) -> bool:
        if self.status != "available":
            return False
        if night < self.start_date:
            return False
        if self.end_date is not None and night > self.end_date:
            return False
        if self.days_of_week and weekday_index(night) not in self.days_of_week:
            return False
        return True


@dataclass(slots=True)
class ItemPricing:
    """Everything the resolver needs to price one item."""

    pricing_rate: str
    tiers: list[PriceTier] = field(default_factory=list)
    events: list[EventRule] = field(default_factory=list)
    remaining_inventory: int | None = None


@dataclass(slots=True)
class NightlyRate:
    """Resolved unit prices and charge for a single night."""

    date: date
    parameters: dict[str, Decimal]
    pricing_modes: dict[str, str]
    subtotal: Decimal
    chargeable: bool = True
    event_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "parameters": {key: money_str(value) for key, value in self.parameters.items()},
            "pricing_modes": dict(self.pricing_modes),
            "subtotal": money_str(self.subtotal),
            "chargeable": self.chargeable,
            "event_id": self.event_id,
        }


def weekday_index(day: date) -> int:
    """Weekday with Sunday as 0 and Saturday as 6."""
    return (day.weekday() + 1) % 7


def find_tier(tiers: Iterable[PriceTier], quantity: int) -> PriceTier | None:
    """Pick the group tier covering ``quantity``, else the base tier."""
    tiers = list(tiers)
    for tier in tiers:
        if (
            tier.group_min is not None
            and tier.group_max is not None
            and tier.group_min <= quantity <= tier.group_max
        ):
            return tier
    for tier in tiers:
        if tier.is_base:
            return tier
    return None


def dynamic_price(base: Decimal, value: Decimal, mode: str) -> Decimal:
    if mode == "percent":
        return to_money(base * (1 + value / Decimal(100)))
    return to_money(base + value)


def find_yield_threshold(
    thresholds: Iterable[YieldThreshold], remaining_stock: int
) -> YieldThreshold | None:
    """Return the crossed threshold with the highest stock level."""
    crossed = [threshold for threshold in thresholds if threshold.stock <= remaining_stock]
    if not crossed:
        return None
    return max(crossed, key=lambda threshold: threshold.stock)


def event_price(
    base: Decimal, event: EventRule, *, remaining_stock: int | None = None
) -> Decimal:
    """Apply a dynamic or yield event to a base unit price."""
    if base <= 0:
        logger.warning("Non-positive base price %s for event %s", base, event.id)
        return Decimal("0.00")
    if event.pricing_type == "dynamic":
        if event.dynamic_value is None or not event.dynamic_mode:
            logger.warning("Dynamic event %s has no value or mode", event.id)
            return base
        return dynamic_price(base, event.dynamic_value, event.dynamic_mode)
    if event.pricing_type == "yield":
        stock = UNLIMITED_STOCK if remaining_stock is None else remaining_stock
        threshold = find_yield_threshold(event.yield_thresholds, stock)
        if threshold is None:
            return base
        return to_money(base * (1 + threshold.rate_adjustment / Decimal(100)))
    return base


def sort_events(events: Iterable[EventRule]) -> list[EventRule]:
    """Order events by type rank, display order (desc) and recency."""

    def _created(event: EventRule) -> float:
        return event.created_at.timestamp() if event.created_at else 0.0

    return sorted(
        events,
        key=lambda event: (
            _EVENT_TYPE_RANK.get(event.event_type, 4),
            -event.display_order,
            -_created(event),
        ),
    )


def _resolve_unit_price(
    item: ItemPricing,
    parameter_id: str,
    quantity: int,
    events: list[EventRule],
) -> tuple[Decimal, str, str | None]:
    lookup_quantity = max(quantity, 1)
    base_tiers = [
        tier for tier in item.tiers if tier.parameter_id == parameter_id and tier.event_id is None
    ]
    base_tier = find_tier(base_tiers, lookup_quantity)
    base_mode = base_tier.pricing_mode if base_tier is not None else PER_PERSON

    for event in events:
        if event.pricing_type == "new_price":
            event_tiers = [
                tier
                for tier in item.tiers
                if tier.parameter_id == parameter_id and tier.event_id == event.id
            ]
            event_tier = find_tier(event_tiers, lookup_quantity)
            if event_tier is None:
                continue
            return to_money(event_tier.amount), base_mode, event.id
        if base_tier is None:
            break
        amount = event_price(
            to_money(base_tier.amount),
            event,
            remaining_stock=item.remaining_inventory,
        )
        return amount, base_mode, event.id

    if base_tier is None:
        logger.warning("No price configured for parameter %s", parameter_id)
        return Decimal("0.00"), PER_PERSON, None
    return to_money(base_tier.amount), base_mode, None


def _charge(unit: Decimal, mode: str, quantity: int) -> Decimal:
    if mode == PER_GROUP:
        return unit if quantity > 0 else Decimal("0.00")
    return unit * quantity


def resolve_nightly_rate(
    item: ItemPricing,
    date_range: DateRange,
    guest_parameters: Mapping[str, int],
) -> list[NightlyRate]:
    """Resolve a per-night price breakdown for an item and party."""

    pricing_rate = item.pricing_rate
    if pricing_rate not in (PER_NIGHT, PER_STAY, PER_HOUR):
        logger.warning("Unknown pricing rate %r, using per_night", pricing_rate)
        pricing_rate = PER_NIGHT

    nights = [
        date_range.check_in + timedelta(days=offset) for offset in range(date_range.nights)
    ]
    if not nights:
        if pricing_rate == PER_NIGHT:
            return []
        nights = [date_range.check_in]

    ordered_events = sort_events(item.events)
    breakdown: list[NightlyRate] = []
    for index, night in enumerate(nights):
        matching = [event for event in ordered_events if event.covers(night)]
        prices: dict[str, Decimal] = {}
        modes: dict[str, str] = {}
        subtotal = Decimal("0.00")
        matched_event: str | None = None
        for parameter_id, quantity in guest_parameters.items():
            unit, mode, event_id = _resolve_unit_price(
                item, str(parameter_id), int(quantity), matching
            )
            prices[str(parameter_id)] = unit
            modes[str(parameter_id)] = mode
            subtotal += _charge(unit, mode, int(quantity))
            matched_event = matched_event or event_id

        chargeable = pricing_rate == PER_NIGHT or index == 0
        breakdown.append(
            NightlyRate(
                date=night,
                parameters=prices,
                pricing_modes=modes,
                subtotal=to_money(subtotal) if chargeable else Decimal("0.00"),
                chargeable=chargeable,
                event_id=matched_event,
            )
        )
    return breakdown


def line_subtotal(breakdown: Iterable[NightlyRate]) -> Decimal:
    return to_money(sum((night.subtotal for night in breakdown), Decimal("0.00")))


def item_pricing_from_model(
    item: Item,
    events: Iterable[tuple[PricingEvent, int]] = (),
) -> ItemPricing:
    """Build resolver input from an ORM item and its (event, display order) pairs."""

    tiers = [
        PriceTier(
            parameter_id=str(price.parameter_id),
            amount=Decimal(price.amount),
            group_min=price.group_min,
            group_max=price.group_max,
            pricing_mode=getattr(price.pricing_mode, "value", price.pricing_mode),
            event_id=str(price.event_id) if price.event_id else None,
        )
        for price in item.prices
    ]
    rules = [_event_rule(event, display_order) for event, display_order in events]
    remaining = None if item.unlimited_inventory else item.inventory_quantity
    return ItemPricing(
        pricing_rate=item.pricing_rate,
        tiers=tiers,
        events=rules,
        remaining_inventory=remaining,
    )


def _event_rule(event: PricingEvent, display_order: int) -> EventRule:
    thresholds = tuple(
        YieldThreshold(
            stock=int(entry.get("stock", 0)),
            rate_adjustment=Decimal(str(entry.get("rate_adjustment", 0))),
        )
        for entry in (event.yield_thresholds or [])
    )
    return EventRule(
        id=str(event.id),
        event_type=getattr(event.event_type, "value", event.event_type),
        start_date=event.start_date,
        end_date=event.end_date,
        days_of_week=tuple(event.days_of_week or ()),
        pricing_type=getattr(event.pricing_type, "value", event.pricing_type),
        dynamic_value=event.dynamic_pricing_value,
        dynamic_mode=getattr(event.dynamic_pricing_mode, "value", event.dynamic_pricing_mode),
        yield_thresholds=thresholds,
        display_order=display_order or 0,
        created_at=event.created_at,
        status=event.status,
    )


async def load_item_pricing(
    session: AsyncSession, *, item_id: UUID
) -> tuple[Item, ItemPricing] | None:
    """Load an item with its price tiers and linked events."""

    item = await session.scalar(
        select(Item).options(selectinload(Item.prices)).where(Item.id == item_id)
    )
    if item is None:
        return None
    rows = await session.execute(
        select(PricingEvent, pricing_event_items.c.display_order)
        .join(pricing_event_items, pricing_event_items.c.event_id == PricingEvent.id)
        .where(pricing_event_items.c.item_id == item_id)
    )
    events = [(event, display_order) for event, display_order in rows.all()]
    return item, item_pricing_from_model(item, events)
