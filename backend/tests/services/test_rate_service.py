"""Tests for nightly rate resolution."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from glamping_admin.services.rate_service import (
    DateRange,
    EventRule,
    ItemPricing,
    PriceTier,
    YieldThreshold,
    event_price,
    find_tier,
    line_subtotal,
    resolve_nightly_rate,
    sort_events,
    weekday_index,
)

ADULT = "adult"
CHILD = "child"


def _pricing(rate: str = "per_night", **kwargs) -> ItemPricing:
    tiers = kwargs.pop(
        "tiers",
        [
            PriceTier(parameter_id=ADULT, amount=Decimal("1000000")),
            PriceTier(parameter_id=CHILD, amount=Decimal("400000")),
        ],
    )
    return ItemPricing(pricing_rate=rate, tiers=tiers, **kwargs)


def test_weekday_index_starts_on_sunday() -> None:
    assert weekday_index(date(2025, 6, 1)) == 0  # Sunday
    assert weekday_index(date(2025, 6, 7)) == 6  # Saturday


def test_date_range_rejects_reversed_dates() -> None:
    with pytest.raises(ValueError):
        DateRange(date(2025, 6, 3), date(2025, 6, 1))


def test_per_night_charges_every_night() -> None:
    breakdown = resolve_nightly_rate(
        _pricing(), DateRange(date(2025, 6, 1), date(2025, 6, 3)), {ADULT: 2, CHILD: 1}
    )
    assert [night.date for night in breakdown] == [date(2025, 6, 1), date(2025, 6, 2)]
    assert all(night.subtotal == Decimal("2400000.00") for night in breakdown)
    assert line_subtotal(breakdown) == Decimal("4800000.00")


def test_zero_nights_per_night_is_empty() -> None:
    breakdown = resolve_nightly_rate(
        _pricing(), DateRange(date(2025, 6, 1), date(2025, 6, 1)), {ADULT: 2}
    )
    assert breakdown == []


@pytest.mark.parametrize("rate", ["per_stay", "per_hour"])
def test_non_nightly_rates_charge_first_night_only(rate: str) -> None:
    breakdown = resolve_nightly_rate(
        _pricing(rate), DateRange(date(2025, 6, 1), date(2025, 6, 4)), {ADULT: 1}
    )
    assert len(breakdown) == 3
    assert breakdown[0].chargeable is True
    assert [night.subtotal for night in breakdown[1:]] == [Decimal("0.00")] * 2
    assert line_subtotal(breakdown) == Decimal("1000000.00")


def test_zero_nights_per_stay_still_charges_once() -> None:
    breakdown = resolve_nightly_rate(
        _pricing("per_stay"), DateRange(date(2025, 6, 1), date(2025, 6, 1)), {ADULT: 1}
    )
    assert len(breakdown) == 1
    assert breakdown[0].subtotal == Decimal("1000000.00")


def test_unknown_rate_falls_back_to_per_night() -> None:
    breakdown = resolve_nightly_rate(
        _pricing("per_fortnight"), DateRange(date(2025, 6, 1), date(2025, 6, 3)), {ADULT: 1}
    )
    assert line_subtotal(breakdown) == Decimal("2000000.00")


def test_group_tier_preferred_over_base() -> None:
    tiers = [
        PriceTier(parameter_id=ADULT, amount=Decimal("1000000")),
        PriceTier(parameter_id=ADULT, amount=Decimal("800000"), group_min=4, group_max=8),
    ]
    assert find_tier(tiers, 2).amount == Decimal("1000000")
    assert find_tier(tiers, 5).amount == Decimal("800000")
    assert find_tier([], 1) is None


def test_per_group_mode_charges_once_per_party() -> None:
    tiers = [
        PriceTier(parameter_id=ADULT, amount=Decimal("1500000"), pricing_mode="per_group"),
    ]
    stay = DateRange(date(2025, 6, 1), date(2025, 6, 2))
    [night] = resolve_nightly_rate(_pricing(tiers=tiers), stay, {ADULT: 4})
    assert night.subtotal == Decimal("1500000.00")
    [empty] = resolve_nightly_rate(_pricing(tiers=tiers), stay, {ADULT: 0})
    assert empty.subtotal == Decimal("0.00")


def test_missing_price_resolves_to_zero() -> None:
    [night] = resolve_nightly_rate(
        _pricing(), DateRange(date(2025, 6, 1), date(2025, 6, 2)), {"pet": 1}
    )
    assert night.parameters["pet"] == Decimal("0.00")
    assert night.subtotal == Decimal("0.00")


def test_dynamic_event_applies_on_covered_weekdays() -> None:
    weekend = EventRule(
        id="weekend",
        event_type="special",
        start_date=date(2025, 1, 1),
        days_of_week=(5, 6),
        pricing_type="dynamic",
        dynamic_value=Decimal("20"),
        dynamic_mode="percent",
    )
    breakdown = resolve_nightly_rate(
        _pricing(events=[weekend]),
        DateRange(date(2025, 6, 5), date(2025, 6, 8)),  # Thu, Fri, Sat
        {ADULT: 1},
    )
    assert [night.subtotal for night in breakdown] == [
        Decimal("1000000.00"),
        Decimal("1200000.00"),
        Decimal("1200000.00"),
    ]
    assert breakdown[0].event_id is None
    assert breakdown[1].event_id == "weekend"


def test_new_price_event_uses_event_tiers_and_base_mode() -> None:
    tiers = [
        PriceTier(parameter_id=ADULT, amount=Decimal("1000000"), pricing_mode="per_group"),
        PriceTier(parameter_id=ADULT, amount=Decimal("2500000"), event_id="tet"),
    ]
    tet = EventRule(
        id="tet",
        event_type="seasonal",
        start_date=date(2025, 1, 28),
        end_date=date(2025, 2, 2),
        pricing_type="new_price",
    )
    [night] = resolve_nightly_rate(
        _pricing(tiers=tiers, events=[tet]),
        DateRange(date(2025, 1, 29), date(2025, 1, 30)),
        {ADULT: 3},
    )
    assert night.parameters[ADULT] == Decimal("2500000.00")
    assert night.pricing_modes[ADULT] == "per_group"
    assert night.subtotal == Decimal("2500000.00")


def test_yield_event_picks_highest_crossed_threshold() -> None:
    event = EventRule(
        id="yield",
        event_type="special",
        start_date=date(2025, 1, 1),
        pricing_type="yield",
        yield_thresholds=(
            YieldThreshold(stock=2, rate_adjustment=Decimal("30")),
            YieldThreshold(stock=5, rate_adjustment=Decimal("10")),
        ),
    )
    base = Decimal("1000000.00")
    assert event_price(base, event, remaining_stock=6) == Decimal("1100000.00")
    assert event_price(base, event, remaining_stock=3) == Decimal("1300000.00")
    assert event_price(base, event, remaining_stock=1) == base
    # Unlimited inventory counts as plenty of stock.
    assert event_price(base, event, remaining_stock=None) == Decimal("1100000.00")


def test_event_on_non_positive_base_is_free() -> None:
    event = EventRule(
        id="dyn",
        event_type="special",
        start_date=date(2025, 1, 1),
        pricing_type="dynamic",
        dynamic_value=Decimal("100000"),
        dynamic_mode="fixed",
    )
    assert event_price(Decimal("0"), event) == Decimal("0.00")


def test_closed_event_is_ignored() -> None:
    event = EventRule(
        id="off",
        event_type="special",
        start_date=date(2025, 1, 1),
        pricing_type="dynamic",
        dynamic_value=Decimal("50"),
        dynamic_mode="percent",
        status="unavailable",
    )
    [night] = resolve_nightly_rate(
        _pricing(events=[event]), DateRange(date(2025, 6, 1), date(2025, 6, 2)), {ADULT: 1}
    )
    assert night.subtotal == Decimal("1000000.00")


def test_sort_events_by_type_then_display_order_then_recency() -> None:
    older = datetime(2025, 1, 1, tzinfo=timezone.utc)
    newer = datetime(2025, 2, 1, tzinfo=timezone.utc)
    events = [
        EventRule(id="seasonal", event_type="seasonal", start_date=date(2025, 1, 1)),
        EventRule(id="special-low", event_type="special", start_date=date(2025, 1, 1)),
        EventRule(
            id="special-high",
            event_type="special",
            start_date=date(2025, 1, 1),
            display_order=5,
        ),
        EventRule(
            id="closure-old", event_type="closure", start_date=date(2025, 1, 1), created_at=older
        ),
        EventRule(
            id="closure-new", event_type="closure", start_date=date(2025, 1, 1), created_at=newer
        ),
    ]
    assert [event.id for event in sort_events(events)] == [
        "closure-new",
        "closure-old",
        "special-high",
        "special-low",
        "seasonal",
    ]
