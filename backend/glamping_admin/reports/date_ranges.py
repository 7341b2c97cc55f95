"""Report date presets resolved to inclusive calendar windows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

DATE_PRESETS = (
    "today",
    "yesterday",
    "this_week",
    "this_month",
    "last_month",
    "last_30_days",
    "last_90_days",
    "this_year",
    "custom",
    "all",
)

_ALIASES = {"last_30": "last_30_days", "last_90": "last_90_days"}


@dataclass(slots=True, frozen=True)
class DateWindow:
    """Inclusive date bounds; ``None`` leaves that side open."""

    start: date | None
    end: date | None


def _month_start(value: date) -> date:
    return value.replace(day=1)


def resolve_date_range(
    preset: str,
    *,
    today: date | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> DateWindow | None:
    """Translate a preset name into a window; ``None`` means no date filter."""

    name = _ALIASES.get(preset, preset)
    if name not in DATE_PRESETS:
        raise ValueError(f"Unknown date range preset: {preset}")
    today = today or datetime.now(UTC).date()

    if name == "today":
        return DateWindow(today, today)
    if name == "yesterday":
        yesterday = today - timedelta(days=1)
        return DateWindow(yesterday, yesterday)
    if name == "this_week":
        monday = today - timedelta(days=today.weekday())
        return DateWindow(monday, monday + timedelta(days=6))
    if name == "this_month":
        start = _month_start(today)
        next_month = _month_start(start + timedelta(days=32))
        return DateWindow(start, next_month - timedelta(days=1))
    if name == "last_month":
        end = _month_start(today) - timedelta(days=1)
        return DateWindow(_month_start(end), end)
    if name == "last_30_days":
        return DateWindow(today - timedelta(days=30), None)
    if name == "last_90_days":
        return DateWindow(today - timedelta(days=90), None)
    if name == "this_year":
        return DateWindow(today.replace(month=1, day=1), None)
    if name == "custom":
        if date_from is None or date_to is None:
            return None
        if date_from > date_to:
            raise ValueError("date_from must be on or before date_to")
        return DateWindow(date_from, date_to)
    return None
