"""Zone listing and audited settings updates."""
from __future__ import annotations

import uuid
from collections.abc import Collection, Mapping
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.models import DepositType, Zone, ZoneSettingsHistory

SETTINGS_FIELDS = (
    "tax_enabled",
    "tax_rate",
    "tax_name",
    "deposit_type",
    "deposit_value",
    "commission_type",
    "commission_value",
    "min_stay_nights",
)


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    return getattr(value, "value", value)


def _same(old: Any, new: Any) -> bool:
    if old is None or new is None:
        return old is new
    if isinstance(old, Decimal) or isinstance(new, Decimal):
        return Decimal(str(old)) == Decimal(str(new))
    return _json_value(old) == _json_value(new)


def _validate_settings(changes: Mapping[str, Any], zone: Zone) -> None:
    tax_rate = changes.get("tax_rate")
    if tax_rate is not None and not Decimal(0) <= Decimal(tax_rate) <= Decimal(100):
        raise ValueError("tax_rate must be between 0 and 100")
    deposit_type = changes.get("deposit_type", zone.deposit_type)
    deposit_value = changes.get("deposit_value")
    if deposit_value is not None:
        if Decimal(deposit_value) < 0:
            raise ValueError("deposit_value must not be negative")
        if deposit_type == DepositType.PERCENTAGE and Decimal(deposit_value) > 100:
            raise ValueError("Percentage deposit must not exceed 100")
    commission_value = changes.get("commission_value")
    if commission_value is not None and Decimal(commission_value) < 0:
        raise ValueError("commission_value must not be negative")
    min_stay = changes.get("min_stay_nights")
    if min_stay is not None and min_stay < 1:
        raise ValueError("min_stay_nights must be at least 1")


async def list_zones(
    session: AsyncSession, *, zone_scope: Collection[uuid.UUID] | None
) -> list[Zone]:
    stmt = select(Zone).order_by(Zone.created_at)
    if zone_scope is not None:
        if not zone_scope:
            return []
        stmt = stmt.where(Zone.id.in_(list(zone_scope)))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_zone(session: AsyncSession, *, zone_id: uuid.UUID) -> Zone | None:
    return await session.get(Zone, zone_id)


async def update_settings(
    session: AsyncSession,
    *,
    zone: Zone,
    changes: Mapping[str, Any],
    change_reason: str | None = None,
    changed_by_user_id: uuid.UUID | None = None,
) -> list[ZoneSettingsHistory]:
    """Apply settings changes and log one history row per changed field."""

    changes = {name: value for name, value in changes.items() if name in SETTINGS_FIELDS}
    _validate_settings(changes, zone)

    entries: list[ZoneSettingsHistory] = []
    for name, new_value in changes.items():
        old_value = getattr(zone, name)
        if _same(old_value, new_value):
            continue
        setattr(zone, name, new_value)
        entry = ZoneSettingsHistory(
            zone_id=zone.id,
            field=name,
            old_value=_json_value(old_value),
            new_value=_json_value(new_value),
            change_reason=change_reason,
            changed_by_user_id=changed_by_user_id,
        )
        session.add(entry)
        entries.append(entry)

    if entries:
        await session.commit()
        await session.refresh(zone)
    return entries


async def list_settings_history(
    session: AsyncSession, *, zone_id: uuid.UUID, limit: int = 100
) -> list[ZoneSettingsHistory]:
    stmt = (
        select(ZoneSettingsHistory)
        .where(ZoneSettingsHistory.zone_id == zone_id)
        .order_by(ZoneSettingsHistory.created_at.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
