"""Zone listing and settings endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.api import deps
from glamping_admin.models import Zone
from glamping_admin.models.user import User
from glamping_admin.schemas.zone import (
    ZoneRead,
    ZoneSettingsHistoryRead,
    ZoneSettingsRead,
    ZoneSettingsUpdate,
)
from glamping_admin.security.permissions import (
    MANAGER_ROLES,
    ensure_zone_access,
    require_roles,
)
from glamping_admin.services import zone_service

router = APIRouter(prefix="/zones", tags=["zones"])

ZoneScope = frozenset[uuid.UUID] | None


async def _get_zone_or_404(
    session: AsyncSession, zone_id: uuid.UUID, zone_scope: ZoneScope
) -> Zone:
    zone = await zone_service.get_zone(session, zone_id=zone_id)
    if zone is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Zone not found")
    ensure_zone_access(zone_scope, zone.id)
    return zone


@router.get("", response_model=list[ZoneRead], summary="List zones")
async def list_zones(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> list[ZoneRead]:
    zones = await zone_service.list_zones(session, zone_scope=zone_scope)
    return [ZoneRead.model_validate(zone) for zone in zones]


@router.get(
    "/{zone_id}/settings", response_model=ZoneSettingsRead, summary="Get zone settings"
)
async def get_zone_settings(
    zone_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> ZoneSettingsRead:
    zone = await _get_zone_or_404(session, zone_id, zone_scope)
    return ZoneSettingsRead.model_validate(zone)


@router.patch(
    "/{zone_id}/settings",
    response_model=ZoneSettingsRead,
    summary="Update zone settings",
)
async def update_zone_settings(
    zone_id: uuid.UUID,
    payload: ZoneSettingsUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
) -> ZoneSettingsRead:
    require_roles(current_user, MANAGER_ROLES)
    zone = await _get_zone_or_404(session, zone_id, zone_scope)
    changes = payload.model_dump(exclude_unset=True, exclude={"change_reason"})
    try:
        await zone_service.update_settings(
            session,
            zone=zone,
            changes=changes,
            change_reason=payload.change_reason,
            changed_by_user_id=current_user.id,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return ZoneSettingsRead.model_validate(zone)


@router.get(
    "/{zone_id}/settings/history",
    response_model=list[ZoneSettingsHistoryRead],
    summary="Zone settings change log",
)
async def list_settings_history(
    zone_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[ZoneScope, Depends(deps.get_zone_scope)],
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[ZoneSettingsHistoryRead]:
    await _get_zone_or_404(session, zone_id, zone_scope)
    entries = await zone_service.list_settings_history(
        session, zone_id=zone_id, limit=limit
    )
    return [ZoneSettingsHistoryRead.model_validate(entry) for entry in entries]
