"""Bookable item and menu catalog endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.api import deps
from glamping_admin.models.user import User
from glamping_admin.schemas.catalog import (
    ItemRead,
    MenuItemCreate,
    MenuItemRead,
    MenuItemUpdate,
)
from glamping_admin.security.permissions import (
    MANAGER_ROLES,
    ensure_zone_access,
    require_roles,
)
from glamping_admin.services import catalog_service

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/items", response_model=list[ItemRead], summary="List bookable items")
async def list_items(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[frozenset[uuid.UUID] | None, Depends(deps.get_zone_scope)],
    zone_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
    active_only: bool = True,
) -> list[ItemRead]:
    if zone_id is not None:
        ensure_zone_access(zone_scope, zone_id)
    items = await catalog_service.list_items(
        session,
        zone_scope=zone_scope,
        zone_id=zone_id,
        category_id=category_id,
        active_only=active_only,
    )
    return [ItemRead.model_validate(item) for item in items]


@router.get("/menu-items", response_model=list[MenuItemRead], summary="List menu items")
async def list_menu_items(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    zone_id: uuid.UUID | None = None,
    active_only: bool = False,
) -> list[MenuItemRead]:
    menu_items = await catalog_service.list_menu_items(
        session, zone_id=zone_id, active_only=active_only
    )
    return [MenuItemRead.model_validate(menu_item) for menu_item in menu_items]


@router.post(
    "/menu-items",
    response_model=MenuItemRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create menu item",
)
async def create_menu_item(
    payload: MenuItemCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> MenuItemRead:
    require_roles(current_user, MANAGER_ROLES)
    try:
        menu_item = await catalog_service.create_menu_item(session, payload=payload)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return MenuItemRead.model_validate(menu_item)


@router.patch(
    "/menu-items/{menu_item_id}", response_model=MenuItemRead, summary="Update menu item"
)
async def update_menu_item(
    menu_item_id: uuid.UUID,
    payload: MenuItemUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> MenuItemRead:
    require_roles(current_user, MANAGER_ROLES)
    menu_item = await catalog_service.get_menu_item(session, menu_item_id=menu_item_id)
    if menu_item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Menu item not found"
        )
    try:
        menu_item = await catalog_service.update_menu_item(
            session, menu_item=menu_item, payload=payload
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return MenuItemRead.model_validate(menu_item)
