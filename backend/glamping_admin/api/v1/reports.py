"""Reporting endpoints."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.api import deps
from glamping_admin.core.config import get_settings
from glamping_admin.reports.sales_specs import MAX_PAGE_SIZE, DateSource, Dimension, SalesFilters
from glamping_admin.schemas.report import SalesReportRead
from glamping_admin.security.permissions import ZoneAccessError, resolve_zone_scope
from glamping_admin.services import sales_report_service

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get(
    "/booking-sales", response_model=SalesReportRead, summary="Booking sales report"
)
async def booking_sales_report(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[frozenset[uuid.UUID] | None, Depends(deps.get_zone_scope)],
    locale: Annotated[str, Depends(deps.get_locale)],
    dimension: Dimension = Dimension.DAY,
    date_range: str = "this_month",
    date_source: DateSource = DateSource.CREATED,
    date_from: date | None = None,
    date_to: date | None = None,
    staff_id: uuid.UUID | None = None,
    category_id: uuid.UUID | None = None,
    item_id: uuid.UUID | None = None,
    zone_id: uuid.UUID | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=MAX_PAGE_SIZE)] = None,
) -> SalesReportRead:
    try:
        scope = resolve_zone_scope(zone_scope, zone_id)
    except ZoneAccessError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    try:
        filters = SalesFilters(
            date_range=date_range,
            date_source=date_source,
            date_from=date_from,
            date_to=date_to,
            staff_id=staff_id,
            category_id=category_id,
            item_id=item_id,
            zone_id=zone_id,
            page=page,
            limit=limit or get_settings().report_page_size,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc

    report = await sales_report_service.aggregate(
        session, dimension=dimension, filters=filters, zone_scope=scope, locale=locale
    )
    return SalesReportRead.model_validate(report)
