"""Pricing-related API endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.api import deps
from glamping_admin.schemas.pricing import PricingQuoteRead, PricingQuoteRequest
from glamping_admin.security.permissions import ensure_zone_access
from glamping_admin.services import pricing_service

router = APIRouter(prefix="/pricing", tags=["pricing"])

_ITEM_NOT_FOUND = "Item not found"


@router.post("/quote", response_model=PricingQuoteRead, summary="Quote a stay")
async def quote_stay(
    payload: PricingQuoteRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    zone_scope: Annotated[frozenset[uuid.UUID] | None, Depends(deps.get_zone_scope)],
) -> PricingQuoteRead:
    zone_id = await pricing_service.item_zone_id(session, item_id=payload.item_id)
    if zone_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_ITEM_NOT_FOUND)
    ensure_zone_access(zone_scope, zone_id)

    try:
        quote = await pricing_service.quote_stay(
            session,
            item_id=payload.item_id,
            check_in=payload.check_in_date,
            check_out=payload.check_out_date,
            guests=payload.guests,
            voucher_code=payload.voucher_code,
            tax_invoice_required=payload.tax_invoice_required,
            customer_id=payload.customer_id,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    if quote is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_ITEM_NOT_FOUND)
    return PricingQuoteRead.model_validate(quote.to_dict())
