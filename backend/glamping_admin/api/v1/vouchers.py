"""Voucher validation endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.api import deps
from glamping_admin.models.user import User
from glamping_admin.schemas.discount import VoucherValidateRequest, VoucherValidateResponse
from glamping_admin.services import voucher_service

router = APIRouter(prefix="/vouchers", tags=["vouchers"])


@router.post(
    "/validate", response_model=VoucherValidateResponse, summary="Validate voucher code"
)
async def validate_voucher(
    payload: VoucherValidateRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> VoucherValidateResponse:
    try:
        validation = await voucher_service.validate_voucher(
            session,
            code=payload.code,
            order_amount=payload.order_amount,
            zone_id=payload.zone_id,
            category_id=payload.category_id,
            item_id=payload.item_id,
            check_in=payload.check_in_date,
            customer_id=payload.customer_id,
            application_type=payload.application_type.value,
        )
    except voucher_service.VoucherNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc

    voucher, check = validation.discount, validation.check
    return VoucherValidateResponse(
        valid=check.valid,
        code=voucher.code or payload.code,
        discount_id=voucher.id,
        discount_type=voucher.discount_type,
        value=voucher.value,
        scope=voucher.scope,
        discount_amount=check.discount_amount,
        reason=check.reason,
    )
