"""Discount and voucher configuration endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.api import deps
from glamping_admin.models import Discount, DiscountCategory
from glamping_admin.models.user import User
from glamping_admin.schemas.discount import DiscountCreate, DiscountRead, DiscountUpdate
from glamping_admin.security.permissions import MANAGER_ROLES, require_roles
from glamping_admin.services import discount_config_service
from glamping_admin.services.discount_config_service import DiscountValidationError

router = APIRouter(prefix="/discounts", tags=["discounts"])


def _unprocessable(exc: DiscountValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=[{"loc": ["body", exc.field], "msg": exc.message, "type": "value_error"}],
    )


async def _get_discount_or_404(session: AsyncSession, discount_id: uuid.UUID) -> Discount:
    discount = await discount_config_service.get_discount(session, discount_id=discount_id)
    if discount is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Discount not found"
        )
    return discount


@router.get("", response_model=list[DiscountRead], summary="List discounts")
async def list_discounts(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
    category: DiscountCategory | None = None,
    active_only: bool = False,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=200)] = 100,
) -> list[DiscountRead]:
    discounts = await discount_config_service.list_discounts(
        session, category=category, active_only=active_only, skip=skip, limit=limit
    )
    return [DiscountRead.model_validate(discount) for discount in discounts]


@router.post(
    "",
    response_model=DiscountRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create discount",
)
async def create_discount(
    payload: DiscountCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> DiscountRead:
    require_roles(current_user, MANAGER_ROLES)
    try:
        discount = await discount_config_service.create_discount(
            session, data=payload.model_dump()
        )
    except DiscountValidationError as exc:
        raise _unprocessable(exc) from exc
    return DiscountRead.model_validate(discount)


@router.get("/{discount_id}", response_model=DiscountRead, summary="Get discount")
async def get_discount(
    discount_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> DiscountRead:
    discount = await _get_discount_or_404(session, discount_id)
    return DiscountRead.model_validate(discount)


@router.patch("/{discount_id}", response_model=DiscountRead, summary="Update discount")
async def update_discount(
    discount_id: uuid.UUID,
    payload: DiscountUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> DiscountRead:
    require_roles(current_user, MANAGER_ROLES)
    discount = await _get_discount_or_404(session, discount_id)
    try:
        discount = await discount_config_service.update_discount(
            session, discount=discount, changes=payload.model_dump(exclude_unset=True)
        )
    except DiscountValidationError as exc:
        raise _unprocessable(exc) from exc
    return DiscountRead.model_validate(discount)


@router.delete(
    "/{discount_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete discount",
)
async def delete_discount(
    discount_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_user)],
) -> Response:
    require_roles(current_user, MANAGER_ROLES)
    discount = await _get_discount_or_404(session, discount_id)
    await discount_config_service.delete_discount(session, discount=discount)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
