"""Customer lookup helpers."""
from __future__ import annotations

import uuid
from typing import Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from glamping_admin.models import Customer


def _base_customer_query(search: str | None = None) -> Select[tuple[Customer]]:
    """Return a base selectable of customers, optionally filtered by a search term."""
    stmt = select(Customer).order_by(Customer.created_at.desc())
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Customer.first_name.ilike(pattern),
                Customer.last_name.ilike(pattern),
                Customer.email.ilike(pattern),
                Customer.phone.ilike(pattern),
            )
        )
    return stmt


async def list_customers(
    session: AsyncSession,
    *,
    search: str | None = None,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Customer]:
    stmt = _base_customer_query(search).offset(skip).limit(limit)
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_customer(
    session: AsyncSession, *, customer_id: uuid.UUID
) -> Customer | None:
    return await session.get(Customer, customer_id)
