"""Role and zone helpers for explicit authorization checks."""

from __future__ import annotations

import uuid

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.models.user import ZONE_RESTRICTED_ROLES, User, UserRole, UserZone

STAFF_ROLES = frozenset(UserRole)
MANAGER_ROLES = frozenset({UserRole.ADMIN, UserRole.OPERATIONS})


class ZoneAccessError(PermissionError):
    """Raised when a caller asks for a zone outside their assignment."""


def require_roles(user: User, allowed: set[UserRole] | frozenset[UserRole]) -> None:
    """Raise HTTP 403 if a user is not a member of the allowed role set."""

    if user.role not in allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )


async def accessible_zone_ids(
    session: AsyncSession, user: User
) -> frozenset[uuid.UUID] | None:
    """Zones the user may see; ``None`` means every zone."""

    if user.role not in ZONE_RESTRICTED_ROLES:
        return None
    result = await session.execute(
        select(UserZone.zone_id).where(UserZone.user_id == user.id)
    )
    return frozenset(result.scalars().all())


def resolve_zone_scope(
    scope: frozenset[uuid.UUID] | None, zone_id: uuid.UUID | None
) -> frozenset[uuid.UUID] | None:
    """Narrow a scope to an explicitly requested zone.

    An explicit zone outside a restricted scope raises ``ZoneAccessError``.
    """

    if zone_id is None:
        return scope
    if scope is not None and zone_id not in scope:
        raise ZoneAccessError(f"Zone {zone_id} is outside the caller's scope")
    return frozenset({zone_id})


def ensure_zone_access(scope: frozenset[uuid.UUID] | None, zone_id: uuid.UUID) -> None:
    """Raise HTTP 403 when a single record's zone is outside the scope."""

    if scope is not None and zone_id not in scope:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access to this zone is not permitted",
        )


__all__ = [
    "MANAGER_ROLES",
    "STAFF_ROLES",
    "ZoneAccessError",
    "accessible_zone_ids",
    "ensure_zone_access",
    "require_roles",
    "resolve_zone_scope",
]
