"""Common API dependencies."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glamping_admin.core.config import get_settings
from glamping_admin.core.security import decode_access_token
from glamping_admin.db.session import get_session
from glamping_admin.models.user import User
from glamping_admin.security.permissions import accessible_zone_ids

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> User:
    """Authenticate request via bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as exc:
        raise credentials_exception from exc

    subject = payload.get("sub")
    if subject is None:
        raise credentials_exception

    try:
        user_id = uuid.UUID(subject)
    except (ValueError, TypeError) as exc:
        raise credentials_exception from exc

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise credentials_exception
    return user


async def get_zone_scope(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> frozenset[uuid.UUID] | None:
    """Zones visible to the caller; ``None`` means unrestricted."""
    return await accessible_zone_ids(session, current_user)


def get_locale(
    accept_language: Annotated[str | None, Header()] = None,
) -> str:
    """Preferred locale from ``Accept-Language``, else the configured default."""
    settings = get_settings()
    if accept_language:
        primary = accept_language.split(",")[0].split(";")[0].strip().lower()
        code = primary.split("-")[0]
        if code:
            return code
    return settings.default_locale

