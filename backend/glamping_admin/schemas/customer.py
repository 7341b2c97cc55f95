"""Pydantic schemas for customers."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CustomerRead(BaseModel):
    """Serialized customer representation."""

    id: uuid.UUID
    first_name: str
    last_name: str
    full_name: str
    email: str | None
    phone: str | None
    country: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
