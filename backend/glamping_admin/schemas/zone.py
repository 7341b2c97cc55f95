"""Pydantic schemas for zones and their settings."""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from glamping_admin.models import CommissionType, DepositType


class ZoneRead(BaseModel):
    id: uuid.UUID
    name: Any
    currency: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ZoneSettingsRead(BaseModel):
    """Tax, deposit, commission and stay settings of a zone."""

    zone_id: uuid.UUID = Field(validation_alias="id")
    tax_enabled: bool
    tax_rate: Decimal
    tax_name: Any
    deposit_type: DepositType
    deposit_value: Decimal
    commission_type: CommissionType
    commission_value: Decimal
    min_stay_nights: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ZoneSettingsUpdate(BaseModel):
    tax_enabled: bool | None = None
    tax_rate: Decimal | None = None
    tax_name: str | dict[str, str] | None = None
    deposit_type: DepositType | None = None
    deposit_value: Decimal | None = None
    commission_type: CommissionType | None = None
    commission_value: Decimal | None = None
    min_stay_nights: int | None = None
    change_reason: str | None = Field(default=None, max_length=500)


class ZoneSettingsHistoryRead(BaseModel):
    id: uuid.UUID
    zone_id: uuid.UUID
    field: str
    old_value: Any
    new_value: Any
    change_reason: str | None
    changed_by_user_id: uuid.UUID | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
