"""Reporting schemas."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from glamping_admin.reports.sales_specs import Dimension


class PaginationRead(BaseModel):
    current_page: int
    total_pages: int
    total: int
    limit: int
    has_next_page: bool
    has_previous_page: bool

    model_config = ConfigDict(from_attributes=True)


class FilterOption(BaseModel):
    value: str
    label: str


class SalesReportRead(BaseModel):
    """One page of aggregated rows plus the whole-result summary."""

    dimension: Dimension
    rows: list[dict[str, Any]]
    summary: dict[str, Any]
    pagination: PaginationRead
    filter_options: dict[str, list[FilterOption]]

    model_config = ConfigDict(from_attributes=True)
