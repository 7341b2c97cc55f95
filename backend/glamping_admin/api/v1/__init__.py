"""Versioned API router."""

from fastapi import APIRouter

from . import (
    bookings,
    catalog,
    customers,
    discounts,
    health,
    pricing,
    reports,
    vouchers,
    zones,
)

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(pricing.router)
router.include_router(bookings.router)
router.include_router(discounts.router)
router.include_router(vouchers.router)
router.include_router(zones.router)
router.include_router(reports.router)
router.include_router(catalog.router)
router.include_router(customers.router)

__all__ = ["router"]
