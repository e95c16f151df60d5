"""Versioned API router."""

from fastapi import APIRouter

from . import health, invoices, pricing, reports, sales, settings

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(pricing.router, tags=["pricing"])
router.include_router(settings.router, tags=["settings"])
router.include_router(sales.router, tags=["sales"])
router.include_router(invoices.router, tags=["invoices"])
router.include_router(reports.router, tags=["reports"])

__all__ = ["router"]
