"""Pricing quote endpoint."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import raise_http_error
from app.core.config import get_settings
from app.core.errors import SettlementError
from app.schemas.pricing import PricingQuoteRead, PricingQuoteRequest
from app.services import pricing_service, settings_service

router = APIRouter(prefix="/pricing")

_SECONDS_BY_WINDOW = {
    "second": 1,
    "seconds": 1,
    "minute": 60,
    "minutes": 60,
    "hour": 3600,
    "hours": 3600,
    "day": 86400,
    "days": 86400,
}


def _parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    try:
        count_str, window_str = value.split("/", 1)
        count = int(count_str.strip())
    except ValueError:
        return fallback
    seconds = _SECONDS_BY_WINDOW.get(window_str.strip().lower(), fallback[1])
    return count, seconds


_QUOTE_LIMIT = _parse_rate(get_settings().rate_limit_quote, fallback=(120, 60))


async def _quote_rate_limit(request: Request, response: Response) -> None:
    if FastAPILimiter.redis is None:
        return None
    limiter = RateLimiter(times=_QUOTE_LIMIT[0], seconds=_QUOTE_LIMIT[1])
    await limiter(request, response)


@router.post(
    "/quote",
    response_model=PricingQuoteRead,
    summary="Quote a cart",
    dependencies=[Depends(_quote_rate_limit)],
)
async def quote_cart(
    payload: PricingQuoteRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> PricingQuoteRead:
    """Price a cart with the tenant's current rules (same path as checkout)."""
    rule_set = await settings_service.get_rule_set(session, tenant_id=tenant_id)
    line_items = [
        pricing_service.LineItem(
            quantity=item.quantity,
            unit_price=item.unit_price,
            service_id=str(item.service_id) if item.service_id else None,
            service_name=item.service_name,
        )
        for item in payload.line_items
    ]
    try:
        quote = pricing_service.compute_quote(
            line_items, rule_set, payload.travel_distance_km
        )
    except SettlementError as exc:
        raise_http_error(exc)
    return PricingQuoteRead.model_validate(quote)
