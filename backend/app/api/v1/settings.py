"""Tenant invoice settings endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import raise_http_error
from app.core.errors import SettlementError
from app.schemas.pricing import PricingSettingsSchema
from app.schemas.settings import BrandingRead, BrandingUpdate
from app.services import settings_service
from app.services.pricing_service import (
    FeeRule,
    PricingRuleSet,
    ServiceCharge,
    TravelSurcharge,
)

router = APIRouter(prefix="/settings")


def _rule_set_from_payload(payload: PricingSettingsSchema) -> PricingRuleSet:
    return PricingRuleSet(
        tax_percentage=payload.tax_percentage,
        service_charge=ServiceCharge(
            fee_type=payload.service_charge.fee_type,
            value=payload.service_charge.value,
            required=payload.service_charge.required,
        ),
        travel_surcharge=TravelSurcharge(
            base_amount=payload.travel_surcharge.base_amount,
            per_km_amount=payload.travel_surcharge.per_km_amount,
            min_distance_km=payload.travel_surcharge.min_distance_km,
            max_distance_km=payload.travel_surcharge.max_distance_km,
            required=payload.travel_surcharge.required,
        ),
        additional_fees=tuple(
            FeeRule(
                id=str(fee.id or uuid.uuid4()),
                name=fee.name,
                fee_type=fee.fee_type,
                value=fee.value,
            )
            for fee in payload.additional_fees
        ),
    )


@router.get(
    "/pricing", response_model=PricingSettingsSchema, summary="Get pricing rules"
)
async def get_pricing_settings(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> PricingSettingsSchema:
    rule_set = await settings_service.get_rule_set(session, tenant_id=tenant_id)
    return PricingSettingsSchema.model_validate(rule_set)


@router.put(
    "/pricing", response_model=PricingSettingsSchema, summary="Replace pricing rules"
)
async def update_pricing_settings(
    payload: PricingSettingsSchema,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> PricingSettingsSchema:
    try:
        rule_set = await settings_service.update_rule_set(
            session,
            tenant_id=tenant_id,
            rule_set=_rule_set_from_payload(payload),
        )
    except SettlementError as exc:
        raise_http_error(exc)
    return PricingSettingsSchema.model_validate(rule_set)


@router.get("/branding", response_model=BrandingRead, summary="Get invoice branding")
async def get_branding(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> BrandingRead:
    branding = await settings_service.get_branding(session, tenant_id=tenant_id)
    return BrandingRead.model_validate(branding)


@router.put(
    "/branding", response_model=BrandingRead, summary="Update invoice branding"
)
async def update_branding(
    payload: BrandingUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> BrandingRead:
    try:
        branding = await settings_service.update_branding(
            session,
            tenant_id=tenant_id,
            values=payload.model_dump(exclude_unset=True),
        )
    except SettlementError as exc:
        raise_http_error(exc)
    return BrandingRead.model_validate(branding)
