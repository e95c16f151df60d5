"""Tenant invoice settings: pricing rules and branding."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import InvalidInputError, NotFoundError
from app.models import AdditionalFee, InvoiceBranding, PricingSettings, Tenant
from app.services.pricing_service import (
    FeeRule,
    PricingRuleSet,
    ServiceCharge,
    TravelSurcharge,
)

logger = logging.getLogger(__name__)

_REQUIRED_BRANDING_FIELDS = frozenset({"show_business_name", "payment_grace_days"})


@dataclass(slots=True)
class BrandingSettings:
    """Branding values used when composing invoices."""

    business_name: str
    tenant_slug: str
    logo_url: str | None = None
    header_text: str | None = None
    footer_text: str | None = None
    show_business_name: bool = True
    payment_grace_days: int = 0
    merchant_account_name: str | None = None
    merchant_account_number: str | None = None


def rule_set_from_model(settings: PricingSettings | None) -> PricingRuleSet:
    """Build the validated rule set from stored settings (zero set if absent)."""

    if settings is None:
        return PricingRuleSet.empty()
    return PricingRuleSet(
        tax_percentage=settings.tax_percentage,
        service_charge=ServiceCharge(
            fee_type=settings.service_charge_type,
            value=settings.service_charge_value,
            required=settings.service_charge_required,
        ),
        travel_surcharge=TravelSurcharge(
            base_amount=settings.travel_base_amount,
            per_km_amount=settings.travel_per_km_amount,
            min_distance_km=settings.travel_min_distance_km,
            max_distance_km=settings.travel_max_distance_km,
            required=settings.travel_surcharge_required,
        ),
        additional_fees=tuple(
            FeeRule(
                id=str(fee.id),
                name=fee.name,
                fee_type=fee.fee_type,
                value=fee.value,
            )
            for fee in settings.fees
        ),
    )


async def _get_tenant(session: AsyncSession, tenant_id: uuid.UUID) -> Tenant:
    tenant = await session.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFoundError("Tenant not found", field="tenant_id")
    return tenant


async def _load_pricing_settings(
    session: AsyncSession, tenant_id: uuid.UUID
) -> PricingSettings | None:
    stmt = (
        select(PricingSettings)
        .options(selectinload(PricingSettings.fees))
        .where(PricingSettings.tenant_id == tenant_id)
    )
    result = await session.execute(stmt)
    return result.scalars().unique().one_or_none()


async def get_rule_set(
    session: AsyncSession, *, tenant_id: uuid.UUID
) -> PricingRuleSet:
    """Return the tenant's rule set as of now (no versioning)."""

    settings = await _load_pricing_settings(session, tenant_id)
    return rule_set_from_model(settings)


async def update_rule_set(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    rule_set: PricingRuleSet,
) -> PricingRuleSet:
    """Persist a rule set, replacing the tenant's additional fees wholesale."""

    await _get_tenant(session, tenant_id)
    settings = await _load_pricing_settings(session, tenant_id)
    if settings is None:
        settings = PricingSettings(tenant_id=tenant_id)
        session.add(settings)

    service = rule_set.service_charge
    travel = rule_set.travel_surcharge
    settings.tax_percentage = rule_set.tax_percentage
    settings.service_charge_type = service.fee_type
    settings.service_charge_value = service.value
    settings.service_charge_required = service.required
    settings.travel_base_amount = travel.base_amount
    settings.travel_per_km_amount = travel.per_km_amount
    settings.travel_min_distance_km = travel.min_distance_km
    settings.travel_max_distance_km = travel.max_distance_km
    settings.travel_surcharge_required = travel.required

    current = {fee.id: fee for fee in settings.fees}
    fees: list[AdditionalFee] = []
    for position, fee in enumerate(rule_set.additional_fees):
        try:
            fee_id = uuid.UUID(fee.id)
        except ValueError as exc:
            raise InvalidInputError(
                "additional fee id must be a UUID",
                field=f"additional_fees[{position}].id",
            ) from exc
        model = current.get(fee_id) or AdditionalFee(id=fee_id)
        model.position = position
        model.name = fee.name
        model.fee_type = fee.fee_type
        model.value = fee.value
        fees.append(model)
    # Fees missing from the new list are deleted as orphans.
    settings.fees = fees

    await session.commit()
    logger.info(
        "Pricing rules updated for tenant %s (%d additional fees)",
        tenant_id,
        len(fees),
    )
    return await get_rule_set(session, tenant_id=tenant_id)


async def get_branding(
    session: AsyncSession, *, tenant_id: uuid.UUID
) -> BrandingSettings:
    """Return branding settings, falling back to tenant defaults."""

    tenant = await _get_tenant(session, tenant_id)
    stmt = select(InvoiceBranding).where(InvoiceBranding.tenant_id == tenant_id)
    branding = (await session.execute(stmt)).scalars().one_or_none()
    if branding is None:
        return BrandingSettings(business_name=tenant.name, tenant_slug=tenant.slug)
    return BrandingSettings(
        business_name=tenant.name,
        tenant_slug=tenant.slug,
        logo_url=branding.logo_url,
        header_text=branding.header_text,
        footer_text=branding.footer_text,
        show_business_name=branding.show_business_name,
        payment_grace_days=branding.payment_grace_days,
        merchant_account_name=branding.merchant_account_name,
        merchant_account_number=branding.merchant_account_number,
    )


async def update_branding(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    values: dict[str, object],
) -> BrandingSettings:
    """Upsert branding fields provided in ``values``."""

    await _get_tenant(session, tenant_id)
    grace_days = values.get("payment_grace_days")
    if grace_days is not None and int(grace_days) < 0:  # type: ignore[call-overload]
        raise InvalidInputError(
            "payment_grace_days must not be negative", field="payment_grace_days"
        )

    stmt = select(InvoiceBranding).where(InvoiceBranding.tenant_id == tenant_id)
    branding = (await session.execute(stmt)).scalars().one_or_none()
    if branding is None:
        branding = InvoiceBranding(tenant_id=tenant_id)
        session.add(branding)
    for field_name, value in values.items():
        if value is None and field_name in _REQUIRED_BRANDING_FIELDS:
            continue
        setattr(branding, field_name, value)
    await session.commit()
    return await get_branding(session, tenant_id=tenant_id)
