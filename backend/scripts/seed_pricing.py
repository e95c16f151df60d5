"""Seed a demo tenant with a customer, pricing rules and branding."""

from __future__ import annotations

import asyncio
import uuid
from decimal import Decimal

from sqlalchemy import select

from app.core.security import create_access_token
from app.db.session import get_sessionmaker
from app.models import Customer, FeeType, Tenant
from app.services import settings_service
from app.services.pricing_service import (
    FeeRule,
    PricingRuleSet,
    ServiceCharge,
    TravelSurcharge,
)

TENANT_SLUG = "demo-salon"
TENANT_NAME = "Demo Salon"

DEFAULT_RULES = PricingRuleSet(
    tax_percentage=Decimal("11"),
    service_charge=ServiceCharge(
        fee_type=FeeType.PERCENTAGE, value=Decimal("5"), required=False
    ),
    travel_surcharge=TravelSurcharge(
        base_amount=Decimal("25000"),
        per_km_amount=Decimal("5000"),
        min_distance_km=Decimal("2"),
        max_distance_km=Decimal("50"),
        required=False,
    ),
    additional_fees=(
        FeeRule(
            id=str(uuid.uuid4()),
            name="Booking fee",
            fee_type=FeeType.FIXED,
            value=Decimal("2500"),
        ),
    ),
)


async def seed_pricing() -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        tenant = (
            await session.execute(select(Tenant).where(Tenant.slug == TENANT_SLUG))
        ).scalar_one_or_none()
        if tenant is None:
            tenant = Tenant(name=TENANT_NAME, slug=TENANT_SLUG)
            session.add(tenant)
            await session.flush()
            session.add(
                Customer(
                    tenant_id=tenant.id,
                    name="Walk-in Customer",
                    email="walkin@example.com",
                )
            )
            await session.commit()
            print(f"Created tenant {TENANT_SLUG}.")

        rule_set = await settings_service.get_rule_set(session, tenant_id=tenant.id)
        if rule_set == PricingRuleSet.empty():
            await settings_service.update_rule_set(
                session, tenant_id=tenant.id, rule_set=DEFAULT_RULES
            )
            await settings_service.update_branding(
                session,
                tenant_id=tenant.id,
                values={
                    "footer_text": "Thank you for visiting!",
                    "payment_grace_days": 7,
                },
            )
            print("Seeded default pricing rules and branding.")
        else:
            print("Pricing rules already configured; leaving them untouched.")

        token = create_access_token("seed@localhost", tenant_id=str(tenant.id))
        print(f"Tenant id: {tenant.id}")
        print(f"Bearer token: {token}")


def main() -> None:
    asyncio.run(seed_pricing())


if __name__ == "__main__":
    main()
