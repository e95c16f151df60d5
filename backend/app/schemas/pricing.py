"""Pricing rule and quote schemas."""

from __future__ import annotations

import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.pricing import FeeType


class LineItemIn(BaseModel):
    """One cart entry submitted for pricing."""

    service_id: uuid.UUID | None = None
    service_name: str | None = None
    quantity: int
    unit_price: Decimal


class PricingQuoteRequest(BaseModel):
    """Cart to price against the tenant's current rules."""

    line_items: list[LineItemIn] = Field(default_factory=list)
    travel_distance_km: Decimal | None = None


class FeeLineRead(BaseModel):
    """Contribution of one additional fee."""

    fee_id: str
    name: str
    fee_type: FeeType
    value: Decimal
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class PricingQuoteRead(BaseModel):
    """Itemized quote."""

    subtotal: Decimal
    tax_amount: Decimal
    service_charge_amount: Decimal
    travel_surcharge_amount: Decimal
    additional_fees_total: Decimal
    fee_breakdown: list[FeeLineRead]
    grand_total: Decimal
    billable_distance_km: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)


class ServiceChargeSchema(BaseModel):
    fee_type: FeeType = FeeType.FIXED
    value: Decimal = Decimal("0")
    required: bool = False

    model_config = ConfigDict(from_attributes=True)


class TravelSurchargeSchema(BaseModel):
    base_amount: Decimal = Decimal("0")
    per_km_amount: Decimal = Decimal("0")
    min_distance_km: Decimal | None = None
    max_distance_km: Decimal | None = None
    required: bool = False

    model_config = ConfigDict(from_attributes=True)


class AdditionalFeeSchema(BaseModel):
    """Additional fee; omit ``id`` to create a new one."""

    id: uuid.UUID | None = None
    name: str
    fee_type: FeeType
    value: Decimal

    model_config = ConfigDict(from_attributes=True)


class PricingSettingsSchema(BaseModel):
    """Complete pricing rule set; ``additional_fees`` replaces the stored list."""

    tax_percentage: Decimal = Decimal("0")
    service_charge: ServiceChargeSchema = Field(default_factory=ServiceChargeSchema)
    travel_surcharge: TravelSurchargeSchema = Field(
        default_factory=TravelSurchargeSchema
    )
    additional_fees: list[AdditionalFeeSchema] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
