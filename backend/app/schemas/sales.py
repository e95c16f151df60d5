"""Sales transaction schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.sales_transaction import (
    PaymentMethod,
    SalesSource,
    SalesTransactionStatus,
)
from app.schemas.pricing import FeeLineRead, LineItemIn


class PaymentEntryIn(BaseModel):
    """One payment split entry; the method is checked during reconciliation."""

    method: str
    amount: Decimal
    reference: str | None = None


class SalesTransactionCreate(BaseModel):
    """Settlement request for ``on_the_spot`` or ``from_booking`` sales."""

    source_type: str
    customer_id: uuid.UUID | None = None
    booking_id: uuid.UUID | None = None
    line_items: list[LineItemIn] = Field(default_factory=list)
    total_amount: Decimal | None = None
    travel_distance_km: Decimal | None = None
    description: str | None = None
    notes: str | None = None
    payments: list[PaymentEntryIn] = Field(default_factory=list)


class SalesTransactionItemRead(BaseModel):
    id: uuid.UUID
    position: int
    service_id: uuid.UUID | None = None
    service_name: str | None = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class SalesTransactionPaymentRead(BaseModel):
    id: uuid.UUID
    method: PaymentMethod
    amount: Decimal
    reference: str | None = None
    paid_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SalesTransactionRead(BaseModel):
    """Persisted transaction with its frozen quote snapshot."""

    id: uuid.UUID
    tenant_id: uuid.UUID
    transaction_number: str
    source: SalesSource
    status: SalesTransactionStatus
    customer_id: uuid.UUID
    booking_id: uuid.UUID | None = None
    notes: str | None = None
    travel_distance_km: Decimal | None = None
    subtotal: Decimal
    tax_amount: Decimal
    service_charge_amount: Decimal
    travel_surcharge_amount: Decimal
    additional_fees_total: Decimal
    fee_breakdown: list[FeeLineRead] = Field(default_factory=list)
    grand_total: Decimal
    total_paid: Decimal
    remaining_balance: Decimal
    created_at: datetime
    items: list[SalesTransactionItemRead] = Field(default_factory=list)
    payments: list[SalesTransactionPaymentRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class SalesSourceBreakdown(BaseModel):
    count: int
    revenue: Decimal


class SalesSummaryRead(BaseModel):
    """Totals and breakdowns over a set of transactions."""

    transaction_count: int
    total_revenue: Decimal
    total_paid: Decimal
    pending_balance: Decimal
    average_transaction_value: Decimal
    by_source: dict[str, SalesSourceBreakdown]
    by_payment_method: dict[str, Decimal]
    by_status: dict[str, int]

    model_config = ConfigDict(from_attributes=True)
