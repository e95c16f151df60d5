"""Invoice schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.invoice import InvoiceStatus
from app.schemas.pricing import FeeLineRead


class InvoiceItemRead(BaseModel):
    """Serialized invoice item."""

    id: uuid.UUID
    position: int
    description: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class InvoiceRead(BaseModel):
    """Serialized invoice."""

    id: uuid.UUID
    tenant_id: uuid.UUID
    transaction_id: uuid.UUID
    invoice_number: str
    transaction_number: str
    status: InvoiceStatus
    issue_date: date
    due_date: date
    paid_date: date | None = None
    customer_id: uuid.UUID
    customer_name: str
    customer_email: str | None = None
    customer_phone: str | None = None
    subtotal: Decimal
    tax_amount: Decimal
    service_charge_amount: Decimal
    travel_surcharge_amount: Decimal
    additional_fees_total: Decimal
    fee_breakdown: list[FeeLineRead] = Field(default_factory=list)
    total_amount: Decimal
    paid_amount: Decimal
    remaining_balance: Decimal
    header_text: str | None = None
    footer_text: str | None = None
    payment_reference_payload: str
    created_at: datetime
    items: list[InvoiceItemRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class InvoiceFromTransactionRequest(BaseModel):
    """Request payload to compose the invoice for a transaction."""

    transaction_id: uuid.UUID
    issue_date: date | None = None


class InvoicePaymentRequest(BaseModel):
    """Mark an invoice as paid on ``paid_date`` (defaults to today)."""

    paid_date: date | None = None
