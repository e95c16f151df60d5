"""Reporting schemas."""
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from app.models.invoice import InvoiceStatus


class FinancialSummaryRead(BaseModel):
    """Revenue and counts by invoice status."""

    total_revenue: Decimal
    paid_revenue: Decimal
    pending_revenue: Decimal
    overdue_revenue: Decimal
    total_invoices: int
    paid_count: int
    pending_count: int
    overdue_count: int
    payment_rate_percent: float
    average_payment_days: float

    model_config = ConfigDict(from_attributes=True)


class MonthlyRevenueEntry(BaseModel):
    """Revenue for one calendar month (``YYYY-MM``)."""

    month: str
    total_revenue: Decimal
    paid_revenue: Decimal
    pending_revenue: Decimal
    overdue_revenue: Decimal
    invoice_count: int
    paid_count: int

    model_config = ConfigDict(from_attributes=True)


class CustomerFinancialsEntry(BaseModel):
    customer_id: uuid.UUID
    customer_name: str
    invoice_count: int
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    overdue_amount: Decimal
    average_payment_days: float

    model_config = ConfigDict(from_attributes=True)


class PaymentStatusEntry(BaseModel):
    status: InvoiceStatus
    count: int
    amount: Decimal
    percentage: float

    model_config = ConfigDict(from_attributes=True)


class DueInvoiceEntry(BaseModel):
    """Invoice listed in the overdue or upcoming-due reports."""

    invoice_id: uuid.UUID
    invoice_number: str
    customer_id: uuid.UUID
    customer_name: str
    status: InvoiceStatus
    due_date: date
    total_amount: Decimal
    remaining_balance: Decimal
    days_past_due: int | None = None
    days_until_due: int | None = None
