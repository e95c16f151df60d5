"""Financial reporting endpoints."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import raise_http_error
from app.core.errors import SettlementError
from app.models.invoice import Invoice
from app.schemas.reporting import (
    CustomerFinancialsEntry,
    DueInvoiceEntry,
    FinancialSummaryRead,
    MonthlyRevenueEntry,
    PaymentStatusEntry,
)
from app.services import financial_service, invoice_service

router = APIRouter(prefix="/reports")


def _due_entry(
    invoice: Invoice,
    *,
    days_past_due: int | None = None,
    days_until_due: int | None = None,
) -> DueInvoiceEntry:
    return DueInvoiceEntry(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        customer_id=invoice.customer_id,
        customer_name=invoice.customer_name,
        status=invoice.status,
        due_date=invoice.due_date,
        total_amount=invoice.total_amount,
        remaining_balance=invoice.remaining_balance,
        days_past_due=days_past_due,
        days_until_due=days_until_due,
    )


@router.get(
    "/financial-summary",
    response_model=FinancialSummaryRead,
    summary="Revenue by invoice status",
)
async def financial_summary(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> FinancialSummaryRead:
    try:
        date_range = financial_service.DateRange(start=start_date, end=end_date)
    except SettlementError as exc:
        raise_http_error(exc)
    records = await financial_service.load_invoice_records(
        session, tenant_id=tenant_id, date_range=date_range
    )
    summary = financial_service.summarize(records, date_range)
    return FinancialSummaryRead.model_validate(summary)


@router.get(
    "/monthly",
    response_model=list[MonthlyRevenueEntry],
    summary="Trailing monthly revenue",
)
async def monthly_revenue(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
    months: int = Query(default=6, ge=1, le=36),
) -> list[MonthlyRevenueEntry]:
    records = await financial_service.load_invoice_records(
        session, tenant_id=tenant_id
    )
    buckets = financial_service.monthly_breakdown(records, months)
    return [MonthlyRevenueEntry.model_validate(bucket) for bucket in buckets]


@router.get(
    "/customers",
    response_model=list[CustomerFinancialsEntry],
    summary="Revenue by customer",
)
async def customer_revenue(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> list[CustomerFinancialsEntry]:
    records = await financial_service.load_invoice_records(
        session, tenant_id=tenant_id
    )
    return [
        CustomerFinancialsEntry.model_validate(entry)
        for entry in financial_service.customer_breakdown(records)
    ]


@router.get(
    "/payment-status",
    response_model=list[PaymentStatusEntry],
    summary="Invoice payment status histogram",
)
async def payment_status(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> list[PaymentStatusEntry]:
    records = await financial_service.load_invoice_records(
        session, tenant_id=tenant_id
    )
    return [
        PaymentStatusEntry.model_validate(entry)
        for entry in financial_service.payment_status_report(records)
    ]


@router.get(
    "/overdue", response_model=list[DueInvoiceEntry], summary="Overdue invoices"
)
async def overdue_invoices(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> list[DueInvoiceEntry]:
    overdue = await invoice_service.list_overdue_invoices(
        session, tenant_id=tenant_id
    )
    return [
        _due_entry(item.invoice, days_past_due=item.days_past_due) for item in overdue
    ]


@router.get(
    "/upcoming-due",
    response_model=list[DueInvoiceEntry],
    summary="Invoices falling due soon",
)
async def upcoming_due_invoices(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
    days: int = Query(default=7, ge=0, le=365),
) -> list[DueInvoiceEntry]:
    upcoming = await invoice_service.list_upcoming_due_invoices(
        session, tenant_id=tenant_id, days=days
    )
    return [
        _due_entry(item.invoice, days_until_due=item.days_until_due)
        for item in upcoming
    ]
