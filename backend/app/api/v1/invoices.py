"""Invoice API endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import raise_http_error
from app.core.errors import SettlementError
from app.models.invoice import InvoiceStatus
from app.schemas.invoice import (
    InvoiceFromTransactionRequest,
    InvoicePaymentRequest,
    InvoiceRead,
)
from app.services import invoice_service

router = APIRouter(prefix="/invoices")


@router.get("", response_model=list[InvoiceRead], summary="List invoices")
async def list_invoices(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
    status_filter: InvoiceStatus | None = Query(default=None, alias="status"),
    customer_id: uuid.UUID | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[InvoiceRead]:
    invoices = await invoice_service.list_invoices(
        session,
        tenant_id=tenant_id,
        status=status_filter,
        customer_id=customer_id,
        limit=limit,
        offset=offset,
    )
    return [InvoiceRead.model_validate(invoice) for invoice in invoices]


@router.post(
    "/from-transaction",
    response_model=InvoiceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Compose the invoice for a transaction",
)
async def compose_invoice(
    payload: InvoiceFromTransactionRequest,
    response: Response,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> InvoiceRead:
    try:
        invoice, created = await invoice_service.compose_invoice(
            session,
            tenant_id=tenant_id,
            transaction_id=payload.transaction_id,
            issue_date=payload.issue_date,
        )
    except SettlementError as exc:
        raise_http_error(exc)
    if not created:
        response.status_code = status.HTTP_200_OK
    return InvoiceRead.model_validate(invoice)


@router.get("/{invoice_id}", response_model=InvoiceRead, summary="Get invoice")
async def get_invoice(
    invoice_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> InvoiceRead:
    try:
        invoice = await invoice_service.get_invoice(
            session, tenant_id=tenant_id, invoice_id=invoice_id
        )
    except SettlementError as exc:
        raise_http_error(exc)
    return InvoiceRead.model_validate(invoice)


@router.post("/{invoice_id}/send", response_model=InvoiceRead, summary="Send invoice")
async def send_invoice(
    invoice_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> InvoiceRead:
    try:
        invoice = await invoice_service.send_invoice(
            session, tenant_id=tenant_id, invoice_id=invoice_id
        )
    except SettlementError as exc:
        raise_http_error(exc)
    return InvoiceRead.model_validate(invoice)


@router.post("/{invoice_id}/pay", response_model=InvoiceRead, summary="Mark paid")
async def pay_invoice(
    invoice_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
    payload: InvoicePaymentRequest | None = None,
) -> InvoiceRead:
    try:
        invoice = await invoice_service.mark_invoice_paid(
            session,
            tenant_id=tenant_id,
            invoice_id=invoice_id,
            paid_date=payload.paid_date if payload else None,
        )
    except SettlementError as exc:
        raise_http_error(exc)
    return InvoiceRead.model_validate(invoice)


@router.post(
    "/{invoice_id}/mark-overdue", response_model=InvoiceRead, summary="Mark overdue"
)
async def mark_invoice_overdue(
    invoice_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> InvoiceRead:
    try:
        invoice = await invoice_service.mark_invoice_overdue(
            session, tenant_id=tenant_id, invoice_id=invoice_id
        )
    except SettlementError as exc:
        raise_http_error(exc)
    return InvoiceRead.model_validate(invoice)
