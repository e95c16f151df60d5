"""Sales transaction endpoints."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import raise_http_error
from app.core.errors import SettlementError
from app.models.sales_transaction import SalesSource, SalesTransactionStatus
from app.schemas.sales import (
    SalesSummaryRead,
    SalesTransactionCreate,
    SalesTransactionRead,
)
from app.services import sales_service
from app.services.payments_service import PaymentEntry
from app.services.pricing_service import LineItem

router = APIRouter(prefix="/sales")


def _to_input(payload: SalesTransactionCreate) -> sales_service.TransactionInput:
    return sales_service.TransactionInput(
        source_type=payload.source_type,
        customer_id=payload.customer_id,
        booking_id=payload.booking_id,
        total_amount=payload.total_amount,
        travel_distance_km=payload.travel_distance_km,
        description=payload.description,
        notes=payload.notes,
        line_items=[
            LineItem(
                quantity=item.quantity,
                unit_price=item.unit_price,
                service_id=str(item.service_id) if item.service_id else None,
                service_name=item.service_name,
            )
            for item in payload.line_items
        ],
        payments=[
            PaymentEntry(
                method=entry.method, amount=entry.amount, reference=entry.reference
            )
            for entry in payload.payments
        ],
    )


@router.post(
    "/transactions",
    response_model=SalesTransactionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Settle a sale",
)
async def create_transaction(
    payload: SalesTransactionCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> SalesTransactionRead:
    try:
        transaction = await sales_service.create_transaction(
            session, tenant_id=tenant_id, data=_to_input(payload)
        )
    except SettlementError as exc:
        raise_http_error(exc)
    return SalesTransactionRead.model_validate(transaction)


@router.get(
    "/transactions",
    response_model=list[SalesTransactionRead],
    summary="List transactions",
)
async def list_transactions(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
    source: SalesSource | None = Query(default=None),
    status_filter: SalesTransactionStatus | None = Query(default=None, alias="status"),
    customer_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[SalesTransactionRead]:
    transactions = await sales_service.list_transactions(
        session,
        tenant_id=tenant_id,
        source=source,
        status=status_filter,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return [SalesTransactionRead.model_validate(item) for item in transactions]


@router.get("/summary", response_model=SalesSummaryRead, summary="Sales summary")
async def get_sales_summary(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> SalesSummaryRead:
    summary = await sales_service.sales_summary(
        session, tenant_id=tenant_id, start_date=start_date, end_date=end_date
    )
    return SalesSummaryRead.model_validate(summary)


@router.get(
    "/transactions/{transaction_id}",
    response_model=SalesTransactionRead,
    summary="Get transaction",
)
async def get_transaction(
    transaction_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    tenant_id: Annotated[uuid.UUID, Depends(deps.get_current_tenant_id)],
) -> SalesTransactionRead:
    try:
        transaction = await sales_service.get_transaction(
            session, tenant_id=tenant_id, transaction_id=transaction_id
        )
    except SettlementError as exc:
        raise_http_error(exc)
    return SalesTransactionRead.model_validate(transaction)
