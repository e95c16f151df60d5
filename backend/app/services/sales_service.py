"""Sales transaction building, persistence, and summaries."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Iterable, Sequence, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import (
    ConcurrencyError,
    InvalidInputError,
    NotFoundError,
    SettlementError,
)
from app.core.money import ZERO, to_decimal, to_money
from app.models import (
    Customer,
    PaymentMethod,
    SalesSource,
    SalesTransaction,
    SalesTransactionItem,
    SalesTransactionPayment,
    SalesTransactionStatus,
    SequenceKind,
)
from app.services import numbering_service, settings_service
from app.services.payments_service import (
    PaymentEntry,
    ReconciliationResult,
    reconcile,
)
from app.services.pricing_service import (
    LineItem,
    PricingQuote,
    PricingRuleSet,
    compute_quote,
    normalize_distance,
    normalize_line_items,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

BOOKING_ITEM_DESCRIPTION = "Booked service"
NON_REVENUE_STATUSES = frozenset(
    {SalesTransactionStatus.CANCELLED, SalesTransactionStatus.REFUNDED}
)


@dataclass(slots=True)
class TransactionInput:
    """Caller supplied settlement request, discriminated on ``source_type``."""

    source_type: SalesSource | str
    customer_id: uuid.UUID | None = None
    payments: list[PaymentEntry] = field(default_factory=list)
    line_items: list[LineItem] = field(default_factory=list)
    booking_id: uuid.UUID | None = None
    total_amount: Decimal | None = None
    travel_distance_km: Decimal | None = None
    description: str | None = None
    notes: str | None = None


@dataclass(slots=True)
class TransactionDraft:
    """A fully validated transaction that has not been numbered yet."""

    source: SalesSource
    customer_id: uuid.UUID
    booking_id: uuid.UUID | None
    line_items: list[LineItem]
    quote: PricingQuote
    reconciliation: ReconciliationResult
    pricing_snapshot: dict[str, Any] | None
    travel_distance_km: Decimal | None = None
    notes: str | None = None

    @property
    def status(self) -> SalesTransactionStatus:
        if self.reconciliation.remaining == ZERO:
            return SalesTransactionStatus.COMPLETED
        return SalesTransactionStatus.PENDING


@dataclass(slots=True)
class SalesSummary:
    """Aggregated view over a set of sales transactions."""

    transaction_count: int = 0
    total_revenue: Decimal = ZERO
    total_paid: Decimal = ZERO
    pending_balance: Decimal = ZERO
    average_transaction_value: Decimal = ZERO
    by_source: dict[str, dict[str, Any]] = field(default_factory=dict)
    by_payment_method: dict[str, Decimal] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)


def _source(value: SalesSource | str) -> SalesSource:
    try:
        return SalesSource(value)
    except ValueError as exc:
        raise InvalidInputError(
            "source_type must be 'on_the_spot' or 'from_booking'",
            field="source_type",
        ) from exc


def _require(value: T | None, field_name: str, source: SalesSource) -> T:
    if value is None:
        raise InvalidInputError(
            f"{field_name} is required for {source.value} transactions",
            field=field_name,
        )
    return value


def _check_service_ids(items: Sequence[LineItem]) -> None:
    for index, item in enumerate(items):
        if item.service_id is None:
            continue
        try:
            uuid.UUID(str(item.service_id))
        except ValueError as exc:
            raise InvalidInputError(
                "service_id must be a UUID",
                field=f"line_items[{index}].service_id",
            ) from exc


def build_transaction(data: TransactionInput, rule_set: PricingRuleSet) -> TransactionDraft:
    """Validate input, price it, and reconcile payments without touching storage.

    Raises ``InvalidInputError`` for missing or malformed fields and propagates
    ``PaymentValidationError`` from reconciliation unchanged.
    """

    source = _source(data.source_type)
    customer_id = _require(data.customer_id, "customer_id", source)

    if source is SalesSource.ON_THE_SPOT:
        if not data.line_items:
            raise InvalidInputError(
                "line_items must not be empty for on_the_spot transactions",
                field="line_items",
            )
        items = normalize_line_items(data.line_items)
        _check_service_ids(items)
        distance = normalize_distance(data.travel_distance_km)
        quote = compute_quote(items, rule_set, distance)
        snapshot: dict[str, Any] | None = rule_set.to_dict()
    else:
        _require(data.booking_id, "booking_id", source)
        total = _require(data.total_amount, "total_amount", source)
        quote = PricingQuote.from_total(total)
        items = [
            LineItem(
                quantity=1,
                unit_price=quote.grand_total,
                service_name=data.description or BOOKING_ITEM_DESCRIPTION,
            )
        ]
        snapshot = None
        distance = None

    reconciliation = reconcile(data.payments, quote.grand_total)
    return TransactionDraft(
        source=source,
        customer_id=customer_id,
        booking_id=data.booking_id,
        line_items=items,
        quote=quote,
        reconciliation=reconciliation,
        pricing_snapshot=snapshot,
        travel_distance_km=distance,
        notes=data.notes,
    )


def _transaction_query(tenant_id: uuid.UUID) -> Select[tuple[SalesTransaction]]:
    return (
        select(SalesTransaction)
        .options(
            selectinload(SalesTransaction.items),
            selectinload(SalesTransaction.payments),
            selectinload(SalesTransaction.customer),
        )
        .where(SalesTransaction.tenant_id == tenant_id)
    )


async def _ensure_customer(
    session: AsyncSession, tenant_id: uuid.UUID, customer_id: uuid.UUID
) -> None:
    customer = await session.get(Customer, customer_id)
    if customer is None or customer.tenant_id != tenant_id:
        raise NotFoundError("Customer not found", field="customer_id")


def _to_model(
    draft: TransactionDraft,
    *,
    tenant_id: uuid.UUID,
    transaction_number: str,
    now: datetime,
) -> SalesTransaction:
    quote = draft.quote
    transaction = SalesTransaction(
        tenant_id=tenant_id,
        transaction_number=transaction_number,
        source=draft.source,
        status=draft.status,
        customer_id=draft.customer_id,
        booking_id=draft.booking_id,
        notes=draft.notes,
        travel_distance_km=draft.travel_distance_km,
        subtotal=quote.subtotal,
        tax_amount=quote.tax_amount,
        service_charge_amount=quote.service_charge_amount,
        travel_surcharge_amount=quote.travel_surcharge_amount,
        additional_fees_total=quote.additional_fees_total,
        grand_total=quote.grand_total,
        fee_breakdown=[line.to_dict() for line in quote.fee_breakdown],
        pricing_snapshot=draft.pricing_snapshot,
        total_paid=draft.reconciliation.total_paid,
        remaining_balance=draft.reconciliation.remaining,
        created_at=now,
    )
    transaction.items = [
        SalesTransactionItem(
            position=position,
            service_id=uuid.UUID(str(item.service_id)) if item.service_id else None,
            service_name=item.service_name,
            quantity=item.quantity,
            unit_price=to_decimal(item.unit_price),
            total_price=item.line_total,
        )
        for position, item in enumerate(draft.line_items)
    ]
    transaction.payments = [
        SalesTransactionPayment(
            position=position,
            method=PaymentMethod(entry.method),
            amount=entry.amount,
            reference=entry.reference,
            paid_at=now,
        )
        for position, entry in enumerate(draft.reconciliation.entries)
    ]
    return transaction


async def create_transaction(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    data: TransactionInput,
    now: datetime | None = None,
) -> SalesTransaction:
    """Build and persist a transaction atomically.

    The quote and reconciliation run before the tenant counter is touched; any
    failure afterwards rolls the whole unit of work back.
    """

    now = now or datetime.now(UTC)
    source = _source(data.source_type)
    rule_set = (
        await settings_service.get_rule_set(session, tenant_id=tenant_id)
        if source is SalesSource.ON_THE_SPOT
        else PricingRuleSet.empty()
    )
    try:
        draft = build_transaction(data, rule_set)
    except SettlementError as exc:
        logger.warning(
            "Rejected settlement for tenant %s: %s (%s)", tenant_id, exc.code, exc.field
        )
        raise
    await _ensure_customer(session, tenant_id, draft.customer_id)

    try:
        value = await numbering_service.next_sequence_value(
            session, tenant_id=tenant_id, kind=SequenceKind.TRANSACTION
        )
        transaction_number = numbering_service.format_transaction_number(
            now.date(), value
        )
        transaction = _to_model(
            draft,
            tenant_id=tenant_id,
            transaction_number=transaction_number,
            now=now,
        )
        session.add(transaction)
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("Transaction number collision for tenant %s", tenant_id)
        raise ConcurrencyError(
            "transaction number already taken; retry the request",
            field="transaction_number",
        ) from exc
    except SettlementError:
        await session.rollback()
        raise

    logger.info(
        "Created %s transaction %s total=%s remaining=%s",
        draft.source.value,
        transaction_number,
        draft.quote.grand_total,
        draft.reconciliation.remaining,
    )
    return await get_transaction(
        session, tenant_id=tenant_id, transaction_id=transaction.id
    )


async def get_transaction(
    session: AsyncSession, *, tenant_id: uuid.UUID, transaction_id: uuid.UUID
) -> SalesTransaction:
    """Return a transaction with items and payments loaded."""

    stmt = _transaction_query(tenant_id).where(SalesTransaction.id == transaction_id)
    result = await session.execute(stmt.execution_options(populate_existing=True))
    transaction = result.scalars().unique().one_or_none()
    if transaction is None:
        raise NotFoundError("Transaction not found", field="transaction_id")
    return transaction


def _date_bounds(
    start_date: date | None, end_date: date | None
) -> tuple[datetime | None, datetime | None]:
    start = datetime.combine(start_date, time.min, tzinfo=UTC) if start_date else None
    end = (
        datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=UTC)
        if end_date
        else None
    )
    return start, end


async def list_transactions(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    source: SalesSource | None = None,
    status: SalesTransactionStatus | None = None,
    customer_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[SalesTransaction]:
    """List tenant transactions, newest first."""

    stmt = _transaction_query(tenant_id)
    if source is not None:
        stmt = stmt.where(SalesTransaction.source == source)
    if status is not None:
        stmt = stmt.where(SalesTransaction.status == status)
    if customer_id is not None:
        stmt = stmt.where(SalesTransaction.customer_id == customer_id)
    start, end = _date_bounds(start_date, end_date)
    if start is not None:
        stmt = stmt.where(SalesTransaction.created_at >= start)
    if end is not None:
        stmt = stmt.where(SalesTransaction.created_at < end)
    stmt = (
        stmt.order_by(
            SalesTransaction.created_at.desc(),
            SalesTransaction.transaction_number.desc(),
        )
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(stmt)
    return list(result.scalars().unique().all())


def summarize_sales(transactions: Iterable[SalesTransaction]) -> SalesSummary:
    """Totals and breakdowns; cancelled/refunded sales carry no revenue."""

    summary = SalesSummary()
    by_source: dict[str, dict[str, Any]] = defaultdict(
        lambda: {"count": 0, "revenue": ZERO}
    )
    by_method: dict[str, Decimal] = defaultdict(lambda: ZERO)
    by_status: dict[str, int] = defaultdict(int)
    revenue_count = 0

    for transaction in transactions:
        summary.transaction_count += 1
        by_status[transaction.status.value] += 1
        if transaction.status in NON_REVENUE_STATUSES:
            continue
        revenue_count += 1
        summary.total_revenue += transaction.grand_total
        summary.total_paid += transaction.total_paid
        summary.pending_balance += transaction.remaining_balance
        bucket = by_source[transaction.source.value]
        bucket["count"] += 1
        bucket["revenue"] += transaction.grand_total
        for payment in transaction.payments:
            by_method[payment.method.value] += payment.amount

    if revenue_count:
        summary.average_transaction_value = to_money(
            summary.total_revenue / revenue_count
        )
    summary.by_source = dict(by_source)
    summary.by_payment_method = dict(by_method)
    summary.by_status = dict(by_status)
    return summary


async def sales_summary(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    start_date: date | None = None,
    end_date: date | None = None,
) -> SalesSummary:
    """Summarize every tenant transaction created within the date range."""

    stmt = _transaction_query(tenant_id)
    start, end = _date_bounds(start_date, end_date)
    if start is not None:
        stmt = stmt.where(SalesTransaction.created_at >= start)
    if end is not None:
        stmt = stmt.where(SalesTransaction.created_at < end)
    result = await session.execute(stmt)
    return summarize_sales(result.scalars().unique().all())
