"""Financial reporting over persisted invoices."""

from __future__ import annotations

import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidInputError
from app.core.money import HUNDRED, ZERO, to_money
from app.models import Invoice, InvoiceStatus

PENDING_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.SENT})


@dataclass(slots=True, frozen=True)
class InvoiceRecord:
    """The slice of an invoice the aggregations depend on."""

    invoice_id: uuid.UUID
    invoice_number: str
    customer_id: uuid.UUID
    customer_name: str
    status: InvoiceStatus
    total_amount: Decimal
    issue_date: date | None
    paid_date: date | None = None

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> InvoiceRecord:
        return cls(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            customer_id=invoice.customer_id,
            customer_name=invoice.customer_name,
            status=invoice.status,
            total_amount=to_money(invoice.total_amount),
            issue_date=invoice.issue_date,
            paid_date=invoice.paid_date,
        )

    @property
    def payment_days(self) -> int | None:
        if self.issue_date is None or self.paid_date is None:
            return None
        return (self.paid_date - self.issue_date).days


@dataclass(slots=True, frozen=True)
class DateRange:
    start: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        if self.start and self.end and self.start > self.end:
            raise InvalidInputError(
                "start_date must be on or before end_date", field="start_date"
            )

    def contains(self, value: date | None) -> bool:
        if value is None:
            return self.start is None and self.end is None
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


@dataclass(slots=True)
class FinancialSummary:
    total_revenue: Decimal = ZERO
    paid_revenue: Decimal = ZERO
    pending_revenue: Decimal = ZERO
    overdue_revenue: Decimal = ZERO
    total_invoices: int = 0
    paid_count: int = 0
    pending_count: int = 0
    overdue_count: int = 0
    payment_rate_percent: float = 0.0
    average_payment_days: float = 0.0


@dataclass(slots=True)
class MonthlyBucket:
    month: str
    total_revenue: Decimal = ZERO
    paid_revenue: Decimal = ZERO
    pending_revenue: Decimal = ZERO
    overdue_revenue: Decimal = ZERO
    invoice_count: int = 0
    paid_count: int = 0


@dataclass(slots=True)
class CustomerFinancials:
    customer_id: uuid.UUID
    customer_name: str
    invoice_count: int = 0
    total_amount: Decimal = ZERO
    paid_amount: Decimal = ZERO
    pending_amount: Decimal = ZERO
    overdue_amount: Decimal = ZERO
    average_payment_days: float = 0.0
    _payment_days: list[int] = field(default_factory=list, repr=False)


@dataclass(slots=True)
class PaymentStatusEntry:
    status: InvoiceStatus
    count: int
    amount: Decimal
    percentage: float


def _average_days(days: Sequence[int]) -> float:
    # Invoices without a paid date are excluded, not counted as zero days.
    if not days:
        return 0.0
    return round(sum(days) / len(days), 2)


def summarize(
    invoices: Iterable[InvoiceRecord], date_range: DateRange | None = None
) -> FinancialSummary:
    """Revenue and counts by status for invoices issued within ``date_range``."""

    date_range = date_range or DateRange()
    summary = FinancialSummary()
    payment_days: list[int] = []

    for record in invoices:
        if not date_range.contains(record.issue_date):
            continue
        summary.total_invoices += 1
        summary.total_revenue += record.total_amount
        if record.status is InvoiceStatus.PAID:
            summary.paid_count += 1
            summary.paid_revenue += record.total_amount
        elif record.status is InvoiceStatus.OVERDUE:
            summary.overdue_count += 1
            summary.overdue_revenue += record.total_amount
        else:
            summary.pending_count += 1
            summary.pending_revenue += record.total_amount
        if record.payment_days is not None:
            payment_days.append(record.payment_days)

    if summary.total_invoices:
        summary.payment_rate_percent = round(
            summary.paid_count / summary.total_invoices * 100, 2
        )
    summary.average_payment_days = _average_days(payment_days)
    return summary


def _month_start(value: date, offset: int) -> date:
    index = value.year * 12 + (value.month - 1) - offset
    return date(index // 12, index % 12 + 1, 1)


def monthly_breakdown(
    invoices: Iterable[InvoiceRecord],
    month_count: int = 6,
    today: date | None = None,
) -> list[MonthlyBucket]:
    """One bucket per calendar month, oldest first, ending with ``today``'s month.

    Months without invoices are present and zeroed.
    """

    if month_count < 1:
        raise InvalidInputError("months must be at least 1", field="months")
    today = today or datetime.now(UTC).date()
    buckets: dict[str, MonthlyBucket] = {}
    for offset in range(month_count - 1, -1, -1):
        key = f"{_month_start(today, offset):%Y-%m}"
        buckets[key] = MonthlyBucket(month=key)

    for record in invoices:
        if record.issue_date is None:
            continue
        bucket = buckets.get(f"{record.issue_date:%Y-%m}")
        if bucket is None:
            continue
        bucket.invoice_count += 1
        bucket.total_revenue += record.total_amount
        if record.status is InvoiceStatus.PAID:
            bucket.paid_count += 1
            bucket.paid_revenue += record.total_amount
        elif record.status is InvoiceStatus.OVERDUE:
            bucket.overdue_revenue += record.total_amount
        else:
            bucket.pending_revenue += record.total_amount
    return list(buckets.values())


def customer_breakdown(invoices: Iterable[InvoiceRecord]) -> list[CustomerFinancials]:
    """Per-customer totals, largest spenders first."""

    customers: dict[uuid.UUID, CustomerFinancials] = {}
    for record in invoices:
        entry = customers.get(record.customer_id)
        if entry is None:
            entry = CustomerFinancials(
                customer_id=record.customer_id, customer_name=record.customer_name
            )
            customers[record.customer_id] = entry
        entry.invoice_count += 1
        entry.total_amount += record.total_amount
        if record.status is InvoiceStatus.PAID:
            entry.paid_amount += record.total_amount
        elif record.status is InvoiceStatus.OVERDUE:
            entry.overdue_amount += record.total_amount
        else:
            entry.pending_amount += record.total_amount
        if record.payment_days is not None:
            entry._payment_days.append(record.payment_days)

    for entry in customers.values():
        entry.average_payment_days = _average_days(entry._payment_days)
    return sorted(
        customers.values(),
        key=lambda item: (-item.total_amount, item.customer_name),
    )


def payment_status_report(
    invoices: Iterable[InvoiceRecord],
) -> list[PaymentStatusEntry]:
    """Count, amount, and share of total amount per invoice status."""

    counts: dict[InvoiceStatus, int] = defaultdict(int)
    amounts: dict[InvoiceStatus, Decimal] = defaultdict(lambda: ZERO)
    for record in invoices:
        counts[record.status] += 1
        amounts[record.status] += record.total_amount

    grand_total = sum(amounts.values(), ZERO)
    report: list[PaymentStatusEntry] = []
    for status in InvoiceStatus:
        amount = amounts[status]
        percentage = (
            float(round(amount / grand_total * HUNDRED, 2)) if grand_total else 0.0
        )
        report.append(
            PaymentStatusEntry(
                status=status,
                count=counts[status],
                amount=amount,
                percentage=percentage,
            )
        )
    return report


async def load_invoice_records(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    date_range: DateRange | None = None,
) -> list[InvoiceRecord]:
    """Load the tenant's invoices as aggregation records."""

    stmt = select(Invoice).where(Invoice.tenant_id == tenant_id)
    if date_range is not None and date_range.start is not None:
        stmt = stmt.where(Invoice.issue_date >= date_range.start)
    if date_range is not None and date_range.end is not None:
        stmt = stmt.where(Invoice.issue_date <= date_range.end)
    result = await session.execute(stmt.order_by(Invoice.issue_date.asc()))
    return [InvoiceRecord.from_invoice(invoice) for invoice in result.scalars().all()]
