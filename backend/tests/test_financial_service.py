"""Tests for the financial aggregations."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import pytest

from app.core.errors import InvalidInputError
from app.models import InvoiceStatus
from app.services.financial_service import (
    DateRange,
    InvoiceRecord,
    customer_breakdown,
    monthly_breakdown,
    payment_status_report,
    summarize,
)

ALICE = uuid.uuid4()
BUDI = uuid.uuid4()


def _record(
    status: InvoiceStatus,
    amount: int,
    issued: date,
    paid: date | None = None,
    *,
    customer_id: uuid.UUID = ALICE,
    customer_name: str = "Alice",
) -> InvoiceRecord:
    return InvoiceRecord(
        invoice_id=uuid.uuid4(),
        invoice_number=f"INV-{issued:%Y%m}-{uuid.uuid4().hex[:5]}",
        customer_id=customer_id,
        customer_name=customer_name,
        status=status,
        total_amount=Decimal(amount),
        issue_date=issued,
        paid_date=paid,
    )


@pytest.fixture()
def invoices() -> list[InvoiceRecord]:
    return [
        _record(InvoiceStatus.PAID, 100000, date(2026, 1, 5), date(2026, 1, 8)),
        _record(
            InvoiceStatus.PAID,
            50000,
            date(2026, 3, 1),
            date(2026, 3, 6),
            customer_id=BUDI,
            customer_name="Budi",
        ),
        _record(InvoiceStatus.SENT, 30000, date(2026, 3, 2)),
        _record(InvoiceStatus.DRAFT, 20000, date(2026, 3, 3)),
        _record(
            InvoiceStatus.OVERDUE,
            40000,
            date(2026, 1, 20),
            customer_id=BUDI,
            customer_name="Budi",
        ),
    ]


def test_summarize_buckets_by_status(invoices: list[InvoiceRecord]) -> None:
    summary = summarize(invoices)

    assert summary.total_invoices == 5
    assert summary.total_revenue == Decimal("240000")
    assert summary.paid_revenue == Decimal("150000")
    assert summary.pending_revenue == Decimal("50000")
    assert summary.overdue_revenue == Decimal("40000")
    assert (summary.paid_count, summary.pending_count, summary.overdue_count) == (2, 2, 1)
    assert summary.payment_rate_percent == 40.0
    # Only invoices with a paid date count: (3 + 5) / 2.
    assert summary.average_payment_days == 4.0


def test_summarize_respects_date_range(invoices: list[InvoiceRecord]) -> None:
    summary = summarize(invoices, DateRange(date(2026, 3, 1), date(2026, 3, 31)))

    assert summary.total_invoices == 3
    assert summary.total_revenue == Decimal("100000")
    assert summary.average_payment_days == 5.0


def test_summarize_empty_set_never_divides_by_zero() -> None:
    summary = summarize([])

    assert summary.total_invoices == 0
    assert summary.payment_rate_percent == 0.0
    assert summary.average_payment_days == 0.0


def test_date_range_rejects_inverted_bounds() -> None:
    with pytest.raises(InvalidInputError):
        DateRange(date(2026, 3, 1), date(2026, 2, 1))


def test_monthly_breakdown_has_no_gaps(invoices: list[InvoiceRecord]) -> None:
    buckets = monthly_breakdown(invoices, 3, today=date(2026, 3, 15))

    assert [bucket.month for bucket in buckets] == ["2026-01", "2026-02", "2026-03"]
    january, february, march = buckets
    assert january.invoice_count == 2
    assert january.paid_revenue == Decimal("100000")
    assert january.overdue_revenue == Decimal("40000")
    assert february.invoice_count == 0
    assert february.total_revenue == Decimal("0")
    assert march.total_revenue == Decimal("100000")
    assert march.pending_revenue == Decimal("50000")


def test_monthly_breakdown_crosses_year_boundary() -> None:
    buckets = monthly_breakdown([], 3, today=date(2026, 1, 10))
    assert [bucket.month for bucket in buckets] == ["2025-11", "2025-12", "2026-01"]


def test_monthly_breakdown_requires_positive_window() -> None:
    with pytest.raises(InvalidInputError):
        monthly_breakdown([], 0)


def test_customer_breakdown_groups_and_sorts(invoices: list[InvoiceRecord]) -> None:
    entries = customer_breakdown(invoices)

    assert [entry.customer_name for entry in entries] == ["Alice", "Budi"]
    alice, budi = entries
    assert alice.invoice_count == 3
    assert alice.total_amount == Decimal("150000")
    assert alice.pending_amount == Decimal("50000")
    assert alice.average_payment_days == 3.0
    assert budi.overdue_amount == Decimal("40000")
    assert budi.average_payment_days == 5.0


def test_payment_status_report_covers_every_status(invoices: list[InvoiceRecord]) -> None:
    report = {entry.status: entry for entry in payment_status_report(invoices)}

    assert set(report) == set(InvoiceStatus)
    assert report[InvoiceStatus.PAID].count == 2
    assert report[InvoiceStatus.PAID].percentage == 62.5
    assert report[InvoiceStatus.DRAFT].amount == Decimal("20000")
    assert sum(entry.count for entry in report.values()) == 5
