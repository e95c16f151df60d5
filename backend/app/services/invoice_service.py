"""Invoice composition from settled transactions, plus status transitions."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import get_settings
from app.core.errors import (
    ConcurrencyError,
    DuplicateInvoiceError,
    InvalidInputError,
    NotFoundError,
    QuoteDriftError,
    SettlementError,
)
from app.core.money import ZERO, to_money, to_str
from app.models import (
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    SalesSource,
    SalesTransaction,
    SequenceKind,
)
from app.services import numbering_service, sales_service, settings_service
from app.services.pricing_service import (
    FeeLine,
    LineItem,
    PricingQuote,
    PricingRuleSet,
    compute_quote,
)
from app.services.settings_service import BrandingSettings

logger = logging.getLogger(__name__)

DEFAULT_ITEM_DESCRIPTION = "Service"
_QUOTE_COMPONENTS = (
    "subtotal",
    "tax_amount",
    "service_charge_amount",
    "travel_surcharge_amount",
    "additional_fees_total",
    "grand_total",
)


@dataclass(slots=True)
class InvoiceLine:
    description: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


@dataclass(slots=True)
class InvoiceDocument:
    """Render-ready invoice derived from one transaction."""

    invoice_number: str
    transaction_number: str
    issue_date: date
    due_date: date
    status: InvoiceStatus
    paid_date: date | None
    customer_id: uuid.UUID
    customer_name: str
    customer_email: str | None
    customer_phone: str | None
    items: list[InvoiceLine]
    quote: PricingQuote
    paid_amount: Decimal
    remaining_balance: Decimal
    payment_reference_payload: str
    header_text: str | None = None
    footer_text: str | None = None
    business_name: str | None = None
    logo_url: str | None = None


@dataclass(slots=True)
class OverdueInvoice:
    invoice: Invoice
    days_past_due: int


@dataclass(slots=True)
class UpcomingInvoice:
    invoice: Invoice
    days_until_due: int


@dataclass(slots=True)
class _Transition:
    allowed_from: frozenset[InvoiceStatus]
    target: InvoiceStatus
    extra: dict[str, Any] = field(default_factory=dict)


def _today() -> date:
    return datetime.now(UTC).date()


def stored_quote(transaction: SalesTransaction) -> PricingQuote:
    """Rebuild the quote snapshot frozen on ``transaction``."""

    return PricingQuote(
        subtotal=to_money(transaction.subtotal),
        tax_amount=to_money(transaction.tax_amount),
        service_charge_amount=to_money(transaction.service_charge_amount),
        travel_surcharge_amount=to_money(transaction.travel_surcharge_amount),
        additional_fees_total=to_money(transaction.additional_fees_total),
        fee_breakdown=[FeeLine.from_dict(line) for line in transaction.fee_breakdown],
        grand_total=to_money(transaction.grand_total),
    )


def recompute_quote(transaction: SalesTransaction) -> PricingQuote:
    """Recompute totals from line items under the frozen rule set.

    Booking-sourced transactions have no cart to reprice, so their frozen quote
    is returned as is. Any disagreement with the stored snapshot raises
    ``QuoteDriftError`` naming the first differing component.
    """

    frozen = stored_quote(transaction)
    if transaction.source is SalesSource.FROM_BOOKING or not transaction.pricing_snapshot:
        return frozen

    rule_set = PricingRuleSet.from_dict(transaction.pricing_snapshot)
    items = [
        LineItem(
            quantity=item.quantity,
            unit_price=item.unit_price,
            service_id=str(item.service_id) if item.service_id else None,
            service_name=item.service_name,
        )
        for item in transaction.items
    ]
    quote = compute_quote(items, rule_set, transaction.travel_distance_km)

    for component in _QUOTE_COMPONENTS:
        if getattr(quote, component) != getattr(frozen, component):
            logger.warning(
                "Quote drift on %s: %s recomputed=%s stored=%s",
                transaction.transaction_number,
                component,
                getattr(quote, component),
                getattr(frozen, component),
            )
            raise QuoteDriftError(
                f"recomputed {component} does not match the transaction",
                field=component,
            )
    recomputed_fees = [line.amount for line in quote.fee_breakdown]
    if recomputed_fees != [line.amount for line in frozen.fee_breakdown]:
        logger.warning(
            "Quote drift on %s: fee breakdown differs", transaction.transaction_number
        )
        raise QuoteDriftError(
            "recomputed fee breakdown does not match the transaction",
            field="fee_breakdown",
        )
    return quote


def payment_reference_payload(
    *,
    invoice_number: str,
    transaction_number: str,
    amount: Decimal,
    due_date: date,
    tenant_ref: str,
    merchant_account_name: str | None = None,
    merchant_account_number: str | None = None,
) -> str:
    """Deterministic payload string handed to an external QR renderer."""

    settings = get_settings()
    payload = {
        "scheme": settings.payment_reference_scheme,
        "tenant": tenant_ref,
        "invoice": invoice_number,
        "transaction": transaction_number,
        "amount": to_str(amount),
        "currency": settings.currency_code,
        "due": due_date.isoformat(),
        "merchant": merchant_account_name,
        "account": merchant_account_number,
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def build_invoice_document(
    transaction: SalesTransaction,
    branding: BrandingSettings,
    *,
    invoice_number: str,
    issue_date: date,
    quote: PricingQuote | None = None,
) -> InvoiceDocument:
    """Map a transaction and branding onto an invoice document (no I/O)."""

    if branding.payment_grace_days < 0:
        raise InvalidInputError(
            "payment_grace_days must not be negative", field="payment_grace_days"
        )
    quote = quote or recompute_quote(transaction)
    due_date = issue_date + timedelta(days=branding.payment_grace_days)
    remaining = to_money(quote.grand_total - to_money(transaction.total_paid))
    settled = remaining <= ZERO

    customer = transaction.customer
    items = [
        InvoiceLine(
            description=item.service_name or DEFAULT_ITEM_DESCRIPTION,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
        )
        for item in transaction.items
    ]
    return InvoiceDocument(
        invoice_number=invoice_number,
        transaction_number=transaction.transaction_number,
        issue_date=issue_date,
        due_date=due_date,
        status=InvoiceStatus.PAID if settled else InvoiceStatus.DRAFT,
        paid_date=issue_date if settled else None,
        customer_id=transaction.customer_id,
        customer_name=customer.name if customer is not None else "",
        customer_email=customer.email if customer is not None else None,
        customer_phone=customer.phone if customer is not None else None,
        items=items,
        quote=quote,
        paid_amount=to_money(transaction.total_paid),
        remaining_balance=max(remaining, ZERO),
        payment_reference_payload=payment_reference_payload(
            invoice_number=invoice_number,
            transaction_number=transaction.transaction_number,
            amount=quote.grand_total,
            due_date=due_date,
            tenant_ref=branding.tenant_slug,
            merchant_account_name=branding.merchant_account_name,
            merchant_account_number=branding.merchant_account_number,
        ),
        header_text=branding.header_text,
        footer_text=branding.footer_text,
        business_name=branding.business_name if branding.show_business_name else None,
        logo_url=branding.logo_url,
    )


def _to_model(document: InvoiceDocument, transaction: SalesTransaction) -> Invoice:
    quote = document.quote
    invoice = Invoice(
        tenant_id=transaction.tenant_id,
        transaction_id=transaction.id,
        invoice_number=document.invoice_number,
        transaction_number=document.transaction_number,
        status=document.status,
        issue_date=document.issue_date,
        due_date=document.due_date,
        paid_date=document.paid_date,
        customer_id=document.customer_id,
        customer_name=document.customer_name,
        customer_email=document.customer_email,
        customer_phone=document.customer_phone,
        subtotal=quote.subtotal,
        tax_amount=quote.tax_amount,
        service_charge_amount=quote.service_charge_amount,
        travel_surcharge_amount=quote.travel_surcharge_amount,
        additional_fees_total=quote.additional_fees_total,
        fee_breakdown=[line.to_dict() for line in quote.fee_breakdown],
        total_amount=quote.grand_total,
        paid_amount=document.paid_amount,
        remaining_balance=document.remaining_balance,
        header_text=document.header_text,
        footer_text=document.footer_text,
        payment_reference_payload=document.payment_reference_payload,
    )
    invoice.items = [
        InvoiceItem(
            position=position,
            description=line.description,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_price=line.total_price,
        )
        for position, line in enumerate(document.items)
    ]
    return invoice


def _invoice_query(tenant_id: uuid.UUID) -> Select[tuple[Invoice]]:
    return (
        select(Invoice)
        .options(selectinload(Invoice.items))
        .where(Invoice.tenant_id == tenant_id)
    )


async def _find_for_transaction(
    session: AsyncSession, tenant_id: uuid.UUID, transaction_id: uuid.UUID
) -> Invoice | None:
    stmt = _invoice_query(tenant_id).where(Invoice.transaction_id == transaction_id)
    result = await session.execute(stmt)
    return result.scalars().unique().one_or_none()


async def compose_invoice(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    transaction_id: uuid.UUID,
    issue_date: date | None = None,
    strict: bool = False,
) -> tuple[Invoice, bool]:
    """Create the invoice for a transaction, or return the one that exists.

    Returns ``(invoice, created)``. With ``strict=True`` an existing invoice
    raises ``DuplicateInvoiceError`` instead of being returned.
    """

    existing = await _find_for_transaction(session, tenant_id, transaction_id)
    if existing is not None:
        if strict:
            raise DuplicateInvoiceError(
                f"transaction already invoiced as {existing.invoice_number}",
                field="transaction_id",
            )
        return existing, False

    transaction = await sales_service.get_transaction(
        session, tenant_id=tenant_id, transaction_id=transaction_id
    )
    branding = await settings_service.get_branding(session, tenant_id=tenant_id)
    issue_date = issue_date or _today()
    quote = recompute_quote(transaction)

    try:
        value = await numbering_service.next_sequence_value(
            session, tenant_id=tenant_id, kind=SequenceKind.INVOICE
        )
        document = build_invoice_document(
            transaction,
            branding,
            invoice_number=numbering_service.format_invoice_number(issue_date, value),
            issue_date=issue_date,
            quote=quote,
        )
        invoice = _to_model(document, transaction)
        session.add(invoice)
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raced = await _find_for_transaction(session, tenant_id, transaction_id)
        if raced is not None:
            if strict:
                raise DuplicateInvoiceError(
                    f"transaction already invoiced as {raced.invoice_number}",
                    field="transaction_id",
                ) from exc
            return raced, False
        logger.warning("Invoice number collision for tenant %s", tenant_id)
        raise ConcurrencyError(
            "invoice number already taken; retry the request",
            field="invoice_number",
        ) from exc
    except SettlementError:
        await session.rollback()
        raise

    logger.info(
        "Composed invoice %s for transaction %s (status=%s)",
        document.invoice_number,
        document.transaction_number,
        document.status.value,
    )
    return await get_invoice(session, tenant_id=tenant_id, invoice_id=invoice.id), True


async def get_invoice(
    session: AsyncSession, *, tenant_id: uuid.UUID, invoice_id: uuid.UUID
) -> Invoice:
    stmt = _invoice_query(tenant_id).where(Invoice.id == invoice_id)
    result = await session.execute(stmt.execution_options(populate_existing=True))
    invoice = result.scalars().unique().one_or_none()
    if invoice is None:
        raise NotFoundError("Invoice not found", field="invoice_id")
    return invoice


async def list_invoices(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    status: InvoiceStatus | None = None,
    customer_id: uuid.UUID | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Invoice]:
    """List tenant invoices, newest issue date first."""

    stmt = _invoice_query(tenant_id)
    if status is not None:
        stmt = stmt.where(Invoice.status == status)
    if customer_id is not None:
        stmt = stmt.where(Invoice.customer_id == customer_id)
    stmt = (
        stmt.order_by(Invoice.issue_date.desc(), Invoice.invoice_number.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(stmt)
    return list(result.scalars().unique().all())


async def _apply_transition(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    invoice_id: uuid.UUID,
    transition: _Transition,
) -> Invoice:
    invoice = await get_invoice(session, tenant_id=tenant_id, invoice_id=invoice_id)
    if invoice.status not in transition.allowed_from:
        raise InvalidInputError(
            f"cannot move invoice from {invoice.status.value} "
            f"to {transition.target.value}",
            code="invalid_transition",
            field="status",
        )
    invoice.status = transition.target
    for attribute, value in transition.extra.items():
        setattr(invoice, attribute, value)
    await session.commit()
    logger.info(
        "Invoice %s moved to %s", invoice.invoice_number, transition.target.value
    )
    return await get_invoice(session, tenant_id=tenant_id, invoice_id=invoice_id)


async def send_invoice(
    session: AsyncSession, *, tenant_id: uuid.UUID, invoice_id: uuid.UUID
) -> Invoice:
    return await _apply_transition(
        session,
        tenant_id=tenant_id,
        invoice_id=invoice_id,
        transition=_Transition(frozenset({InvoiceStatus.DRAFT}), InvoiceStatus.SENT),
    )


async def mark_invoice_paid(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    invoice_id: uuid.UUID,
    paid_date: date | None = None,
) -> Invoice:
    """Record full payment; ``paid_date`` defaults to today."""

    invoice = await get_invoice(session, tenant_id=tenant_id, invoice_id=invoice_id)
    paid_date = paid_date or _today()
    if paid_date < invoice.issue_date:
        raise InvalidInputError(
            "paid_date must not be before the issue date", field="paid_date"
        )
    return await _apply_transition(
        session,
        tenant_id=tenant_id,
        invoice_id=invoice_id,
        transition=_Transition(
            frozenset({InvoiceStatus.DRAFT, InvoiceStatus.SENT}),
            InvoiceStatus.PAID,
            {
                "paid_date": paid_date,
                "paid_amount": invoice.total_amount,
                "remaining_balance": ZERO,
            },
        ),
    )


async def mark_invoice_overdue(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    invoice_id: uuid.UUID,
    today: date | None = None,
) -> Invoice:
    """Flag a sent invoice whose due date has passed."""

    invoice = await get_invoice(session, tenant_id=tenant_id, invoice_id=invoice_id)
    today = today or _today()
    if invoice.status is InvoiceStatus.SENT and today <= invoice.due_date:
        raise InvalidInputError(
            f"invoice is not past due until {invoice.due_date.isoformat()}",
            code="invalid_transition",
            field="due_date",
        )
    return await _apply_transition(
        session,
        tenant_id=tenant_id,
        invoice_id=invoice_id,
        transition=_Transition(frozenset({InvoiceStatus.SENT}), InvoiceStatus.OVERDUE),
    )


async def list_overdue_invoices(
    session: AsyncSession, *, tenant_id: uuid.UUID, today: date | None = None
) -> list[OverdueInvoice]:
    """Invoices flagged overdue or sent and past their due date."""

    today = today or _today()
    stmt = (
        _invoice_query(tenant_id)
        .where(Invoice.status.in_([InvoiceStatus.SENT, InvoiceStatus.OVERDUE]))
        .where(Invoice.due_date < today)
        .order_by(Invoice.due_date.asc())
    )
    result = await session.execute(stmt)
    return [
        OverdueInvoice(invoice=invoice, days_past_due=(today - invoice.due_date).days)
        for invoice in result.scalars().unique().all()
    ]


async def list_upcoming_due_invoices(
    session: AsyncSession,
    *,
    tenant_id: uuid.UUID,
    days: int = 7,
    today: date | None = None,
) -> list[UpcomingInvoice]:
    """Sent invoices falling due within the next ``days`` days."""

    if days < 0:
        raise InvalidInputError("days must not be negative", field="days")
    today = today or _today()
    stmt = (
        _invoice_query(tenant_id)
        .where(Invoice.status == InvoiceStatus.SENT)
        .where(Invoice.due_date >= today)
        .where(Invoice.due_date <= today + timedelta(days=days))
        .order_by(Invoice.due_date.asc())
    )
    result = await session.execute(stmt)
    return [
        UpcomingInvoice(invoice=invoice, days_until_due=(invoice.due_date - today).days)
        for invoice in result.scalars().unique().all()
    ]
