"""Invoice and invoice item models."""

from __future__ import annotations

import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import Date, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TenantScopedMixin, TimestampMixin
from app.models.sales_transaction import JSONB_TYPE


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from app.models.sales_transaction import SalesTransaction


class InvoiceStatus(str, enum.Enum):
    """Invoice lifecycle states."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class Invoice(TenantScopedMixin, TimestampMixin, Base):
    """Invoice document derived from exactly one sales transaction."""

    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("transaction_id", name="uq_invoice_transaction"),
        UniqueConstraint("tenant_id", "invoice_number", name="uq_invoice_number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sales_transactions.id", ondelete="CASCADE"), nullable=False
    )
    invoice_number: Mapped[str] = mapped_column(String(64), nullable=False)
    transaction_number: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        Enum(InvoiceStatus), default=InvoiceStatus.DRAFT, nullable=False
    )
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    paid_date: Mapped[date | None] = mapped_column(Date)

    customer_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str | None] = mapped_column(String(255))
    customer_phone: Mapped[str | None] = mapped_column(String(50))

    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    service_charge_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 0), nullable=False
    )
    travel_surcharge_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 0), nullable=False
    )
    additional_fees_total: Mapped[Decimal] = mapped_column(
        Numeric(14, 0), nullable=False
    )
    fee_breakdown: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    remaining_balance: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)

    header_text: Mapped[str | None] = mapped_column(Text())
    footer_text: Mapped[str | None] = mapped_column(Text())
    payment_reference_payload: Mapped[str] = mapped_column(Text(), nullable=False)

    transaction: Mapped["SalesTransaction"] = relationship(
        "SalesTransaction", back_populates="invoice"
    )
    items: Mapped[list["InvoiceItem"]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )


class InvoiceItem(Base):
    """Line items within an invoice."""

    __tablename__ = "invoice_items"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    invoice_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    invoice: Mapped[Invoice] = relationship("Invoice", back_populates="items")
