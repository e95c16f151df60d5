"""Sales transaction, line item, and payment entry models."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from app.db.base import Base
from app.models.mixins import TenantScopedMixin, TimestampMixin

if TYPE_CHECKING:
    from app.models.customer import Customer
    from app.models.invoice import Invoice


JSONB_TYPE = JSONB().with_variant(JSON(), "sqlite")


class SalesSource(str, enum.Enum):
    """Where a transaction originated."""

    ON_THE_SPOT = "on_the_spot"
    FROM_BOOKING = "from_booking"


class SalesTransactionStatus(str, enum.Enum):
    """Lifecycle states for a sales transaction."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    """Recognised payment methods."""

    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    QRIS = "qris"


class SalesTransaction(TenantScopedMixin, TimestampMixin, Base):
    """Immutable settlement record with its frozen quote snapshot."""

    __tablename__ = "sales_transactions"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "transaction_number", name="uq_sales_transaction_number"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    transaction_number: Mapped[str] = mapped_column(String(64), nullable=False)
    source: Mapped[SalesSource] = mapped_column(Enum(SalesSource), nullable=False)
    status: Mapped[SalesTransactionStatus] = mapped_column(
        Enum(SalesTransactionStatus), nullable=False
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False
    )
    booking_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text())

    travel_distance_km: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
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
    grand_total: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    fee_breakdown: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    pricing_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSONB_TYPE)

    total_paid: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    remaining_balance: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)

    customer: Mapped["Customer"] = relationship("Customer")
    items: Mapped[list["SalesTransactionItem"]] = relationship(
        "SalesTransactionItem",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="SalesTransactionItem.position",
    )
    payments: Mapped[list["SalesTransactionPayment"]] = relationship(
        "SalesTransactionPayment",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="SalesTransactionPayment.position",
    )
    invoice: Mapped["Invoice | None"] = relationship(
        "Invoice", back_populates="transaction", uselist=False
    )


class SalesTransactionItem(Base):
    """One service line within a transaction."""

    __tablename__ = "sales_transaction_items"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sales_transactions.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    service_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    service_name: Mapped[str | None] = mapped_column(String(255))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    transaction: Mapped[SalesTransaction] = relationship(
        "SalesTransaction", back_populates="items"
    )


class SalesTransactionPayment(Base):
    """One payment entry of a (possibly split) settlement."""

    __tablename__ = "sales_transaction_payments"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sales_transactions.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    method: Mapped[PaymentMethod] = mapped_column(Enum(PaymentMethod), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 0), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(255))
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    transaction: Mapped[SalesTransaction] = relationship(
        "SalesTransaction", back_populates="payments"
    )
