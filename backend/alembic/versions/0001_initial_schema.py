"""Initial settlement schema.

Revision ID: 0001
Revises:
Create Date: 2026-03-01
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

fee_type = postgresql.ENUM("FIXED", "PERCENTAGE", name="feetype", create_type=False)
sales_source = postgresql.ENUM(
    "ON_THE_SPOT", "FROM_BOOKING", name="salessource", create_type=False
)
sales_status = postgresql.ENUM(
    "PENDING",
    "COMPLETED",
    "CANCELLED",
    "REFUNDED",
    name="salestransactionstatus",
    create_type=False,
)
payment_method = postgresql.ENUM(
    "CASH", "CARD", "TRANSFER", "QRIS", name="paymentmethod", create_type=False
)
sequence_kind = postgresql.ENUM(
    "TRANSACTION", "INVOICE", name="sequencekind", create_type=False
)
invoice_status = postgresql.ENUM(
    "DRAFT", "SENT", "PAID", "OVERDUE", name="invoicestatus", create_type=False
)
ENUMS = (
    fee_type,
    sales_source,
    sales_status,
    payment_method,
    sequence_kind,
    invoice_status,
)

json_type = postgresql.JSONB().with_variant(sa.JSON(), "sqlite")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _tenant_fk(*, unique: bool = False) -> sa.Column:
    return sa.Column(
        "tenant_id",
        sa.Uuid(as_uuid=True),
        sa.ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        unique=unique,
    )


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(14, 0), nullable=False)


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _tenant_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("phone", sa.String(length=50)),
        sa.Column("address", sa.String(length=500)),
        *_timestamps(),
    )
    op.create_index("ix_customers_tenant_id", "customers", ["tenant_id"])

    op.create_table(
        "pricing_settings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _tenant_fk(unique=True),
        sa.Column(
            "tax_percentage", sa.Numeric(5, 2), nullable=False, server_default="0"
        ),
        sa.Column(
            "service_charge_type", fee_type, nullable=False, server_default="FIXED"
        ),
        sa.Column(
            "service_charge_value",
            sa.Numeric(14, 2),
            nullable=False,
            server_default="0",
        ),
        sa.Column(
            "service_charge_required",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "travel_base_amount", sa.Numeric(14, 2), nullable=False, server_default="0"
        ),
        sa.Column(
            "travel_per_km_amount",
            sa.Numeric(14, 2),
            nullable=False,
            server_default="0",
        ),
        sa.Column("travel_min_distance_km", sa.Numeric(8, 2)),
        sa.Column("travel_max_distance_km", sa.Numeric(8, 2)),
        sa.Column(
            "travel_surcharge_required",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        *_timestamps(),
    )

    op.create_table(
        "additional_fees",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "settings_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("pricing_settings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("fee_type", fee_type, nullable=False),
        sa.Column("value", sa.Numeric(14, 2), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "invoice_branding",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _tenant_fk(unique=True),
        sa.Column("logo_url", sa.String(length=500)),
        sa.Column("header_text", sa.Text()),
        sa.Column("footer_text", sa.Text()),
        sa.Column(
            "show_business_name",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column(
            "payment_grace_days", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("merchant_account_name", sa.String(length=255)),
        sa.Column("merchant_account_number", sa.String(length=64)),
        *_timestamps(),
    )

    op.create_table(
        "tenant_sequences",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "tenant_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("tenants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kind", sequence_kind, nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "kind", name="uq_tenant_sequence_kind"),
    )

    op.create_table(
        "sales_transactions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _tenant_fk(),
        sa.Column("transaction_number", sa.String(length=64), nullable=False),
        sa.Column("source", sales_source, nullable=False),
        sa.Column("status", sales_status, nullable=False),
        sa.Column(
            "customer_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("customers.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("booking_id", sa.Uuid(as_uuid=True)),
        sa.Column("notes", sa.Text()),
        sa.Column("travel_distance_km", sa.Numeric(8, 2)),
        _money("subtotal"),
        _money("tax_amount"),
        _money("service_charge_amount"),
        _money("travel_surcharge_amount"),
        _money("additional_fees_total"),
        _money("grand_total"),
        sa.Column("fee_breakdown", json_type, nullable=False),
        sa.Column("pricing_snapshot", json_type),
        _money("total_paid"),
        _money("remaining_balance"),
        *_timestamps(),
        sa.UniqueConstraint(
            "tenant_id", "transaction_number", name="uq_sales_transaction_number"
        ),
    )
    op.create_index(
        "ix_sales_transactions_tenant_id", "sales_transactions", ["tenant_id"]
    )

    op.create_table(
        "sales_transaction_items",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "transaction_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("sales_transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("service_id", sa.Uuid(as_uuid=True)),
        sa.Column("service_name", sa.String(length=255)),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False),
    )

    op.create_table(
        "sales_transaction_payments",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "transaction_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("sales_transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("method", payment_method, nullable=False),
        _money("amount"),
        sa.Column("reference", sa.String(length=255)),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "invoices",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _tenant_fk(),
        sa.Column(
            "transaction_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("sales_transactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("invoice_number", sa.String(length=64), nullable=False),
        sa.Column("transaction_number", sa.String(length=64), nullable=False),
        sa.Column(
            "status", invoice_status, nullable=False, server_default="DRAFT"
        ),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("paid_date", sa.Date()),
        sa.Column("customer_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255)),
        sa.Column("customer_phone", sa.String(length=50)),
        _money("subtotal"),
        _money("tax_amount"),
        _money("service_charge_amount"),
        _money("travel_surcharge_amount"),
        _money("additional_fees_total"),
        sa.Column("fee_breakdown", json_type, nullable=False),
        _money("total_amount"),
        _money("paid_amount"),
        _money("remaining_balance"),
        sa.Column("header_text", sa.Text()),
        sa.Column("footer_text", sa.Text()),
        sa.Column("payment_reference_payload", sa.Text(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("transaction_id", name="uq_invoice_transaction"),
        sa.UniqueConstraint("tenant_id", "invoice_number", name="uq_invoice_number"),
    )
    op.create_index("ix_invoices_tenant_id", "invoices", ["tenant_id"])

    op.create_table(
        "invoice_items",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "invoice_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("invoice_items")
    op.drop_index("ix_invoices_tenant_id", table_name="invoices")
    op.drop_table("invoices")
    op.drop_table("sales_transaction_payments")
    op.drop_table("sales_transaction_items")
    op.drop_index("ix_sales_transactions_tenant_id", table_name="sales_transactions")
    op.drop_table("sales_transactions")
    op.drop_table("tenant_sequences")
    op.drop_table("invoice_branding")
    op.drop_table("additional_fees")
    op.drop_table("pricing_settings")
    op.drop_index("ix_customers_tenant_id", table_name="customers")
    op.drop_table("customers")
    op.drop_table("tenants")

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
