"""ORM models package export."""

from app.models.tenant import Tenant
from app.models.customer import Customer
from app.models.branding import InvoiceBranding
from app.models.pricing import AdditionalFee, FeeType, PricingSettings
from app.models.sequence import SequenceKind, TenantSequence
from app.models.sales_transaction import (
    PaymentMethod,
    SalesSource,
    SalesTransaction,
    SalesTransactionItem,
    SalesTransactionPayment,
    SalesTransactionStatus,
)
from app.models.invoice import Invoice, InvoiceItem, InvoiceStatus

__all__ = [
    "AdditionalFee",
    "Customer",
    "FeeType",
    "Invoice",
    "InvoiceBranding",
    "InvoiceItem",
    "InvoiceStatus",
    "PaymentMethod",
    "PricingSettings",
    "SalesSource",
    "SalesTransaction",
    "SalesTransactionItem",
    "SalesTransactionPayment",
    "SalesTransactionStatus",
    "SequenceKind",
    "Tenant",
    "TenantSequence",
]
