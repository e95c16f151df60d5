"""Schema exports."""

from app.schemas.invoice import (
    InvoiceFromTransactionRequest,
    InvoiceItemRead,
    InvoicePaymentRequest,
    InvoiceRead,
)
from app.schemas.pricing import (
    AdditionalFeeSchema,
    FeeLineRead,
    LineItemIn,
    PricingQuoteRead,
    PricingQuoteRequest,
    PricingSettingsSchema,
    ServiceChargeSchema,
    TravelSurchargeSchema,
)
from app.schemas.reporting import (
    CustomerFinancialsEntry,
    DueInvoiceEntry,
    FinancialSummaryRead,
    MonthlyRevenueEntry,
    PaymentStatusEntry,
)
from app.schemas.sales import (
    PaymentEntryIn,
    SalesSourceBreakdown,
    SalesSummaryRead,
    SalesTransactionCreate,
    SalesTransactionItemRead,
    SalesTransactionPaymentRead,
    SalesTransactionRead,
)
from app.schemas.settings import BrandingRead, BrandingUpdate

__all__ = [
    "AdditionalFeeSchema",
    "BrandingRead",
    "BrandingUpdate",
    "CustomerFinancialsEntry",
    "DueInvoiceEntry",
    "FeeLineRead",
    "FinancialSummaryRead",
    "InvoiceFromTransactionRequest",
    "InvoiceItemRead",
    "InvoicePaymentRequest",
    "InvoiceRead",
    "LineItemIn",
    "MonthlyRevenueEntry",
    "PaymentEntryIn",
    "PaymentStatusEntry",
    "PricingQuoteRead",
    "PricingQuoteRequest",
    "PricingSettingsSchema",
    "SalesSourceBreakdown",
    "SalesSummaryRead",
    "SalesTransactionCreate",
    "SalesTransactionItemRead",
    "SalesTransactionPaymentRead",
    "SalesTransactionRead",
    "ServiceChargeSchema",
    "TravelSurchargeSchema",
]
