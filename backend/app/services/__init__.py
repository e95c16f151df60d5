"""Service layer exports."""
from app.services import (
    financial_service,
    invoice_service,
    numbering_service,
    payments_service,
    pricing_service,
    sales_service,
    settings_service,
)

__all__ = [
    "financial_service",
    "invoice_service",
    "numbering_service",
    "payments_service",
    "pricing_service",
    "sales_service",
    "settings_service",
]
