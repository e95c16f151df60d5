"""Error taxonomy for the settlement and invoicing engine."""

from __future__ import annotations

from typing import Any


class SettlementError(ValueError):
    """Base class for caller-visible engine failures.

    Every error carries a machine readable ``code`` and, where applicable, the
    ``field`` that triggered it so the UI can point at the offending input.
    """

    default_code = "settlement_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.field = field

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "field": self.field}


class InvalidInputError(SettlementError):
    """Malformed or out-of-range input such as a bad line item or distance."""

    default_code = "invalid_input"


class PaymentValidationError(SettlementError):
    """Payment reconciliation failed (no payments, unknown method, overpayment)."""

    default_code = "payment_invalid"


class NotFoundError(SettlementError):
    """Referenced record does not exist for the tenant."""

    default_code = "not_found"


class DuplicateInvoiceError(SettlementError):
    """An invoice already exists for the transaction."""

    default_code = "already_invoiced"


class ConcurrencyError(SettlementError):
    """Number assignment collided with a concurrent writer; safe to retry once."""

    default_code = "number_collision"


class QuoteDriftError(SettlementError):
    """Recomputed totals disagree with the snapshot frozen on a transaction."""

    default_code = "quote_drift"


__all__ = [
    "ConcurrencyError",
    "DuplicateInvoiceError",
    "InvalidInputError",
    "NotFoundError",
    "PaymentValidationError",
    "QuoteDriftError",
    "SettlementError",
]
