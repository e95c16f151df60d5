"""Payment reconciliation against a quoted total."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable

from app.core.errors import PaymentValidationError
from app.core.money import MONEY_PLACES, ZERO, to_decimal, to_money
from app.models.sales_transaction import PaymentMethod

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PaymentEntry:
    """One user-entered payment (method + amount)."""

    method: PaymentMethod | str
    amount: Decimal
    reference: str | None = None


@dataclass(slots=True)
class ReconciliationResult:
    """Outcome of checking payments against a total."""

    total_paid: Decimal
    remaining: Decimal
    valid: bool
    errors: list[PaymentValidationError] = field(default_factory=list)
    entries: list[PaymentEntry] = field(default_factory=list)

    @property
    def is_settled(self) -> bool:
        return self.valid and self.remaining == ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_paid": str(self.total_paid),
            "remaining": str(self.remaining),
            "valid": self.valid,
            "errors": [error.to_detail() for error in self.errors],
        }


def _normalize_method(
    index: int, raw: PaymentMethod | str
) -> tuple[PaymentMethod | None, PaymentValidationError | None]:
    try:
        return PaymentMethod(raw), None
    except ValueError:
        return None, PaymentValidationError(
            f"unknown method: {raw!r}",
            code="unknown_method",
            field=f"payments[{index}].method",
        )


def _normalize_amount(
    index: int, raw: Any
) -> tuple[Decimal | None, PaymentValidationError | None]:
    field_name = f"payments[{index}].amount"
    try:
        amount = to_decimal(raw)
    except (ArithmeticError, TypeError, ValueError):
        amount = None
    if amount is None or not amount.is_finite():
        return None, PaymentValidationError(
            "payment amount must be a number", code="invalid_amount", field=field_name
        )
    if amount < ZERO:
        return None, PaymentValidationError(
            "payment amount must not be negative",
            code="negative_amount",
            field=field_name,
        )
    if amount != amount.quantize(MONEY_PLACES):
        return None, PaymentValidationError(
            "payment amount must be a whole currency unit",
            code="invalid_amount",
            field=field_name,
        )
    return amount, None


def check_payments(
    payments: Iterable[PaymentEntry], quote_total: Decimal | int | str
) -> ReconciliationResult:
    """Validate payments against ``quote_total`` and collect every problem."""

    entries = list(payments)
    total = to_money(quote_total)
    errors: list[PaymentValidationError] = []
    normalized: list[PaymentEntry] = []

    if not entries:
        errors.append(
            PaymentValidationError(
                "no payments", code="no_payments", field="payments"
            )
        )

    total_paid = ZERO
    for index, entry in enumerate(entries):
        method, method_error = _normalize_method(index, entry.method)
        amount, amount_error = _normalize_amount(index, entry.amount)
        errors.extend(err for err in (method_error, amount_error) if err is not None)
        if method is None or amount is None:
            continue
        total_paid += amount
        normalized.append(
            PaymentEntry(method=method, amount=amount, reference=entry.reference)
        )

    if total_paid > total:
        errors.append(
            PaymentValidationError(
                f"overpayment: paid {total_paid} exceeds total {total}",
                code="overpayment",
                field="payments",
            )
        )

    return ReconciliationResult(
        total_paid=total_paid,
        remaining=total - total_paid,
        valid=not errors,
        errors=errors,
        entries=normalized,
    )


def reconcile(
    payments: Iterable[PaymentEntry], quote_total: Decimal | int | str
) -> ReconciliationResult:
    """Reconcile payments, raising the first validation error if any.

    Partial payment is valid: ``remaining > 0`` is reported, not rejected.
    """

    result = check_payments(payments, quote_total)
    if not result.valid:
        logger.warning(
            "Payment reconciliation rejected: %s",
            ", ".join(error.code for error in result.errors),
        )
        raise result.errors[0]
    return result
