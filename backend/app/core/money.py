"""Money helpers for the platform currency (zero decimal places)."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Final

MONEY_PLACES: Final = Decimal("1")
HUNDREDTHS: Final = Decimal("0.01")
ZERO: Final = Decimal("0")
HUNDRED: Final = Decimal("100")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert a raw numeric value to ``Decimal`` without float artefacts."""

    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Round to the currency unit using round-half-up."""

    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def percent_of(base: Decimal, percent: Decimal) -> Decimal:
    return to_money(base * percent / HUNDRED)


def to_str(value: Decimal) -> str:
    return f"{to_money(value):f}"


def to_hundredths(value: Decimal) -> Decimal:
    """Round a price or distance to the two places stored with transactions."""

    return value.quantize(HUNDREDTHS, rounding=ROUND_HALF_UP)
