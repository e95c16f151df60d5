"""Pricing engine: tenant rule sets and cart quotes."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Iterable, Mapping

from app.core.errors import InvalidInputError
from app.core.money import (
    HUNDRED,
    ZERO,
    percent_of,
    to_decimal,
    to_hundredths,
    to_money,
    to_str,
)
from app.models.pricing import FeeType


def _decimal_field(value: Any, field_name: str) -> Decimal:
    try:
        amount = to_decimal(value)
    except (ArithmeticError, TypeError, ValueError) as exc:
        raise InvalidInputError(
            f"{field_name} must be a number", field=field_name
        ) from exc
    if not amount.is_finite():
        raise InvalidInputError(f"{field_name} must be a number", field=field_name)
    return amount


def _non_negative(value: Any, field_name: str) -> Decimal:
    amount = _decimal_field(value, field_name)
    if amount < ZERO:
        raise InvalidInputError(
            f"{field_name} must not be negative", field=field_name
        )
    return amount


def _percentage(value: Any, field_name: str) -> Decimal:
    amount = _non_negative(value, field_name)
    if amount > HUNDRED:
        raise InvalidInputError(
            f"{field_name} must be between 0 and 100", field=field_name
        )
    return amount


def _fee_type(value: Any, field_name: str) -> FeeType:
    try:
        return FeeType(value)
    except ValueError as exc:
        raise InvalidInputError(
            f"{field_name} must be 'fixed' or 'percentage'", field=field_name
        ) from exc


def _charge(fee_type: FeeType, value: Decimal, subtotal: Decimal) -> Decimal:
    if fee_type is FeeType.FIXED:
        return to_money(value)
    return percent_of(subtotal, value)


@dataclass(frozen=True, slots=True)
class ServiceCharge:
    """Optional service charge, fixed or a percentage of the subtotal."""

    fee_type: FeeType = FeeType.FIXED
    value: Decimal = ZERO
    required: bool = False

    def __post_init__(self) -> None:
        fee_type = _fee_type(self.fee_type, "service_charge.type")
        object.__setattr__(self, "fee_type", fee_type)
        if fee_type is FeeType.PERCENTAGE:
            value = _percentage(self.value, "service_charge.value")
        else:
            value = _non_negative(self.value, "service_charge.value")
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "required", bool(self.required))


@dataclass(frozen=True, slots=True)
class TravelSurcharge:
    """Distance based surcharge for home visits.

    ``min_distance_km``/``max_distance_km`` clamp the billed distance; they do
    not decide eligibility.
    """

    base_amount: Decimal = ZERO
    per_km_amount: Decimal = ZERO
    min_distance_km: Decimal | None = None
    max_distance_km: Decimal | None = None
    required: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "base_amount",
            _non_negative(self.base_amount, "travel_surcharge.base_amount"),
        )
        object.__setattr__(
            self,
            "per_km_amount",
            _non_negative(self.per_km_amount, "travel_surcharge.per_km_amount"),
        )
        minimum = maximum = None
        if self.min_distance_km is not None:
            minimum = _non_negative(
                self.min_distance_km, "travel_surcharge.min_distance_km"
            )
        if self.max_distance_km is not None:
            maximum = _non_negative(
                self.max_distance_km, "travel_surcharge.max_distance_km"
            )
        if minimum is not None and maximum is not None and minimum > maximum:
            raise InvalidInputError(
                "travel_surcharge.min_distance_km must not exceed max_distance_km",
                field="travel_surcharge.min_distance_km",
            )
        object.__setattr__(self, "min_distance_km", minimum)
        object.__setattr__(self, "max_distance_km", maximum)
        object.__setattr__(self, "required", bool(self.required))

    def billable_distance(self, distance_km: Decimal) -> Decimal:
        if self.min_distance_km is not None and distance_km < self.min_distance_km:
            return self.min_distance_km
        if self.max_distance_km is not None and distance_km > self.max_distance_km:
            return self.max_distance_km
        return distance_km


@dataclass(frozen=True, slots=True)
class FeeRule:
    """A named additional fee configured by the tenant."""

    id: str
    name: str
    fee_type: FeeType
    value: Decimal

    def __post_init__(self) -> None:
        if not str(self.name or "").strip():
            raise InvalidInputError(
                "additional fee name is required", field="additional_fees.name"
            )
        fee_type = _fee_type(self.fee_type, "additional_fees.type")
        object.__setattr__(self, "fee_type", fee_type)
        object.__setattr__(self, "id", str(self.id))
        if fee_type is FeeType.PERCENTAGE:
            value = _percentage(self.value, "additional_fees.value")
        else:
            value = _non_negative(self.value, "additional_fees.value")
        object.__setattr__(self, "value", value)


@dataclass(frozen=True, slots=True)
class PricingRuleSet:
    """Validated tenant pricing configuration used by every quote."""

    tax_percentage: Decimal = ZERO
    service_charge: ServiceCharge = field(default_factory=ServiceCharge)
    travel_surcharge: TravelSurcharge = field(default_factory=TravelSurcharge)
    additional_fees: tuple[FeeRule, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "tax_percentage", _percentage(self.tax_percentage, "tax_percentage")
        )
        object.__setattr__(self, "additional_fees", tuple(self.additional_fees))

    @classmethod
    def empty(cls) -> PricingRuleSet:
        return cls()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON types (used for the transaction snapshot)."""

        travel = self.travel_surcharge
        return {
            "tax_percentage": str(self.tax_percentage),
            "service_charge": {
                "type": self.service_charge.fee_type.value,
                "value": str(self.service_charge.value),
                "required": self.service_charge.required,
            },
            "travel_surcharge": {
                "base_amount": str(travel.base_amount),
                "per_km_amount": str(travel.per_km_amount),
                "min_distance_km": (
                    str(travel.min_distance_km)
                    if travel.min_distance_km is not None
                    else None
                ),
                "max_distance_km": (
                    str(travel.max_distance_km)
                    if travel.max_distance_km is not None
                    else None
                ),
                "required": travel.required,
            },
            "additional_fees": [
                {
                    "id": fee.id,
                    "name": fee.name,
                    "type": fee.fee_type.value,
                    "value": str(fee.value),
                }
                for fee in self.additional_fees
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PricingRuleSet:
        service = data.get("service_charge") or {}
        travel = data.get("travel_surcharge") or {}
        return cls(
            tax_percentage=data.get("tax_percentage", ZERO),
            service_charge=ServiceCharge(
                fee_type=service.get("type", FeeType.FIXED),
                value=service.get("value", ZERO),
                required=service.get("required", False),
            ),
            travel_surcharge=TravelSurcharge(
                base_amount=travel.get("base_amount", ZERO),
                per_km_amount=travel.get("per_km_amount", ZERO),
                min_distance_km=travel.get("min_distance_km"),
                max_distance_km=travel.get("max_distance_km"),
                required=travel.get("required", False),
            ),
            additional_fees=tuple(
                FeeRule(
                    id=fee.get("id") or str(uuid.uuid4()),
                    name=fee.get("name", ""),
                    fee_type=fee.get("type", FeeType.FIXED),
                    value=fee.get("value", ZERO),
                )
                for fee in data.get("additional_fees") or []
            ),
        )


@dataclass(slots=True)
class LineItem:
    """One cart entry."""

    quantity: int
    unit_price: Decimal
    service_id: str | None = None
    service_name: str | None = None

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.quantity) * to_decimal(self.unit_price)


@dataclass(slots=True)
class FeeLine:
    """Contribution of one additional fee, retained for auditability."""

    fee_id: str
    name: str
    fee_type: FeeType
    value: Decimal
    amount: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "fee_id": self.fee_id,
            "name": self.name,
            "fee_type": self.fee_type.value,
            "value": str(self.value),
            "amount": to_str(self.amount),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FeeLine:
        return cls(
            fee_id=str(data["fee_id"]),
            name=str(data["name"]),
            fee_type=FeeType(data["fee_type"]),
            value=to_decimal(data["value"]),
            amount=to_money(data["amount"]),
        )


@dataclass(slots=True)
class PricingQuote:
    """Fully itemized price breakdown for a cart under one rule set."""

    subtotal: Decimal
    tax_amount: Decimal
    service_charge_amount: Decimal
    travel_surcharge_amount: Decimal
    additional_fees_total: Decimal
    fee_breakdown: list[FeeLine]
    grand_total: Decimal
    billable_distance_km: Decimal | None = None

    @classmethod
    def from_total(cls, total: Decimal | int | str) -> PricingQuote:
        """Quote for an amount already fixed elsewhere (e.g. at booking time)."""

        amount = to_money(_non_negative(total, "total_amount"))
        return cls(
            subtotal=amount,
            tax_amount=ZERO,
            service_charge_amount=ZERO,
            travel_surcharge_amount=ZERO,
            additional_fees_total=ZERO,
            fee_breakdown=[],
            grand_total=amount,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the quote to plain types for responses."""

        return {
            "subtotal": to_str(self.subtotal),
            "tax_amount": to_str(self.tax_amount),
            "service_charge_amount": to_str(self.service_charge_amount),
            "travel_surcharge_amount": to_str(self.travel_surcharge_amount),
            "additional_fees_total": to_str(self.additional_fees_total),
            "fee_breakdown": [line.to_dict() for line in self.fee_breakdown],
            "grand_total": to_str(self.grand_total),
        }


def _validate_line_item(index: int, item: LineItem) -> LineItem:
    prefix = f"line_items[{index}]"
    quantity = item.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidInputError(
            f"{prefix}.quantity must be an integer", field=f"{prefix}.quantity"
        )
    if quantity < 1:
        raise InvalidInputError(
            f"{prefix}.quantity must be at least 1", field=f"{prefix}.quantity"
        )
    unit_price = _non_negative(item.unit_price, f"{prefix}.unit_price")
    return replace(item, unit_price=to_hundredths(unit_price))


def normalize_line_items(line_items: Iterable[LineItem]) -> list[LineItem]:
    """Validate a cart and return copies with unit prices at stored precision.

    The caller's items are left untouched.
    """

    return [
        _validate_line_item(index, item) for index, item in enumerate(line_items)
    ]


def normalize_distance(distance_km: Any) -> Decimal | None:
    if distance_km is None:
        return None
    return to_hundredths(_non_negative(distance_km, "travel_distance_km"))


def compute_quote(
    line_items: Iterable[LineItem],
    rule_set: PricingRuleSet,
    travel_distance_km: Decimal | int | float | str | None = None,
) -> PricingQuote:
    """Price a cart. Used unchanged for previews and for final transactions."""

    items = normalize_line_items(line_items)
    distance = normalize_distance(travel_distance_km)

    subtotal = to_money(sum((item.line_total for item in items), ZERO))
    tax_amount = percent_of(subtotal, rule_set.tax_percentage)

    service = rule_set.service_charge
    service_charge_amount = ZERO
    if service.required:
        service_charge_amount = _charge(service.fee_type, service.value, subtotal)

    travel = rule_set.travel_surcharge
    travel_amount = ZERO
    billable: Decimal | None = None
    if travel.required and distance is not None:
        billable = travel.billable_distance(distance)
        travel_amount = to_money(travel.base_amount + travel.per_km_amount * billable)

    fee_lines = [
        FeeLine(
            fee_id=fee.id,
            name=fee.name,
            fee_type=fee.fee_type,
            value=fee.value,
            amount=_charge(fee.fee_type, fee.value, subtotal),
        )
        for fee in rule_set.additional_fees
    ]
    fees_total = sum((line.amount for line in fee_lines), ZERO)

    grand_total = to_money(
        subtotal + tax_amount + service_charge_amount + travel_amount + fees_total
    )
    return PricingQuote(
        subtotal=subtotal,
        tax_amount=tax_amount,
        service_charge_amount=service_charge_amount,
        travel_surcharge_amount=travel_amount,
        additional_fees_total=to_money(fees_total),
        fee_breakdown=fee_lines,
        grand_total=grand_total,
        billable_distance_km=billable,
    )

