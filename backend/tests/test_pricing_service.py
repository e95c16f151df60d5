"""Tests for the pricing engine."""

from __future__ import annotations

from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from app.core.errors import InvalidInputError
from app.models import FeeType
from app.services.pricing_service import (
    FeeRule,
    LineItem,
    PricingRuleSet,
    ServiceCharge,
    TravelSurcharge,
    compute_quote,
)


def _salon_rules(**overrides) -> PricingRuleSet:
    values = {
        "tax_percentage": Decimal("10"),
        "service_charge": ServiceCharge(
            fee_type=FeeType.FIXED, value=Decimal("5000"), required=True
        ),
    }
    values.update(overrides)
    return PricingRuleSet(**values)


def _home_visit_rules() -> PricingRuleSet:
    return PricingRuleSet(
        travel_surcharge=TravelSurcharge(
            base_amount=Decimal("25000"),
            per_km_amount=Decimal("5000"),
            min_distance_km=Decimal("2"),
            max_distance_km=Decimal("50"),
            required=True,
        )
    )


def test_cart_with_tax_and_fixed_service_charge() -> None:
    quote = compute_quote([LineItem(quantity=2, unit_price=Decimal("50000"))], _salon_rules())

    assert quote.subtotal == Decimal("100000")
    assert quote.tax_amount == Decimal("10000")
    assert quote.service_charge_amount == Decimal("5000")
    assert quote.travel_surcharge_amount == Decimal("0")
    assert quote.fee_breakdown == []
    assert quote.grand_total == Decimal("115000")


def test_travel_surcharge_uses_supplied_distance() -> None:
    quote = compute_quote(
        [LineItem(quantity=1, unit_price=Decimal("100000"))],
        _home_visit_rules(),
        travel_distance_km=Decimal("12"),
    )

    assert quote.travel_surcharge_amount == Decimal("85000")
    assert quote.billable_distance_km == Decimal("12")
    assert quote.grand_total == Decimal("185000")


@pytest.mark.parametrize(
    ("distance", "expected"),
    [
        (Decimal("0.5"), Decimal("35000")),
        (Decimal("80"), Decimal("275000")),
    ],
)
def test_travel_distance_is_clamped_not_gated(distance: Decimal, expected: Decimal) -> None:
    quote = compute_quote(
        [LineItem(quantity=1, unit_price=Decimal("0"))],
        _home_visit_rules(),
        travel_distance_km=distance,
    )
    assert quote.travel_surcharge_amount == expected


def test_travel_surcharge_needs_distance_and_required_flag() -> None:
    items = [LineItem(quantity=1, unit_price=Decimal("100000"))]
    without_distance = compute_quote(items, _home_visit_rules())
    assert without_distance.travel_surcharge_amount == Decimal("0")

    optional = PricingRuleSet(
        travel_surcharge=TravelSurcharge(
            base_amount=Decimal("25000"), per_km_amount=Decimal("5000")
        )
    )
    not_required = compute_quote(items, optional, travel_distance_km=Decimal("12"))
    assert not_required.travel_surcharge_amount == Decimal("0")


def test_percentage_fees_are_itemized() -> None:
    rules = _salon_rules(
        additional_fees=(
            FeeRule(id="fee-1", name="Booking fee", fee_type=FeeType.FIXED, value=Decimal("2000")),
            FeeRule(
                id="fee-2",
                name="Card surcharge",
                fee_type=FeeType.PERCENTAGE,
                value=Decimal("2.5"),
            ),
        )
    )
    quote = compute_quote([LineItem(quantity=2, unit_price=Decimal("50000"))], rules)

    assert [line.amount for line in quote.fee_breakdown] == [
        Decimal("2000"),
        Decimal("2500"),
    ]
    assert [line.name for line in quote.fee_breakdown] == ["Booking fee", "Card surcharge"]
    assert quote.additional_fees_total == Decimal("4500")
    assert quote.grand_total == Decimal("119500")
    assert quote.to_dict()["fee_breakdown"][1]["amount"] == "2500"


def test_percentage_service_charge_rounds_half_up() -> None:
    rules = PricingRuleSet(
        tax_percentage=Decimal("5"),
        service_charge=ServiceCharge(
            fee_type=FeeType.PERCENTAGE, value=Decimal("15"), required=True
        ),
    )
    quote = compute_quote([LineItem(quantity=1, unit_price=Decimal("10"))], rules)

    assert quote.tax_amount == Decimal("1")
    assert quote.service_charge_amount == Decimal("2")
    assert quote.grand_total == Decimal("13")


def test_optional_service_charge_is_not_applied() -> None:
    rules = PricingRuleSet(
        service_charge=ServiceCharge(fee_type=FeeType.FIXED, value=Decimal("5000"))
    )
    quote = compute_quote([LineItem(quantity=1, unit_price=Decimal("10000"))], rules)
    assert quote.service_charge_amount == Decimal("0")


@pytest.mark.parametrize(
    ("item", "field"),
    [
        (LineItem(quantity=0, unit_price=Decimal("100")), "line_items[0].quantity"),
        (LineItem(quantity=1, unit_price=Decimal("-1")), "line_items[0].unit_price"),
        (LineItem(quantity=True, unit_price=Decimal("1")), "line_items[0].quantity"),
    ],
)
def test_invalid_line_items_are_rejected(item: LineItem, field: str) -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        compute_quote([item], PricingRuleSet.empty())
    assert excinfo.value.field == field
    assert excinfo.value.code == "invalid_input"


def test_negative_distance_is_rejected() -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        compute_quote(
            [LineItem(quantity=1, unit_price=Decimal("1"))],
            _home_visit_rules(),
            travel_distance_km=Decimal("-3"),
        )
    assert excinfo.value.field == "travel_distance_km"


def test_quote_leaves_caller_items_untouched() -> None:
    item = LineItem(quantity=1, unit_price="100.005")  # type: ignore[arg-type]

    quote = compute_quote([item], PricingRuleSet.empty())

    assert item.unit_price == "100.005"
    assert quote.subtotal == Decimal("100")


def test_fractional_inputs_are_priced_at_two_places() -> None:
    quote = compute_quote(
        [LineItem(quantity=100, unit_price=Decimal("0.125"))],
        _home_visit_rules(),
        travel_distance_km=Decimal("12.345"),
    )

    assert quote.subtotal == Decimal("13")
    assert quote.billable_distance_km == Decimal("12.35")
    assert quote.travel_surcharge_amount == Decimal("86750")


def test_rule_set_validation_names_the_field() -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        PricingRuleSet(tax_percentage=Decimal("101"))
    assert excinfo.value.field == "tax_percentage"

    with pytest.raises(InvalidInputError) as excinfo:
        TravelSurcharge(min_distance_km=Decimal("10"), max_distance_km=Decimal("5"))
    assert excinfo.value.field == "travel_surcharge.min_distance_km"

    with pytest.raises(InvalidInputError) as excinfo:
        ServiceCharge(fee_type="weekly", value=Decimal("1"))
    assert excinfo.value.field == "service_charge.type"


def test_rule_set_snapshot_restores_equal_rules() -> None:
    rules = _salon_rules(
        travel_surcharge=TravelSurcharge(
            base_amount=Decimal("25000"),
            per_km_amount=Decimal("5000"),
            max_distance_km=Decimal("50"),
            required=True,
        ),
        additional_fees=(
            FeeRule(id="fee-1", name="Booking fee", fee_type=FeeType.FIXED, value=Decimal("2000")),
        ),
    )
    assert PricingRuleSet.from_dict(rules.to_dict()) == rules


# Property based checks -----------------------------------------------------

_money = st.integers(min_value=0, max_value=5_000_000).map(Decimal)
_percent = st.decimals(
    min_value=0, max_value=100, places=2, allow_nan=False, allow_infinity=False
)
_line_items = st.lists(
    st.builds(
        LineItem,
        quantity=st.integers(min_value=1, max_value=20),
        unit_price=_money,
    ),
    min_size=1,
    max_size=8,
)


@st.composite
def _charge_rule(draw) -> tuple[FeeType, Decimal]:
    fee_type = draw(st.sampled_from(list(FeeType)))
    value = draw(_percent) if fee_type is FeeType.PERCENTAGE else draw(_money)
    return fee_type, value


@st.composite
def _rule_sets(draw) -> PricingRuleSet:
    service_type, service_value = draw(_charge_rule())
    minimum = draw(st.none() | st.integers(min_value=0, max_value=10).map(Decimal))
    maximum = draw(st.none() | st.integers(min_value=10, max_value=100).map(Decimal))
    fees = []
    for index in range(draw(st.integers(min_value=0, max_value=4))):
        fee_type, value = draw(_charge_rule())
        fees.append(FeeRule(id=f"fee-{index}", name=f"Fee {index}", fee_type=fee_type, value=value))
    return PricingRuleSet(
        tax_percentage=draw(_percent),
        service_charge=ServiceCharge(
            fee_type=service_type, value=service_value, required=draw(st.booleans())
        ),
        travel_surcharge=TravelSurcharge(
            base_amount=draw(_money),
            per_km_amount=draw(_money),
            min_distance_km=minimum,
            max_distance_km=maximum,
            required=draw(st.booleans()),
        ),
        additional_fees=tuple(fees),
    )


@settings(max_examples=200, deadline=None)
@given(items=_line_items)
def test_zero_rule_set_total_equals_subtotal(items: list[LineItem]) -> None:
    quote = compute_quote(items, PricingRuleSet.empty())

    expected = sum((Decimal(item.quantity) * item.unit_price for item in items), Decimal("0"))
    assert quote.subtotal == expected
    assert quote.grand_total == quote.subtotal


@settings(max_examples=300, deadline=None)
@given(
    items=_line_items,
    rules=_rule_sets(),
    distance=st.none()
    | st.decimals(min_value=0, max_value=200, places=1, allow_nan=False, allow_infinity=False),
)
def test_grand_total_is_sum_of_components(
    items: list[LineItem], rules: PricingRuleSet, distance: Decimal | None
) -> None:
    quote = compute_quote(items, rules, distance)

    fees = sum((line.amount for line in quote.fee_breakdown), Decimal("0"))
    assert quote.additional_fees_total == fees
    assert quote.grand_total == (
        quote.subtotal
        + quote.tax_amount
        + quote.service_charge_amount
        + quote.travel_surcharge_amount
        + fees
    )
    assert len(quote.fee_breakdown) == len(rules.additional_fees)
    assert quote.grand_total == quote.grand_total.to_integral_value()
