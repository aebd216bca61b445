# This project was developed with assistance from AI tools.
"""Tests for premium calculation."""

from decimal import Decimal

import pytest

from placement.errors import WorkflowValidationError
from placement.services.premium import (
    RateComponents,
    calculate_final_amount,
    derive_tax_amount,
    parse_broker_fee,
    to_money,
    validate_carrier_quote,
)


def test_final_amount_sums_all_components():
    components = RateComponents.build("1000", "150", "70", "25")
    assert calculate_final_amount(components) == Decimal("1245.00")


def test_broker_fee_edit_changes_final_amount():
    components = RateComponents.build("1000", "200", "70", "25")
    assert calculate_final_amount(components) == Decimal("1295.00")


def test_missing_optional_components_count_as_zero():
    components = RateComponents.build("1000")
    assert components.broker_fee_amount_usd == Decimal("0.00")
    assert components.premium_tax_amount_usd is None
    assert components.policy_fee_usd is None
    assert calculate_final_amount(components) == Decimal("1000.00")


def test_float_input_does_not_drift():
    components = RateComponents.build(0.1, 0.2)
    assert calculate_final_amount(components) == Decimal("0.30")


@pytest.mark.parametrize("value", [None, "", 0, "-5"])
def test_carrier_quote_must_be_positive(value):
    with pytest.raises(WorkflowValidationError):
        validate_carrier_quote(value)


@pytest.mark.parametrize("value", ["abc", True, float("nan"), "Infinity"])
def test_non_numeric_amounts_are_rejected(value):
    with pytest.raises(WorkflowValidationError):
        to_money(value)


def test_negative_broker_fee_rejected():
    with pytest.raises(WorkflowValidationError, match="cannot be negative"):
        parse_broker_fee("-1")


def test_absent_broker_fee_is_zero():
    assert parse_broker_fee(None) == Decimal("0.00")
    assert parse_broker_fee("") == Decimal("0.00")


def test_negative_policy_fee_rejected():
    with pytest.raises(WorkflowValidationError, match="policyFeeUSD"):
        RateComponents.build("1000", "0", None, "-10")


def test_money_rounds_half_up():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money("10.004") == Decimal("10.00")


def test_derive_tax_amount_from_percent():
    assert derive_tax_amount(Decimal("1000.00"), Decimal("7.0000")) == Decimal("70.00")
    assert derive_tax_amount(Decimal("333.33"), Decimal("3.5")) == Decimal("11.67")


def test_components_read_off_quote_row():
    quote = type(
        "Row",
        (),
        {
            "carrier_quote_usd": Decimal("1000"),
            "broker_fee_amount_usd": Decimal("150"),
            "premium_tax_amount_usd": Decimal("70"),
            "policy_fee_usd": Decimal("25"),
        },
    )()
    assert calculate_final_amount(RateComponents.of(quote)) == Decimal("1245.00")
