# hc_core/common/tests/test_money.py
from decimal import Decimal

import pytest

from hc_core.common.money import currency_exponent, from_minor_units, quantize_major, to_decimal, to_minor_units


@pytest.mark.parametrize(
    "amount,currency,expected",
    [
        (Decimal("300"), "INR", 30000),
        (Decimal("19.99"), "INR", 1999),
        ("250.50", "inr", 25050),
        (Decimal("300"), "JPY", 300),
        (Decimal("1.234"), "KWD", 1234),
    ],
)
def test_to_minor_units_uses_currency_exponent(amount, currency, expected):
    assert to_minor_units(amount, currency) == expected


def test_unknown_currency_defaults_to_two_decimals():
    assert currency_exponent("XYZ") == 2
    assert currency_exponent(None) == 2


def test_minor_units_rounds_half_up():
    assert to_minor_units(Decimal("10.005"), "INR") == 1001


def test_from_minor_units_is_inverse_for_exact_amounts():
    assert from_minor_units(25050, "INR") == Decimal("250.50")
    assert from_minor_units(300, "JPY") == Decimal("300")


def test_quantize_major_and_to_decimal():
    assert quantize_major("99.999", "INR") == Decimal("100.00")
    assert to_decimal("12.5") == Decimal("12.5")
    assert to_decimal("") is None
    assert to_decimal("abc") is None
    assert to_decimal(True) is None


@pytest.mark.parametrize("value", ["NaN", "sNaN", "Infinity", "-inf", float("nan"), float("inf")])
def test_to_decimal_rejects_non_finite_values(value):
    assert to_decimal(value) is None
