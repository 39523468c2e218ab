"""Tests for currency formatting."""

from decimal import Decimal

import pytest

from clockbill.billing.currency import CURRENCY_SYMBOLS, currency_symbol, format_amount
from clockbill.core.errors import ClockbillError, InvalidAmountError, UnknownCurrencyError


@pytest.mark.parametrize(
    ("amount", "code", "expected"),
    [
        (999.5, "USD", "$999.50"),
        (1234.5, "USD", "$1,234.50"),
        (1234567.89, "USD", "$1,234,567.89"),
        (50, "GBP", "£50.00"),
        (0, "EUR", "€0.00"),
        (1000, "USD", "$1,000.00"),
        (999999.999, "USD", "$1,000,000.00"),
        (1000000, "JPY", "¥1,000,000.00"),
        (Decimal("12.345"), "USD", "$12.35"),
        (0.125, "USD", "$0.13"),
    ],
)
def test_format_amount(amount, code, expected):
    assert format_amount(amount, code) == expected


def test_default_and_empty_codes_fall_back_to_usd():
    assert format_amount(12) == "$12.00"
    assert format_amount(12, None) == "$12.00"
    assert format_amount(12, "") == "$12.00"
    assert currency_symbol("gbp") == "£"


def test_unknown_currency_fails():
    with pytest.raises(UnknownCurrencyError) as exc_info:
        format_amount(10, "XYZ")

    assert exc_info.value.code == "XYZ"
    assert "XYZ" in str(exc_info.value)
    assert isinstance(exc_info.value, ClockbillError)


@pytest.mark.parametrize("amount", [-0.01, -0.005, -1000, float("nan"), float("inf"), "ten"])
def test_invalid_amounts_fail(amount):
    with pytest.raises(InvalidAmountError):
        format_amount(amount, "USD")


def test_symbol_table_is_read_only():
    with pytest.raises(TypeError):
        CURRENCY_SYMBOLS["XYZ"] = "x"


@pytest.mark.parametrize("amount", [-0.0, -0.001, Decimal("-0.004")])
def test_amounts_rounding_to_zero_are_unsigned(amount):
    assert format_amount(amount, "USD") == "$0.00"
