"""Currency amount formatting.

Only a small fixed symbol table is consulted; amounts are shown with two
decimals and comma grouping.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import MappingProxyType

from ..core.errors import InvalidAmountError, UnknownCurrencyError

__all__ = [
    "CURRENCY_SYMBOLS",
    "DEFAULT_CURRENCY",
    "currency_symbol",
    "format_amount",
]

DEFAULT_CURRENCY = "USD"

CURRENCY_SYMBOLS = MappingProxyType(
    {
        "USD": "$",
        "CAD": "$",
        "AUD": "$",
        "EUR": "€",
        "GBP": "£",
        "JPY": "¥",
        "CNY": "¥",
        "INR": "₹",
        "KRW": "₩",
        "ILS": "₪",
    }
)

_CENTS = Decimal("0.01")


def currency_symbol(code: str | None = None) -> str:
    """Look up the symbol for a 3-letter currency code.

    An empty or missing code falls back to USD.

    Raises
    ------
    UnknownCurrencyError
        If the code is not in the table
    """
    key = (code or DEFAULT_CURRENCY).strip().upper()
    try:
        return CURRENCY_SYMBOLS[key]
    except KeyError:
        raise UnknownCurrencyError(key) from None


def format_amount(amount: float | int | Decimal, currency_code: str | None = DEFAULT_CURRENCY) -> str:
    """Format an amount with its currency symbol.

    Two decimals (half-up), with a comma at the thousands boundary from
    1,000 and at the millions boundary too from 1,000,000.

    >>> format_amount(1234567.89)
    '$1,234,567.89'
    >>> format_amount(50, "GBP")
    '£50.00'

    Raises
    ------
    InvalidAmountError
        If the amount is negative or not a finite number
    UnknownCurrencyError
        If the currency code is not in the table
    """
    symbol = currency_symbol(currency_code)

    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountError(f"Not a number: {amount!r}") from exc

    if not value.is_finite():
        raise InvalidAmountError(f"Not a finite amount: {amount!r}")

    cents = value.quantize(_CENTS, rounding=ROUND_HALF_UP)
    if cents < 0:
        raise InvalidAmountError(f"Cannot format a negative amount: {amount!r}")

    # Drop the sign of a negative zero.
    return f"{symbol}{cents.copy_abs():,.2f}"
