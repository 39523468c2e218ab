"""Error taxonomy for clockbill.

Every failure the core can surface derives from ``ClockbillError`` so that the
caller orchestrating a period or invoice workflow can present one message and
abort cleanly.
"""

from __future__ import annotations

__all__ = [
    "ClockbillError",
    "CounterPersistenceError",
    "DestinationError",
    "InvalidAmountError",
    "InvalidIntervalError",
    "MalformedDateTokenError",
    "UnknownCurrencyError",
]


class ClockbillError(Exception):
    """Base exception for clockbill."""

    pass


class InvalidIntervalError(ClockbillError, ValueError):
    """Raised when an interval ends before it starts or has an empty path.

    Attributes
    ----------
    interval
        The offending interval (raw or rounded), if available
    """

    def __init__(self, message: str, interval: object | None = None) -> None:
        super().__init__(message)
        self.interval = interval


class UnknownCurrencyError(ClockbillError, KeyError):
    """Raised when a currency code is absent from the symbol table."""

    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code

    def __str__(self) -> str:
        return f"Unknown currency code: {self.code!r}"


class InvalidAmountError(ClockbillError, ValueError):
    """Raised when formatting a negative amount."""

    pass


class CounterPersistenceError(ClockbillError):
    """Raised when the invoice counter could not be durably advanced."""

    pass


class MalformedDateTokenError(ClockbillError, ValueError):
    """Raised when a rollup heading lacks the ``YYYY-MM-DD`` prefix."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Heading does not start with a YYYY-MM-DD date: {token!r}")
        self.token = token


class DestinationError(ClockbillError):
    """Raised when the hierarchical destination cannot be read or written."""

    pass
