"""Invoice numbering and currency formatting."""

from .currency import CURRENCY_SYMBOLS, DEFAULT_CURRENCY, currency_symbol, format_amount
from .invoice_sequence import DEFAULT_COUNTER_PATH, InvoiceSequence, InvoiceSequenceConfig

__all__ = [
    "CURRENCY_SYMBOLS",
    "DEFAULT_COUNTER_PATH",
    "DEFAULT_CURRENCY",
    "InvoiceSequence",
    "InvoiceSequenceConfig",
    "currency_symbol",
    "format_amount",
]
