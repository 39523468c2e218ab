"""Report tables and render sinks."""

from .table import (
    CollectingSink,
    Column,
    Row,
    Table,
    TableBuilder,
    build_invoice_detail,
    build_period_report,
)

__all__ = [
    "CollectingSink",
    "Column",
    "Row",
    "Table",
    "TableBuilder",
    "build_invoice_detail",
    "build_period_report",
]
