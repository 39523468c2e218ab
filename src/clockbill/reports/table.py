"""Report tables built from explicit row objects.

A ``TableBuilder`` appends ``Row`` values to an ordered list; nothing tracks a
cursor or "current position". Finished ``Table`` objects carry column
definitions (with an optional formula describing derived columns) and are
handed to a render sink; formatting into a document is left to the sink.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from ..billing.currency import DEFAULT_CURRENCY, format_amount
from ..core.time import format_day_heading, format_timestamp

if TYPE_CHECKING:
    from ..rollups.aggregator import DayRollup
    from ..rollups.extractor import ProjectTime
    from ..rollups.time_windows import PeriodWindow

__all__ = [
    "CollectingSink",
    "Column",
    "Row",
    "RowKind",
    "Table",
    "TableBuilder",
    "build_invoice_detail",
    "build_period_report",
]

RowKind = Literal["header", "data", "subtotal", "total"]


@dataclass(frozen=True)
class Column:
    """Table column; ``formula`` describes how a derived column is computed."""

    name: str
    formula: str | None = None


@dataclass(frozen=True)
class Row:
    """One table row.

    Attributes
    ----------
    cells : tuple
        Cell values, one per column
    kind : RowKind
        header, data, subtotal or total
    level : int
        Nesting level for indentation (0 = top)
    """

    cells: tuple[Any, ...]
    kind: RowKind = "data"
    level: int = 0


@dataclass
class Table:
    """Finished table ready for a render sink."""

    title: str
    columns: list[Column]
    rows: list[Row] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def data_rows(self) -> list[Row]:
        return [row for row in self.rows if row.kind == "data"]

    def column_index(self, name: str) -> int:
        for index, column in enumerate(self.columns):
            if column.name == name:
                return index
        raise KeyError(name)

    def column_values(self, name: str, kind: RowKind = "data") -> list[Any]:
        index = self.column_index(name)
        return [row.cells[index] for row in self.rows if row.kind == kind]


class TableBuilder:
    """Accumulates rows for a table.

    Example:
        >>> builder = TableBuilder("Week 10", [Column("Heading"), Column("Hours")])
        >>> builder.add_header()
        >>> builder.add_row(["ProjectX", 3.0], kind="subtotal", level=1)
        >>> table = builder.build()
    """

    def __init__(self, title: str, columns: Sequence[Column], **metadata: Any) -> None:
        self.title = title
        self.columns = list(columns)
        self.metadata = dict(metadata)
        self._rows: list[Row] = []

    def add_header(self) -> Row:
        return self.add_row([column.name for column in self.columns], kind="header")

    def add_row(self, cells: Iterable[Any], *, kind: RowKind = "data", level: int = 0) -> Row:
        """Append a row.

        Raises
        ------
        ValueError
            If the number of cells does not match the columns
        """
        values = tuple(cells)
        if len(values) != len(self.columns):
            raise ValueError(f"Row has {len(values)} cells, table {self.title!r} has {len(self.columns)} columns")
        row = Row(cells=values, kind=kind, level=level)
        self._rows.append(row)
        return row

    def __len__(self) -> int:
        return len(self._rows)

    def build(self) -> Table:
        return Table(title=self.title, columns=list(self.columns), rows=list(self._rows), metadata=dict(self.metadata))


class CollectingSink:
    """Render sink that keeps accepted tables in memory."""

    def __init__(self) -> None:
        self.tables: list[Table] = []

    def accept(self, table: Table) -> None:
        self.tables.append(table)

    @property
    def last(self) -> Table | None:
        return self.tables[-1] if self.tables else None


PERIOD_REPORT_COLUMNS = (
    Column("Heading"),
    Column("Start"),
    Column("Stop"),
    Column("Hours"),
)


def build_period_report(window: PeriodWindow, rollups: Sequence[DayRollup]) -> Table:
    """Table of day totals, subtotals and clocked intervals for a window."""
    builder = TableBuilder(window.label, PERIOD_REPORT_COLUMNS, kind=window.kind)
    builder.add_header()

    total = 0.0
    for rollup in rollups:
        builder.add_row([format_day_heading(rollup.day), "", "", rollup.day_total], kind="subtotal")
        total += rollup.day_total

        for entry in rollup.entries:
            if entry.is_leaf:
                builder.add_row(
                    ["/".join(entry.path), format_timestamp(entry.start), format_timestamp(entry.stop), entry.hours],
                    level=entry.depth + 1,
                )
            else:
                builder.add_row([entry.label, "", "", entry.hours], kind="subtotal", level=entry.depth)

    builder.add_row(["Total", "", "", total], kind="total")
    return builder.build()


def build_invoice_detail(
    project_times: Sequence[ProjectTime],
    *,
    rate: float = 0.0,
    currency: str | None = DEFAULT_CURRENCY,
    title: str = "Invoice detail",
    invoice_number: int | None = None,
) -> Table:
    """Invoice detail table: one row per project and day, with month subtotals.

    Raises
    ------
    UnknownCurrencyError, InvalidAmountError
        If amounts cannot be formatted
    """
    columns = [
        Column("Month"),
        Column("Day"),
        Column("Project"),
        Column("Hours"),
        Column("Amount", formula=f"Hours * {rate:g}"),
    ]
    builder = TableBuilder(title, columns, rate=rate, currency=currency or DEFAULT_CURRENCY, invoice=invoice_number)
    builder.add_header()

    month_hours = 0.0
    total_hours = 0.0
    current_month: str | None = None

    for item in project_times:
        if current_month is not None and item.month != current_month:
            builder.add_row(
                [current_month, "", "", month_hours, format_amount(month_hours * rate, currency)],
                kind="subtotal",
            )
            month_hours = 0.0
        current_month = item.month

        hours = item.hours
        month_hours += hours
        total_hours += hours
        builder.add_row(
            [item.month, item.day.isoformat(), item.project, hours, format_amount(hours * rate, currency)],
            level=1,
        )

    if current_month is not None:
        builder.add_row(
            [current_month, "", "", month_hours, format_amount(month_hours * rate, currency)],
            kind="subtotal",
        )

    builder.add_row(["Total", "", "", total_hours, format_amount(total_hours * rate, currency)], kind="total")
    return builder.build()
