"""Tests for report tables."""

from datetime import date

import pytest

from clockbill.core.errors import UnknownCurrencyError
from clockbill.core.intervals import RawInterval
from clockbill.reports.table import (
    CollectingSink,
    Column,
    TableBuilder,
    build_invoice_detail,
    build_period_report,
)
from clockbill.rollups.aggregator import compute_daily_rollups
from clockbill.rollups.extractor import ProjectTime
from clockbill.rollups.time_windows import compute_week_window


def _project_time(day, project, hours, day_hours):
    return ProjectTime(
        month=f"{day:%Y-%m}",
        day_summary=f"{day:%Y-%m-%d %a} [{day_hours:.2f}h]",
        project_summary=f"{project} [{hours:.2f}h]",
        day=day,
    )


def test_builder_appends_rows_in_order():
    builder = TableBuilder("Week 10", [Column("Heading"), Column("Hours")], kind="week")
    builder.add_header()
    builder.add_row(["ProjectX", 3.0], kind="subtotal")
    builder.add_row(["Design", 3.0], level=1)

    table = builder.build()

    assert len(builder) == 3
    assert [row.kind for row in table.rows] == ["header", "subtotal", "data"]
    assert table.rows[0].cells == ("Heading", "Hours")
    assert table.metadata == {"kind": "week"}
    assert table.column_values("Hours") == [3.0]
    assert [row.cells for row in table.data_rows] == [("Design", 3.0)]


def test_builder_rejects_wrong_cell_count():
    builder = TableBuilder("T", [Column("A"), Column("B")])

    with pytest.raises(ValueError, match="2 columns"):
        builder.add_row(["only one"])


def test_built_table_is_independent_of_builder():
    builder = TableBuilder("T", [Column("A")])
    table = builder.build()
    builder.add_row(["x"])

    assert table.rows == []


def test_column_index_unknown():
    table = TableBuilder("T", [Column("A")]).build()

    with pytest.raises(KeyError):
        table.column_index("B")


def test_collecting_sink():
    sink = CollectingSink()
    assert sink.last is None

    table = TableBuilder("T", [Column("A")]).build()
    sink.accept(table)

    assert sink.tables == [table]
    assert sink.last is table


def test_period_report():
    raw = [
        RawInterval(start="2024-03-05 09:00", end="2024-03-05 10:30", path="A/B/C"),
        RawInterval(start="2024-03-05 10:30", end="2024-03-05 12:00", path="A/B/D"),
        RawInterval(start="2024-03-06 09:00", end="2024-03-06 10:00", path="E"),
    ]
    window = compute_week_window(date(2024, 3, 5))

    table = build_period_report(window, compute_daily_rollups(raw, 15, window=window))

    assert table.title == window.label
    assert table.metadata["kind"] == "week"
    assert table.rows[0].kind == "header"
    assert table.rows[1].cells == ("2024-03-05 Tue", "", "", 3.0)
    assert table.rows[-1].kind == "total"
    assert table.rows[-1].cells == ("Total", "", "", 4.0)
    assert ("A/B/C", "2024-03-05 09:00", "2024-03-05 10:30", 1.5) in [row.cells for row in table.data_rows]
    assert sum(table.column_values("Hours", kind="data")) == 4.0


def test_invoice_detail_with_month_subtotals():
    items = [
        _project_time(date(2024, 3, 5), "A", 3.0, 3.0),
        _project_time(date(2024, 3, 6), "B", 1.5, 1.5),
        _project_time(date(2024, 4, 2), "A", 2.0, 2.0),
    ]

    table = build_invoice_detail(items, rate=100.0, currency="EUR", invoice_number=7)

    assert table.metadata == {"rate": 100.0, "currency": "EUR", "invoice": 7}
    assert table.columns[-1].formula == "Hours * 100"
    assert [row.kind for row in table.rows] == ["header", "data", "data", "subtotal", "data", "subtotal", "total"]
    assert table.rows[1].cells == ("2024-03", "2024-03-05", "A", 3.0, "€300.00")
    assert table.rows[3].cells == ("2024-03", "", "", 4.5, "€450.00")
    assert table.rows[-1].cells == ("Total", "", "", 6.5, "€650.00")


def test_invoice_detail_large_amounts_grouped():
    items = [_project_time(date(2024, 3, 5), "A", 10.0, 10.0)]

    table = build_invoice_detail(items, rate=150.0)

    assert table.rows[-1].cells[-1] == "$1,500.00"


def test_invoice_detail_empty_period():
    table = build_invoice_detail([], rate=100.0)

    assert [row.kind for row in table.rows] == ["header", "total"]
    assert table.rows[-1].cells == ("Total", "", "", 0.0, "$0.00")


def test_invoice_detail_unknown_currency():
    with pytest.raises(UnknownCurrencyError):
        build_invoice_detail([_project_time(date(2024, 3, 5), "A", 1.0, 1.0)], rate=1.0, currency="XYZ")
