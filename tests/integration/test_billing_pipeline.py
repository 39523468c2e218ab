"""Integration tests for the billing pipeline.

These tests drive the period report and invoice workflows end to end over an
outline document, a persisted invoice counter and an in-memory render sink.
"""

from __future__ import annotations

from datetime import date, datetime
from unittest.mock import patch

import pytest

from clockbill.config.settings import Settings
from clockbill.core.errors import CounterPersistenceError, InvalidIntervalError, UnknownCurrencyError
from clockbill.pipelines.billing_pipeline import create_billing_pipeline
from clockbill.reports.table import CollectingSink
from clockbill.storage.outline import OutlineStore


def _outline(**metadata) -> OutlineStore:
    store = OutlineStore(metadata=metadata)
    store.add_clock(["Tasks", "ProjectX", "Design"], "2024-03-05 09:00", "2024-03-05 10:30")
    store.add_clock(["Tasks", "ProjectX", "Build"], "2024-03-05 10:30", "2024-03-05 12:00")
    store.add_clock(["Tasks", "Support"], "2024-03-06 14:05", "2024-03-06 15:00")
    store.add_clock(["Tasks", "ProjectX"], "2024-03-12 09:00", "2024-03-12 09:30")
    return store


@pytest.fixture
def settings(tmp_path):
    return Settings(counter_path=tmp_path / "counter.yaml", hourly_rate=100.0, invoice_start=1000)


class TestPeriodReport:
    """Period report workflow."""

    def test_week_report_writes_rollups_and_emits_table(self, settings):
        store = _outline()
        sink = CollectingSink()
        pipeline = create_billing_pipeline(settings, store, sink=sink)

        result = pipeline.run_period_report(datetime(2024, 3, 6, 10, 0), "week")

        assert result.window.start == datetime(2024, 3, 4)
        assert result.days_written == 2
        assert result.days_reused == 0
        assert result.total_hours == 4.0
        assert result.trace_id
        assert sink.last is result.table
        assert result.table.rows[-1].cells == ("Total", "", "", 4.0)
        assert store.children(["Rollups", "2024-03"]) == ["2024-03-05 Tue [3.00h]", "2024-03-06 Wed [1.00h]"]
        assert list(store.iter_paths(result.day_paths[0], depth=5)) == [
            (*result.day_paths[0], "ProjectX [3.00h]", "Build [1.50h]"),
            (*result.day_paths[0], "ProjectX [3.00h]", "Design [1.50h]"),
        ]

    def test_existing_rollups_are_reused(self, settings):
        store = _outline()
        pipeline = create_billing_pipeline(settings, store)

        pipeline.run_period_report(date(2024, 3, 6), "week")
        again = pipeline.run_period_report(date(2024, 3, 6), "week")

        assert again.days_written == 0
        assert again.days_reused == 2
        assert again.total_hours == 4.0

    def test_recompute_always_rewrites(self, tmp_path):
        settings = Settings(counter_path=tmp_path / "counter.yaml", recompute_always=True)
        store = _outline()
        pipeline = create_billing_pipeline(settings, store)

        pipeline.run_period_report(date(2024, 3, 6), "week")
        store.add_clock(["Tasks", "Support"], "2024-03-06 16:00", "2024-03-06 17:00")
        again = pipeline.run_period_report(date(2024, 3, 6), "week")

        assert again.days_written == 2
        assert store.children(["Rollups", "2024-03"]) == ["2024-03-05 Tue [3.00h]", "2024-03-06 Wed [2.00h]"]

    def test_day_and_month_windows(self, settings):
        store = _outline()
        pipeline = create_billing_pipeline(settings, store)

        day = pipeline.run_period_report(date(2024, 3, 12), "day")
        month = pipeline.run_period_report(date(2024, 3, 20), "month")

        assert day.total_hours == 0.5
        assert month.total_hours == 4.5
        assert month.window.length_days == 31

    def test_invalid_interval_aborts_without_writing(self, settings):
        store = _outline()
        store.add_clock(["Tasks", "ProjectX"], "2024-03-07 12:00", "2024-03-07 11:00")
        sink = CollectingSink()
        pipeline = create_billing_pipeline(settings, store, sink=sink)

        with pytest.raises(InvalidIntervalError):
            pipeline.run_period_report(date(2024, 3, 6), "week")

        assert store.find(["Rollups"]) is None
        assert sink.tables == []


class TestInvoice:
    """Invoice workflow."""

    def test_invoice_uses_document_currency_and_numbers_sequentially(self, settings):
        store = _outline(currency="GBP")
        sink = CollectingSink()
        pipeline = create_billing_pipeline(settings, store, sink=sink)

        first = pipeline.create_invoice(date(2024, 3, 1), date(2024, 4, 1))
        second = pipeline.create_invoice(date(2024, 3, 1), date(2024, 4, 1))

        assert first.invoice_number == 1000
        assert second.invoice_number == 1001
        assert first.currency == "GBP"
        assert first.total_hours == 4.5
        assert first.total_amount == "£450.00"
        assert first.rows_count == 3
        assert first.table.title == "Invoice 1000"
        assert first.table.metadata["invoice"] == 1000
        assert sink.tables == [first.table, second.table]

    def test_explicit_rate_and_currency(self, settings):
        store = _outline(currency="GBP")
        pipeline = create_billing_pipeline(settings, store)

        result = pipeline.create_invoice(date(2024, 3, 4), date(2024, 3, 11), rate=250.0, currency="EUR")

        assert result.total_hours == 4.0
        assert result.total_amount == "€1,000.00"
        assert result.rate == 250.0

    def test_invoice_reads_rollups_already_written(self, settings):
        store = _outline()
        pipeline = create_billing_pipeline(settings, store)
        pipeline.run_period_report(date(2024, 3, 6), "week")

        result = pipeline.create_invoice(date(2024, 3, 1), date(2024, 4, 1))

        # only the reported week has rollups; recomputation is not forced
        assert result.total_hours == 4.0

    def test_counter_failure_emits_nothing(self, settings):
        store = _outline()
        sink = CollectingSink()
        pipeline = create_billing_pipeline(settings, store, sink=sink)

        with patch("clockbill.billing.invoice_sequence.atomic_write", side_effect=OSError("disk full")):
            with pytest.raises(CounterPersistenceError):
                pipeline.create_invoice(date(2024, 3, 1), date(2024, 4, 1))

        assert sink.tables == []
        assert pipeline.sequence.peek() == 1000
        assert pipeline.create_invoice(date(2024, 3, 1), date(2024, 4, 1)).invoice_number == 1000

    def test_unknown_currency_burns_no_number(self, settings):
        store = _outline(currency="XYZ")
        sink = CollectingSink()
        pipeline = create_billing_pipeline(settings, store, sink=sink)

        with pytest.raises(UnknownCurrencyError):
            pipeline.create_invoice(date(2024, 3, 1), date(2024, 4, 1))

        assert sink.tables == []
        assert pipeline.sequence.peek() == 1000

    def test_outline_round_trip_between_runs(self, settings, tmp_path):
        outline_path = tmp_path / "work.yaml"
        store = _outline(currency="EUR")
        create_billing_pipeline(settings, store).run_period_report(date(2024, 3, 6), "month")
        store.save(outline_path)

        loaded = OutlineStore.load(outline_path)
        result = create_billing_pipeline(settings, loaded).create_invoice(date(2024, 3, 1), date(2024, 4, 1))

        assert result.total_hours == 4.5
        assert result.total_amount == "€450.00"
