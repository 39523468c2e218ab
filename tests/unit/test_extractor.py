"""Tests for project time extraction from stored rollups."""

from datetime import date, datetime

import pytest

from clockbill.core.host import StaticIntervalSource
from clockbill.core.intervals import RawInterval
from clockbill.rollups.aggregator import compute_daily_rollups, write_day_rollup
from clockbill.rollups.extractor import (
    ProjectTime,
    compare_string_lists,
    extract_project_times,
    rebuild_rollups,
)
from clockbill.storage.outline import OutlineNode, OutlineStore

INTERVALS = [
    RawInterval(start="2024-03-05 09:00", end="2024-03-05 10:30", path="A/B/C"),
    RawInterval(start="2024-03-05 10:30", end="2024-03-05 12:00", path="A/B/D"),
    RawInterval(start="2024-03-06 14:00", end="2024-03-06 15:00", path="B/Support"),
    RawInterval(start="2024-03-06 09:00", end="2024-03-06 09:30", path="A/Review"),
    RawInterval(start="2024-04-02 09:00", end="2024-04-02 11:00", path="A"),
]


def _store_with_rollups(intervals=INTERVALS):
    store = OutlineStore()
    for rollup in compute_daily_rollups(intervals, 15):
        write_day_rollup(store, rollup)
    return store


def test_compare_string_lists():
    assert compare_string_lists(["a", "b"], ["a", "c"]) == -1
    assert compare_string_lists(["b"], ["a", "z"]) == 1
    assert compare_string_lists(["a"], ["a", "b"]) == -1
    assert compare_string_lists(["a", "b"], ["a", "b"]) == 0


def test_extracts_project_summaries_in_ascending_order():
    results = extract_project_times(_store_with_rollups())

    assert [item.as_tuple() for item in results] == [
        ("2024-03", "2024-03-05 Tue [3.00h]", "A [3.00h]"),
        ("2024-03", "2024-03-06 Wed [1.50h]", "A [0.50h]"),
        ("2024-03", "2024-03-06 Wed [1.50h]", "B [1.00h]"),
        ("2024-04", "2024-04-02 Tue [2.00h]", "A [2.00h]"),
    ]
    assert results[0].day == date(2024, 3, 5)


def test_project_time_parses_summary():
    item = ProjectTime(
        month="2024-03",
        day_summary="2024-03-05 Tue [3.00h]",
        project_summary="A [3.00h]",
        day=date(2024, 3, 5),
    )

    assert item.project == "A"
    assert item.hours == 3.0


def test_date_filter_is_half_open():
    store = _store_with_rollups()

    march = extract_project_times(store, date(2024, 3, 1), date(2024, 4, 1))
    sixth_only = extract_project_times(store, datetime(2024, 3, 6), datetime(2024, 3, 7))
    open_start = extract_project_times(store, end=date(2024, 3, 6))

    assert {item.month for item in march} == {"2024-03"}
    assert len(march) == 3
    assert [item.project for item in sixth_only] == ["A", "B"]
    assert [item.day for item in open_start] == [date(2024, 3, 5)]


def test_malformed_day_headings_are_skipped():
    store = _store_with_rollups()
    store.find_or_create(["Rollups", "2024-03", "Notes", "Someone [1.00h]"])

    results = extract_project_times(store)

    assert len(results) == 4
    assert all(not item.day_summary.startswith("Notes") for item in results)


def test_duplicate_paths_are_reported_once():
    store = _store_with_rollups()
    day = store.find(["Rollups", "2024-04", "2024-04-02 Tue [2.00h]"])
    day.children.append(OutlineNode(label="A [2.00h]"))

    results = extract_project_times(store)

    assert [item.project_summary for item in results].count("A [2.00h]") == 1


def test_empty_store_is_rebuilt_from_source():
    store = OutlineStore()

    results = extract_project_times(store, source=StaticIntervalSource(INTERVALS))

    assert len(results) == 4
    assert store.children(["Rollups"]) == ["2024-03", "2024-04"]


def test_existing_rollups_are_reused_unless_recompute():
    store = _store_with_rollups(INTERVALS[:2])
    source = StaticIntervalSource(INTERVALS)

    reused = extract_project_times(store, source=source)
    recomputed = extract_project_times(store, source=source, recompute=True)

    assert len(reused) == 1
    assert len(recomputed) == 4


def test_without_source_nothing_is_computed():
    assert extract_project_times(OutlineStore()) == []


def test_rebuild_rollups_counts_days():
    store = OutlineStore()

    assert rebuild_rollups(store, StaticIntervalSource(INTERVALS)) == 3


def test_hours_are_read_back_unrounded():
    intervals = [
        RawInterval(start=f"2024-03-0{day} 09:00", end=f"2024-03-0{day} 09:20", path="A/Design")
        for day in (4, 5, 6)
    ]
    store = OutlineStore()
    for rollup in compute_daily_rollups(intervals, 20):
        write_day_rollup(store, rollup)

    results = extract_project_times(store)

    assert [item.project_summary for item in results] == ["A [0.33h]"] * 3
    assert sum(item.hours for item in results) == pytest.approx(1.0)


def test_summary_hours_are_used_without_recorded_total():
    store = _store_with_rollups()
    store.find_or_create(["Rollups", "2024-05", "2024-05-02 Thu [1.25h]", "C [1.25h]"])

    results = extract_project_times(store, date(2024, 5, 1))

    assert [(item.project, item.hours) for item in results] == [("C", 1.25)]


def test_date_filter_floors_bounds_to_midnight():
    store = _store_with_rollups()

    from_noon = extract_project_times(store, datetime(2024, 3, 6, 12, 0))
    until_noon = extract_project_times(store, end=datetime(2024, 3, 6, 12, 0))

    assert [item.day for item in from_noon] == [date(2024, 3, 6), date(2024, 3, 6), date(2024, 4, 2)]
    assert [item.day for item in until_noon] == [date(2024, 3, 5)]
