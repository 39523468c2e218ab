"""Tests for interval boundary rounding."""

from datetime import datetime

import pytest

from clockbill.core.rounding import duration_hours, round_down, round_up, validate_granularity


@pytest.mark.parametrize(
    ("minute", "expected"),
    [(0, 0), (7, 0), (14, 0), (15, 15), (29, 15), (44, 30), (59, 45)],
)
def test_round_down_floors_minute(minute, expected):
    """round_down floors to the largest multiple of 15 not above the minute."""
    t = datetime(2024, 3, 5, 9, minute)

    assert round_down(t, 15) == datetime(2024, 3, 5, 9, expected)


@pytest.mark.parametrize(
    ("minute", "expected"),
    [
        (0, (9, 0)),
        (2, (9, 0)),  # within a third of a step: falls back to the boundary below
        (4, (9, 0)),
        (5, (9, 15)),
        (7, (9, 15)),
        (15, (9, 15)),
        (30, (9, 30)),
        (49, (9, 45)),
        (50, (10, 0)),
        (59, (10, 0)),
    ],
)
def test_round_up_biased_nearest(minute, expected):
    """round_up moves to the next boundary once past about a third of a step."""
    t = datetime(2024, 3, 5, 9, minute)
    hour, result_minute = expected

    assert round_up(t, 15) == datetime(2024, 3, 5, hour, result_minute)


def test_round_up_carries_into_next_day():
    """An end just before midnight rounds to midnight of the following day."""
    assert round_up(datetime(2024, 3, 5, 23, 55), 15) == datetime(2024, 3, 6, 0, 0)


def test_round_up_carries_across_month_and_year():
    assert round_up(datetime(2024, 2, 29, 23, 58), 15) == datetime(2024, 3, 1, 0, 0)
    assert round_up(datetime(2023, 12, 31, 23, 59), 30) == datetime(2024, 1, 1, 0, 0)


def test_rounding_drops_seconds():
    t = datetime(2024, 3, 5, 9, 15, 42, 500)

    assert round_down(t, 15) == datetime(2024, 3, 5, 9, 15)
    assert round_up(t, 15) == datetime(2024, 3, 5, 9, 15)


@pytest.mark.parametrize("granularity", [1, 5, 6, 10, 15, 20, 30, 45, 60])
def test_rounding_results_are_multiples_and_idempotent(granularity):
    """Both directions land on multiples of the granularity and are fixed points."""
    for minute in range(60):
        t = datetime(2024, 3, 5, 9, minute, 30)

        down = round_down(t, granularity)
        up = round_up(t, granularity)

        assert down <= t
        assert down.minute % granularity == 0
        assert up.minute % granularity == 0
        assert round_down(down, granularity) == down
        assert round_up(up, granularity) == up


def test_round_up_granularity_60():
    assert round_up(datetime(2024, 3, 5, 9, 30), 60) == datetime(2024, 3, 5, 10, 0)
    assert round_up(datetime(2024, 3, 5, 9, 10), 60) == datetime(2024, 3, 5, 9, 0)


def test_round_up_granularity_not_dividing_hour():
    """With 45-minute steps the candidate is capped at the last multiple below 60."""
    assert round_up(datetime(2024, 3, 5, 9, 50), 45) == datetime(2024, 3, 5, 9, 45)
    assert round_up(datetime(2024, 3, 5, 9, 20), 45) == datetime(2024, 3, 5, 9, 45)


@pytest.mark.parametrize("granularity", [0, -15, 61, 15.0, True, "15"])
def test_invalid_granularity_rejected(granularity):
    with pytest.raises(ValueError):
        validate_granularity(granularity)

    with pytest.raises(ValueError):
        round_down(datetime(2024, 3, 5, 9, 0), granularity)


def test_duration_hours():
    start = datetime(2024, 3, 5, 9, 0)

    assert duration_hours(start, datetime(2024, 3, 5, 10, 30)) == 1.5
    assert duration_hours(start, start) == 0.0
    assert duration_hours(start, datetime(2024, 3, 5, 8, 45)) == -0.25
