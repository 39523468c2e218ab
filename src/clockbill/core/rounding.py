"""Interval boundary rounding.

Starts are floored to the granularity; ends are rounded "to nearest with an
upward bias": an end moves up to the next boundary once it is past roughly a
third of a step, otherwise it falls back to the boundary below. Billed
duration is always derived from the rounded endpoints.

Rounding an end up to minute 60 carries into the next hour with ordinary
datetime arithmetic, so an end at 23:55 becomes 00:00 of the following day.
"""

from __future__ import annotations

from datetime import datetime, timedelta

__all__ = [
    "DEFAULT_GRANULARITY_MINUTES",
    "ROUND_UP_BIAS",
    "duration_hours",
    "round_down",
    "round_up",
    "validate_granularity",
]

DEFAULT_GRANULARITY_MINUTES = 15

# Fraction of a step added before flooring when rounding an end upward.
ROUND_UP_BIAS = 0.67


def validate_granularity(granularity_minutes: int) -> int:
    """Check that a granularity lies in 1..60 minutes.

    Raises
    ------
    ValueError
        If the granularity is out of range or not an integer
    """
    if isinstance(granularity_minutes, bool) or not isinstance(granularity_minutes, int):
        raise ValueError(f"Rounding granularity must be an integer, got {granularity_minutes!r}")
    if not 1 <= granularity_minutes <= 60:
        raise ValueError(f"Rounding granularity must be within 1-60 minutes, got {granularity_minutes}")
    return granularity_minutes


def _with_minute(t: datetime, minute: int) -> datetime:
    base = t.replace(minute=0, second=0, microsecond=0)
    return base + timedelta(minutes=minute)


def round_down(t: datetime, granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES) -> datetime:
    """Floor the minute of ``t`` to a multiple of the granularity.

    Hour and date are unchanged; seconds are dropped.
    """
    g = validate_granularity(granularity_minutes)
    return _with_minute(t, (t.minute // g) * g)


def round_up(t: datetime, granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES) -> datetime:
    """Round the minute of ``t`` upward with bias.

    The candidate ``mu`` is ``floor((minute + 0.67 * g) / g) * g``, capped at
    the last multiple of ``g`` not exceeding 60. ``mu`` wins when it is above
    the floored minute, otherwise the floored minute is kept. A result of 60
    becomes minute 0 of the next hour (and of the next day after 23:xx).

    Examples
    --------
    >>> round_up(datetime(2024, 3, 5, 9, 7))
    datetime.datetime(2024, 3, 5, 9, 15)
    >>> round_up(datetime(2024, 3, 5, 9, 2))
    datetime.datetime(2024, 3, 5, 9, 0)
    """
    g = validate_granularity(granularity_minutes)
    minute = t.minute
    max_chunks = 60 // g

    down = (minute // g) * g
    up = min(max_chunks, int((minute + ROUND_UP_BIAS * g) // g)) * g

    return _with_minute(t, up if up > down else down)


def duration_hours(start: datetime, end: datetime) -> float:
    """Return ``end - start`` in hours (may be negative)."""
    return (end - start).total_seconds() / 3600.0
