"""Calendar period windows (day, week, month).

Compute half-open ``[start, end)`` windows around an anchor time in the local
civil calendar. Weeks start on Monday; months run from the 1st to the 1st of
the following month.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Literal

from ..core.time import floor_to_midnight

__all__ = [
    "DAYS_IN_MONTH",
    "PeriodKind",
    "PeriodWindow",
    "compute_day_window",
    "compute_month_window",
    "compute_week_window",
    "days_in_month",
    "get_week_start",
    "is_leap_year",
    "select_period",
    "week_number",
]

PeriodKind = Literal["day", "week", "month"]

DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def is_leap_year(year: int) -> bool:
    """Gregorian leap year rule."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    """Number of days in a month, accounting for leap Februaries."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be within 1-12, got {month}")
    days = DAYS_IN_MONTH[month - 1]
    if month == 2 and is_leap_year(year):
        days += 1
    return days


def week_number(anchor: datetime | date) -> int:
    """Display week number: 1 + the Monday-relative week of year (``%W``)."""
    return 1 + int(anchor.strftime("%W"))


@dataclass(frozen=True)
class PeriodWindow:
    """Half-open calendar interval.

    Attributes
    ----------
    kind : PeriodKind
        Window type ("day", "week", "month")
    start : datetime
        Window start (inclusive, midnight)
    end : datetime
        Window end (exclusive, midnight)
    """

    kind: PeriodKind
    start: datetime
    end: datetime

    def contains(self, moment: datetime | date) -> bool:
        """Check whether a time (or a day's midnight) falls inside the window."""
        if not isinstance(moment, datetime):
            moment = floor_to_midnight(moment)
        return self.start <= moment < self.end

    def days(self) -> Iterator[date]:
        """Iterate over the calendar days covered by the window."""
        current = self.start
        while current < self.end:
            yield current.date()
            current += timedelta(days=1)

    @property
    def length_days(self) -> int:
        return (self.end - self.start).days

    @property
    def week_number(self) -> int:
        return week_number(self.start)

    @property
    def label(self) -> str:
        """Human readable window label."""
        if self.kind == "day":
            return f"{self.start:%Y-%m-%d %a}"
        if self.kind == "week":
            return f"{self.start:%Y} week {self.week_number} ({self.start:%Y-%m-%d})"
        return f"{self.start:%Y-%m}"

    def shift(self, count: int = 1) -> PeriodWindow:
        """Return the window ``count`` periods later (earlier when negative)."""
        if self.kind == "day":
            return compute_day_window(self.start + timedelta(days=count))
        if self.kind == "week":
            return compute_week_window(self.start + timedelta(weeks=count))

        month_index = self.start.year * 12 + (self.start.month - 1) + count
        return compute_month_window(datetime(month_index // 12, month_index % 12 + 1, 1))


def get_week_start(dt: datetime | date) -> datetime:
    """Return midnight of the Monday starting the week of ``dt``.

    Day of week is taken with Sunday counted as 7, so a Sunday belongs to the
    week that began six days earlier.
    """
    dow = int(dt.strftime("%w")) or 7
    return floor_to_midnight(dt - timedelta(days=dow - 1))


def compute_day_window(anchor: datetime | date) -> PeriodWindow:
    """Window covering the anchor's calendar day."""
    start = floor_to_midnight(anchor)
    return PeriodWindow(kind="day", start=start, end=start + timedelta(days=1))


def compute_week_window(anchor: datetime | date) -> PeriodWindow:
    """Monday-to-Monday window containing the anchor."""
    start = get_week_start(anchor)
    return PeriodWindow(kind="week", start=start, end=start + timedelta(days=7))


def compute_month_window(anchor: datetime | date) -> PeriodWindow:
    """Window from the 1st of the anchor's month to the 1st of the next."""
    start = datetime(anchor.year, anchor.month, 1)
    end = start + timedelta(days=days_in_month(anchor.year, anchor.month))
    return PeriodWindow(kind="month", start=start, end=end)


def select_period(anchor: datetime | date, kind: PeriodKind) -> PeriodWindow:
    """Compute the window of the given kind around an anchor.

    Raises
    ------
    ValueError
        If the kind is unknown
    """
    if kind == "day":
        return compute_day_window(anchor)
    elif kind == "week":
        return compute_week_window(anchor)
    elif kind == "month":
        return compute_month_window(anchor)
    else:
        raise ValueError(f"Unknown period kind: {kind}")
