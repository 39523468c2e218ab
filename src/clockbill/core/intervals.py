"""Raw and rounded clock intervals."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from .errors import InvalidIntervalError
from .paths import HierarchicalPath, make_path
from .rounding import DEFAULT_GRANULARITY_MINUTES, duration_hours, round_down, round_up
from .time import format_timestamp, parse_timestamp

__all__ = [
    "RawInterval",
    "RoundedInterval",
    "normalize_interval",
    "normalize_intervals",
]


@dataclass(frozen=True)
class RawInterval:
    """A clocked start/end pair tagged with its heading path.

    Attributes
    ----------
    start : datetime
        Clock-in time
    end : datetime
        Clock-out time
    path : HierarchicalPath
        Root-to-leaf heading labels
    """

    start: datetime
    end: datetime
    path: HierarchicalPath = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", parse_timestamp(self.start))
        object.__setattr__(self, "end", parse_timestamp(self.end))
        object.__setattr__(self, "path", make_path(self.path))

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Iterable[str] | str | None = None) -> RawInterval:
        """Create an interval from a ``{"start", "end", "path"}`` mapping."""
        return cls(
            start=data["start"],
            end=data["end"],
            path=make_path(path if path is not None else data.get("path", ())),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": format_timestamp(self.start),
            "end": format_timestamp(self.end),
            "path": "/".join(self.path),
        }


@dataclass(frozen=True)
class RoundedInterval:
    """A raw interval with start floored and end rounded up.

    Attributes
    ----------
    start : datetime
        Rounded start
    end : datetime
        Rounded end
    path : HierarchicalPath
        Heading path of the raw interval
    hours : float
        Duration of the rounded interval in hours
    raw : RawInterval | None
        The interval this was derived from
    """

    start: datetime
    end: datetime
    path: HierarchicalPath
    hours: float
    raw: RawInterval | None = None

    @property
    def day(self) -> date:
        """Calendar day the interval is billed on (day of its rounded start)."""
        return self.start.date()


def normalize_interval(
    raw: RawInterval,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> RoundedInterval:
    """Round an interval and derive its billed duration.

    Raises
    ------
    InvalidIntervalError
        If the path is empty or the rounded end precedes the rounded start
    """
    if not raw.path:
        raise InvalidIntervalError(
            f"Interval {format_timestamp(raw.start)}--{format_timestamp(raw.end)} has an empty path",
            raw,
        )

    start = round_down(raw.start, granularity_minutes)
    end = round_up(raw.end, granularity_minutes)
    hours = duration_hours(start, end)

    if hours < 0:
        raise InvalidIntervalError(
            f"Interval under {'/'.join(raw.path)} ends before it starts: "
            f"{format_timestamp(start)}--{format_timestamp(end)}",
            raw,
        )

    return RoundedInterval(start=start, end=end, path=raw.path, hours=hours, raw=raw)


def normalize_intervals(
    intervals: Iterable[RawInterval],
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> list[RoundedInterval]:
    """Round a batch of intervals, failing the batch on the first invalid one."""
    return [normalize_interval(raw, granularity_minutes) for raw in intervals]
