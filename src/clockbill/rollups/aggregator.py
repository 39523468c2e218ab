"""Daily rollup aggregation.

Roll rounded clock intervals up into per-day subtotal trees. Hours are tallied
at three ancestor levels, keyed by path prefix:

* project: first label (paths of depth > 0)
* goal: first two labels (depth > 1)
* task: first three labels (depth > 2)

Every interval also contributes to the day total irrespective of depth. Sums
are plain floats; only interval boundaries are ever rounded.
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from ..core.errors import InvalidIntervalError
from ..core.intervals import RawInterval, RoundedInterval, normalize_interval
from ..core.paths import HierarchicalPath, sort_paths
from ..core.rounding import DEFAULT_GRANULARITY_MINUTES, round_down
from ..core.time import format_day_heading, format_timestamp, parse_date_prefix
from ..observability import get_logger

if TYPE_CHECKING:
    from ..core.host import HierarchicalDestination
    from .time_windows import PeriodWindow

__all__ = [
    "DEFAULT_ROLLUP_ROOT",
    "ROLLUP_DEPTHS",
    "TOTAL_HOURS_KEY",
    "DayRollup",
    "RollupEntry",
    "compute_daily_rollups",
    "format_summary",
    "parse_summary",
    "rollup_day",
    "rollup_exists",
    "write_day_rollup",
]

DEFAULT_ROLLUP_ROOT = "Rollups"

# Prefix length of the project, goal and task levels.
ROLLUP_DEPTHS = (1, 2, 3)

# Record key holding the unrounded hours of a summary heading.
TOTAL_HOURS_KEY = "total_hours"

_SUMMARY_PATTERN = re.compile(r"^(?P<label>.*?)\s*\[(?P<hours>-?\d+(?:\.\d+)?)h\]$")

log = get_logger("rollup")


@dataclass(frozen=True)
class RollupEntry:
    """One line of a day rollup.

    Leaf entries carry the clocked ``start``/``stop``; subtotal entries have
    neither. The day total is the entry whose ``path`` is None.
    """

    path: HierarchicalPath | None
    hours: float
    start: datetime | None = None
    stop: datetime | None = None

    @property
    def is_leaf(self) -> bool:
        return self.start is not None and self.stop is not None

    @property
    def is_day_total(self) -> bool:
        return self.path is None

    @property
    def depth(self) -> int:
        return len(self.path) if self.path else 0

    @property
    def label(self) -> str:
        return self.path[-1] if self.path else ""


@dataclass
class DayRollup:
    """Rollup tree for one calendar day.

    Attributes
    ----------
    day : date
        The day rolled up
    day_total : float
        Sum of all leaf hours
    entries : list[RollupEntry]
        Detail entries in emission order: each subtotal is followed by its
        nested subtotals and then its own leaves
    """

    day: date
    day_total: float
    entries: list[RollupEntry] = field(default_factory=list)

    def as_entries(self) -> list[RollupEntry]:
        """All entries with the day total first."""
        return [RollupEntry(path=None, hours=self.day_total), *self.entries]

    @property
    def leaves(self) -> list[RollupEntry]:
        return [entry for entry in self.entries if entry.is_leaf]

    @property
    def subtotals(self) -> list[RollupEntry]:
        return [entry for entry in self.entries if not entry.is_leaf]

    def subtotal(self, path: Sequence[str]) -> float | None:
        """Hours of the subtotal at ``path``, or None if there is none."""
        target = tuple(path)
        for entry in self.entries:
            if not entry.is_leaf and entry.path == target:
                return entry.hours
        return None

    def projects(self) -> list[RollupEntry]:
        return [entry for entry in self.subtotals if entry.depth == 1]


class _Group:
    """Running subtotal for one path prefix."""

    __slots__ = ("path", "hours", "children", "leaves")

    def __init__(self, path: HierarchicalPath) -> None:
        self.path = path
        self.hours = 0.0
        self.children: dict[HierarchicalPath, _Group] = {}
        self.leaves: list[RollupEntry] = []

    def emit(self, out: list[RollupEntry]) -> None:
        out.append(RollupEntry(path=self.path, hours=self.hours))
        for child in self.children.values():
            child.emit(out)
        out.extend(self.leaves)


def rollup_day(
    intervals: Iterable[RoundedInterval],
    *,
    day: date | None = None,
    case_sensitive: bool = True,
) -> DayRollup:
    """Aggregate one day's rounded intervals into a subtotal tree.

    Leaves are first put into grouping order (longest path first, then
    descending). Each leaf's hours are then added to the group of every
    ancestor prefix it has, keyed by that prefix, and finally the groups are
    emitted depth first.

    Parameters
    ----------
    intervals
        Rounded intervals whose rounded start falls on ``day``
    day
        The day being rolled up (inferred from the intervals when omitted)
    case_sensitive
        Whether labels differing only in case belong to different groups

    Returns
    -------
    DayRollup
        Day total and detail entries

    Raises
    ------
    InvalidIntervalError
        If an interval has an empty path, a negative duration, or falls on a
        different day
    """
    by_start = sorted(intervals, key=lambda interval: interval.start)
    ordered = sort_paths(by_start, key=lambda interval: interval.path, case_sensitive=case_sensitive)

    if day is None:
        if not ordered:
            raise ValueError("Cannot infer the day of an empty rollup")
        day = ordered[0].day

    # Case-insensitive groups are labelled by the earliest-starting interval.
    labels: dict[HierarchicalPath, HierarchicalPath] = {}
    if not case_sensitive:
        for interval in by_start:
            for depth in ROLLUP_DEPTHS[: len(interval.path)]:
                prefix = tuple(interval.path[:depth])
                labels.setdefault(_fold(prefix), prefix)

    root = _Group(())

    for interval in ordered:
        if not interval.path:
            raise InvalidIntervalError("Cannot roll up an interval with an empty path", interval)
        if interval.hours < 0:
            raise InvalidIntervalError(
                f"Negative duration under {'/'.join(interval.path)}: {interval.hours}h", interval
            )
        if interval.day != day:
            raise InvalidIntervalError(
                f"Interval starting {format_timestamp(interval.start)} does not belong to {day}", interval
            )

        root.hours += interval.hours
        group = root
        for depth in ROLLUP_DEPTHS:
            if len(interval.path) < depth:
                break
            prefix = tuple(interval.path[:depth])
            key = prefix if case_sensitive else _fold(prefix)
            if key not in group.children:
                group.children[key] = _Group(labels.get(key, prefix))
            group = group.children[key]
            group.hours += interval.hours

        # Leaves take the labels of their group.
        leaf_path = group.path + tuple(interval.path[len(group.path):])
        group.leaves.append(
            RollupEntry(path=leaf_path, hours=interval.hours, start=interval.start, stop=interval.end)
        )

    entries: list[RollupEntry] = []
    for project in root.children.values():
        project.emit(entries)

    log.debug("Rolled up day", day=day.isoformat(), leaves=len(ordered), total_hours=root.hours)
    return DayRollup(day=day, day_total=root.hours, entries=entries)


def _fold(path: HierarchicalPath) -> HierarchicalPath:
    return tuple(label.casefold() for label in path)


def compute_daily_rollups(
    intervals: Iterable[RawInterval],
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
    *,
    window: PeriodWindow | None = None,
    case_sensitive: bool = True,
) -> list[DayRollup]:
    """Round raw intervals and roll them up per day.

    Intervals are bucketed by the day of their rounded start; with a window,
    only intervals whose rounded start lies inside it are kept. Intervals
    outside the window are not validated.

    Returns
    -------
    list[DayRollup]
        One rollup per day, in ascending day order

    Raises
    ------
    InvalidIntervalError
        If an interval inside the window is invalid
    """
    by_day: dict[date, list[RoundedInterval]] = defaultdict(list)

    for raw in intervals:
        if window is not None and not window.contains(round_down(raw.start, granularity_minutes)):
            continue
        rounded = normalize_interval(raw, granularity_minutes)
        by_day[rounded.day].append(rounded)

    return [
        rollup_day(by_day[day], day=day, case_sensitive=case_sensitive)
        for day in sorted(by_day)
    ]


def format_summary(label: str, hours: float) -> str:
    """Heading text for a subtotal: ``"<label> [H.HHh]"``."""
    return f"{label} [{hours:.2f}h]"


def parse_summary(text: str) -> tuple[str, float]:
    """Split a summary heading into its label and hours.

    Raises
    ------
    ValueError
        If the text is not a summary heading
    """
    match = _SUMMARY_PATTERN.match(text.strip())
    if not match:
        raise ValueError(f"Not a summary heading: {text!r}")
    return match.group("label"), float(match.group("hours"))


def _month_label(day: date) -> str:
    return f"{day:%Y-%m}"


def _find_day_labels(store: HierarchicalDestination, root: str, day: date) -> list[str]:
    month = store.find([root, _month_label(day)])
    if month is None:
        return []

    labels = []
    for child in month.children:
        try:
            if parse_date_prefix(child.label) == day:
                labels.append(child.label)
        except ValueError:
            continue
    return labels


def rollup_exists(store: HierarchicalDestination, day: date, root: str = DEFAULT_ROLLUP_ROOT) -> bool:
    """Check whether a rollup for ``day`` has already been written."""
    return bool(_find_day_labels(store, root, day))


def write_day_rollup(
    store: HierarchicalDestination,
    rollup: DayRollup,
    root: str = DEFAULT_ROLLUP_ROOT,
) -> tuple[str, ...]:
    """Write a day rollup into the destination, replacing any earlier one.

    Layout: ``[root, "YYYY-MM", "<date> <weekday> [Hh]", project, goal, task]``
    where every subtotal heading shows its hours rounded to two decimals and
    keeps the exact value in a ``{"total_hours": ...}`` record. Leaves become
    clock records on the deepest subtotal heading of their path.

    Returns
    -------
    tuple[str, ...]
        Path of the day heading
    """
    month = _month_label(rollup.day)

    for stale in _find_day_labels(store, root, rollup.day):
        store.remove([root, month, stale])
        log.debug("Replaced earlier rollup", heading=stale)

    day_path = (root, month, format_summary(format_day_heading(rollup.day), rollup.day_total))
    store.find_or_create(day_path, sorted_insert=True).records.append({TOTAL_HOURS_KEY: rollup.day_total})

    headings: dict[HierarchicalPath, tuple[str, ...]] = {(): day_path}

    for entry in rollup.entries:
        if entry.is_leaf:
            depth = min(len(entry.path), ROLLUP_DEPTHS[-1])
            parent = headings[tuple(entry.path[:depth])]
            node = store.find_or_create(parent)
            node.records.append(_leaf_record(entry))
        else:
            parent = headings[tuple(entry.path[:-1])]
            heading = (*parent, format_summary(entry.label, entry.hours))
            store.find_or_create(heading, sorted_insert=True).records.append({TOTAL_HOURS_KEY: entry.hours})
            headings[entry.path] = heading

    log.info("Wrote day rollup", day=rollup.day.isoformat(), total_hours=rollup.day_total)
    return day_path


def _leaf_record(entry: RollupEntry) -> dict[str, Any]:
    return {
        "start": format_timestamp(entry.start),
        "stop": format_timestamp(entry.stop),
        "hours": round(entry.hours, 6),
        "path": "/".join(entry.path),
    }
