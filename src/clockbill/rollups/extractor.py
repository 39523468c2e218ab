"""Project time extraction from written rollups.

Scans the day rollups stored under the rollup root and returns, for every
project heading (depth 4: root / month / day / project), the triple
``(month, day summary, project summary)`` used to build invoice detail
tables. Extraction is best effort: headings without a ``YYYY-MM-DD`` date
prefix are logged and skipped.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from functools import cmp_to_key
from typing import TYPE_CHECKING

from ..core.errors import MalformedDateTokenError
from ..core.rounding import DEFAULT_GRANULARITY_MINUTES
from ..core.time import floor_to_midnight, parse_date_prefix
from ..observability import get_logger, log_timing
from .aggregator import (
    DEFAULT_ROLLUP_ROOT,
    TOTAL_HOURS_KEY,
    compute_daily_rollups,
    parse_summary,
    write_day_rollup,
)

if TYPE_CHECKING:
    from ..core.host import HierarchicalDestination, IntervalSource

__all__ = [
    "PROJECT_HEADING_DEPTH",
    "ProjectTime",
    "compare_string_lists",
    "extract_project_times",
    "rebuild_rollups",
]

PROJECT_HEADING_DEPTH = 4

log = get_logger("rollup")


@dataclass(frozen=True)
class ProjectTime:
    """One project's hours on one day, as read back from a rollup."""

    month: str
    day_summary: str
    project_summary: str
    day: date
    exact_hours: float | None = None

    @property
    def project(self) -> str:
        return parse_summary(self.project_summary)[0]

    @property
    def hours(self) -> float:
        """Unrounded hours when recorded, else the hours shown in the summary."""
        if self.exact_hours is not None:
            return self.exact_hours
        return parse_summary(self.project_summary)[1]

    def as_tuple(self) -> tuple[str, str, str]:
        return (self.month, self.day_summary, self.project_summary)


def compare_string_lists(a: Iterable[str], b: Iterable[str]) -> int:
    """Lexicographic comparison of two string lists, element by element.

    A list that is a strict prefix of the other sorts first.
    """
    left, right = list(a), list(b)
    for x, y in zip(left, right):
        if x != y:
            return -1 if x < y else 1
    return (len(left) > len(right)) - (len(left) < len(right))


def _day_bound(value: datetime | date | None) -> datetime | None:
    return floor_to_midnight(value) if value is not None else None


def _recorded_hours(store: HierarchicalDestination, path: tuple[str, ...]) -> float | None:
    node = store.find(path)
    if node is None:
        return None
    for record in node.records:
        if TOTAL_HOURS_KEY in record:
            return float(record[TOTAL_HOURS_KEY])
    return None


def rebuild_rollups(
    store: HierarchicalDestination,
    source: IntervalSource,
    *,
    root: str = DEFAULT_ROLLUP_ROOT,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
    case_sensitive: bool = True,
) -> int:
    """Recompute and write the rollup of every day present in the source.

    Returns
    -------
    int
        Number of days written
    """
    rollups = compute_daily_rollups(
        source.iter_intervals(),
        granularity_minutes,
        case_sensitive=case_sensitive,
    )
    for rollup in rollups:
        write_day_rollup(store, rollup, root)

    log.info("Rebuilt rollups", days=len(rollups))
    return len(rollups)


@log_timing(component="rollup")
def extract_project_times(
    store: HierarchicalDestination,
    start: datetime | date | None = None,
    end: datetime | date | None = None,
    *,
    root: str = DEFAULT_ROLLUP_ROOT,
    source: IntervalSource | None = None,
    recompute: bool = False,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
    case_sensitive: bool = True,
) -> list[ProjectTime]:
    """Collect project summaries from stored rollups within ``[start, end)``.

    Parameters
    ----------
    store
        Hierarchical destination holding the rollups
    start, end
        Optional half-open date filter on the day headings; bounds with a
        time of day are floored to their midnight
    root
        Label of the rollup root heading
    source
        Interval source used to recompute rollups
    recompute
        Always recompute rollups from ``source`` before extracting; without
        it rollups are only computed when the store holds none yet
    granularity_minutes
        Rounding granularity for recomputation
    case_sensitive
        Label matching for recomputation

    Returns
    -------
    list[ProjectTime]
        Deduplicated entries in ascending (month, day, project) order
    """
    if source is not None and (recompute or not list(store.iter_paths((root,), depth=2))):
        rebuild_rollups(
            store,
            source,
            root=root,
            granularity_minutes=granularity_minutes,
            case_sensitive=case_sensitive,
        )

    lower, upper = _day_bound(start), _day_bound(end)
    seen: set[tuple[str, ...]] = set()
    results: list[ProjectTime] = []
    skipped = 0

    for path in store.iter_paths((root,), depth=PROJECT_HEADING_DEPTH):
        if path in seen:
            continue
        seen.add(path)

        _, month, day_summary, project_summary = path
        try:
            day = parse_date_prefix(day_summary)
        except MalformedDateTokenError as exc:
            skipped += 1
            log.warning("Skipping rollup heading without date", heading=day_summary, error=str(exc))
            continue

        moment = floor_to_midnight(day)
        if lower is not None and moment < lower:
            continue
        if upper is not None and moment >= upper:
            continue

        results.append(
            ProjectTime(
                month=month,
                day_summary=day_summary,
                project_summary=project_summary,
                day=day,
                exact_hours=_recorded_hours(store, path),
            )
        )

    results.sort(key=cmp_to_key(lambda a, b: compare_string_lists(a.as_tuple(), b.as_tuple())))

    log.debug("Extracted project times", count=len(results), skipped=skipped)
    return results
