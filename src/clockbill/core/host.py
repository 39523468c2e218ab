"""Collaborator contracts.

The core reads raw intervals from an interval source, writes rollups into a
hierarchical destination and hands finished tables to a render sink. These
protocols describe the in-process boundary; ``clockbill.storage.outline``
provides the reference implementations.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from .intervals import RawInterval

if TYPE_CHECKING:
    from ..reports.table import Table

__all__ = [
    "DestinationNode",
    "HierarchicalDestination",
    "IntervalSource",
    "LabelComparator",
    "RenderSink",
    "StaticIntervalSource",
]

LabelComparator = Callable[[str, str], int]


@runtime_checkable
class IntervalSource(Protocol):
    """Supplies the raw intervals recorded in a document."""

    def iter_intervals(self) -> Iterable[RawInterval]: ...


class DestinationNode(Protocol):
    """A heading in the hierarchical destination."""

    label: str
    records: list[dict[str, Any]]

    @property
    def children(self) -> Sequence[DestinationNode]: ...


@runtime_checkable
class HierarchicalDestination(Protocol):
    """Heading tree where rollups and period reports are written."""

    metadata: dict[str, Any]

    def find_or_create(
        self,
        segments: Sequence[str],
        sorted_insert: bool = False,
        comparator: LabelComparator | None = None,
    ) -> DestinationNode: ...

    def find(self, segments: Sequence[str]) -> DestinationNode | None: ...

    def remove(self, segments: Sequence[str]) -> bool: ...

    def iter_paths(self, prefix: Sequence[str] = (), depth: int | None = None) -> Iterator[tuple[str, ...]]: ...


@runtime_checkable
class RenderSink(Protocol):
    """Accepts finished tables for rendering outside the core."""

    def accept(self, table: Table) -> None: ...


class StaticIntervalSource:
    """Interval source over an in-memory collection."""

    def __init__(self, intervals: Iterable[RawInterval]) -> None:
        self._intervals = list(intervals)

    def iter_intervals(self) -> Iterable[RawInterval]:
        return iter(self._intervals)

    def __len__(self) -> int:
        return len(self._intervals)
