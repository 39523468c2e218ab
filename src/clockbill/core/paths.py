"""Hierarchical label paths and their grouping order.

A path is the root-to-leaf label sequence of a clocked heading, e.g.
``("ProjectX", "GoalY", "TaskZ")``. Paths are plain tuples so they stay
immutable and hashable.

The grouping order is "longest first, then descending": deeper paths sort
before shallower ones, and among equal-length paths the one whose first
differing label is lexicographically greater comes first. This is the reverse
of plain lexicographic order and keeps siblings of the same parent adjacent.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from functools import cmp_to_key
from typing import Callable

__all__ = [
    "HierarchicalPath",
    "compare_paths",
    "make_path",
    "path_precedes",
    "path_prefix",
    "paths_equal",
    "sort_paths",
]

HierarchicalPath = tuple[str, ...]


def make_path(labels: Iterable[str] | str, separator: str = "/") -> HierarchicalPath:
    """Build a path from labels or a separator-joined string.

    >>> make_path("A/B/C")
    ('A', 'B', 'C')
    """
    if isinstance(labels, str):
        labels = [part for part in labels.split(separator) if part]
    return tuple(str(label) for label in labels)


def _fold(label: str, case_sensitive: bool) -> str:
    return label if case_sensitive else label.casefold()


def paths_equal(a: Sequence[str], b: Sequence[str], *, case_sensitive: bool = True) -> bool:
    """Check that two paths have the same length and pairwise equal labels."""
    if len(a) != len(b):
        return False
    return all(_fold(x, case_sensitive) == _fold(y, case_sensitive) for x, y in zip(a, b))


def compare_paths(a: Sequence[str], b: Sequence[str], *, case_sensitive: bool = True) -> int:
    """Three-way comparison in grouping order.

    Returns
    -------
    int
        Negative if ``a`` sorts first, positive if ``b`` sorts first, zero if
        the paths are equal
    """
    if len(a) != len(b):
        return -1 if len(a) > len(b) else 1

    for x, y in zip(a, b):
        x, y = _fold(x, case_sensitive), _fold(y, case_sensitive)
        if x != y:
            return -1 if x > y else 1

    return 0


def path_precedes(a: Sequence[str], b: Sequence[str], *, case_sensitive: bool = True) -> bool:
    """Strict order predicate: True when ``a`` sorts strictly before ``b``."""
    return compare_paths(a, b, case_sensitive=case_sensitive) < 0


def sort_paths(
    items: Iterable,
    *,
    key: Callable[[object], Sequence[str]] | None = None,
    case_sensitive: bool = True,
) -> list:
    """Sort items (or paths) into grouping order.

    Parameters
    ----------
    items
        Paths, or objects from which ``key`` extracts a path
    key
        Optional path extractor
    case_sensitive
        Compare labels case-sensitively
    """
    extract = key or (lambda item: item)

    def _cmp(left: object, right: object) -> int:
        return compare_paths(extract(left), extract(right), case_sensitive=case_sensitive)

    return sorted(items, key=cmp_to_key(_cmp))


def path_prefix(path: Sequence[str], depth: int) -> HierarchicalPath | None:
    """Return the first ``depth`` labels of a path, or None if it is shorter."""
    if depth < 1 or len(path) < depth:
        return None
    return tuple(path[:depth])
