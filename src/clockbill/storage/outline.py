"""Outline document store.

An outline is a tree of labelled headings. Headings under the clock root
carry raw clock entries (``{"start", "end"}`` records); headings under the
rollup root receive computed rollups. The whole document, with its metadata
(e.g. ``currency``), round-trips through a YAML file written atomically.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from ..core.errors import DestinationError
from ..core.host import LabelComparator
from ..core.intervals import RawInterval
from ..core.time import format_timestamp
from ..observability import get_logger
from .files import atomic_write

__all__ = [
    "DEFAULT_CLOCK_ROOT",
    "OutlineClockSource",
    "OutlineNode",
    "OutlineStore",
    "default_label_order",
]

DEFAULT_CLOCK_ROOT = "Tasks"

log = get_logger("storage")


def default_label_order(a: str, b: str) -> int:
    """Plain string ordering used for sorted inserts."""
    return (a > b) - (a < b)


@dataclass
class OutlineNode:
    """A heading with child headings and attached records."""

    label: str
    children: list[OutlineNode] = field(default_factory=list)
    records: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"label": self.label}
        if self.records:
            data["records"] = [dict(record) for record in self.records]
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OutlineNode:
        if not isinstance(data, dict) or "label" not in data:
            raise DestinationError(f"Malformed outline heading: {data!r}")
        return cls(
            label=str(data["label"]),
            children=[cls.from_dict(child) for child in data.get("children") or []],
            records=[dict(record) for record in data.get("records") or []],
        )


class OutlineStore:
    """In-memory heading tree implementing the hierarchical destination.

    Example:
        >>> store = OutlineStore(metadata={"currency": "EUR"})
        >>> store.add_clock(["Tasks", "ProjectX", "Design"], "2024-03-05 09:00", "2024-03-05 10:30")
        >>> store.find_or_create(["Rollups", "2024-03"], sorted_insert=True)
        >>> store.save(Path("outline.yaml"))
    """

    def __init__(self, metadata: dict[str, Any] | None = None, *, case_sensitive: bool = True) -> None:
        self.metadata: dict[str, Any] = dict(metadata or {})
        self.case_sensitive = case_sensitive
        self.root = OutlineNode(label="")

    def _matches(self, node: OutlineNode, label: str) -> bool:
        if self.case_sensitive:
            return node.label == label
        return node.label.casefold() == label.casefold()

    def _child(self, node: OutlineNode, label: str) -> OutlineNode | None:
        for child in node.children:
            if self._matches(child, label):
                return child
        return None

    def find(self, segments: Sequence[str]) -> OutlineNode | None:
        """Return the heading at ``segments``, or None."""
        node = self.root
        for label in segments:
            found = self._child(node, label)
            if found is None:
                return None
            node = found
        return node

    def find_or_create(
        self,
        segments: Sequence[str],
        sorted_insert: bool = False,
        comparator: LabelComparator | None = None,
    ) -> OutlineNode:
        """Return the heading at ``segments``, creating missing ones.

        Parameters
        ----------
        segments
            Labels from the top of the outline
        sorted_insert
            Insert new headings among their siblings by ``comparator`` instead
            of appending them
        comparator
            Three-way label comparison (default: plain string order)
        """
        if not segments:
            raise DestinationError("Cannot address the outline root")

        compare = comparator or default_label_order
        node = self.root

        for label in segments:
            found = self._child(node, label)
            if found is None:
                found = OutlineNode(label=label)
                position = len(node.children)
                if sorted_insert:
                    position = next(
                        (index for index, sibling in enumerate(node.children) if compare(label, sibling.label) < 0),
                        len(node.children),
                    )
                node.children.insert(position, found)
            node = found

        return node

    def remove(self, segments: Sequence[str]) -> bool:
        """Remove the heading at ``segments`` with its subtree."""
        if not segments:
            raise DestinationError("Cannot remove the outline root")

        parent = self.find(segments[:-1])
        if parent is None:
            return False

        target = self._child(parent, segments[-1])
        if target is None:
            return False

        parent.children.remove(target)
        return True

    def children(self, segments: Sequence[str] = ()) -> list[str]:
        """Labels of the headings directly under ``segments``."""
        node = self.find(segments)
        return [child.label for child in node.children] if node else []

    def iter_paths(self, prefix: Sequence[str] = (), depth: int | None = None) -> Iterator[tuple[str, ...]]:
        """Yield heading paths under ``prefix`` in document order.

        Parameters
        ----------
        prefix
            Subtree to walk
        depth
            Only yield paths of exactly this length (all when None)
        """
        start = self.find(prefix)
        if start is None:
            return

        stack: list[tuple[OutlineNode, tuple[str, ...]]] = [
            (child, (*prefix, child.label)) for child in reversed(start.children)
        ]
        while stack:
            node, path = stack.pop()
            if depth is None or len(path) == depth:
                yield path
            if depth is None or len(path) < depth:
                stack.extend((child, (*path, child.label)) for child in reversed(node.children))

    def add_clock(self, segments: Sequence[str], start: datetime | str, end: datetime | str) -> None:
        """Record a clock entry on the heading at ``segments``."""
        interval = RawInterval(start=start, end=end, path=tuple(segments))
        node = self.find_or_create(segments)
        node.records.append({"start": format_timestamp(interval.start), "end": format_timestamp(interval.end)})

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": dict(self.metadata),
            "headings": [child.to_dict() for child in self.root.children],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, case_sensitive: bool = True) -> OutlineStore:
        store = cls(metadata=data.get("metadata") or {}, case_sensitive=case_sensitive)
        store.root.children = [OutlineNode.from_dict(item) for item in data.get("headings") or []]
        return store

    @classmethod
    def load(cls, file_path: Path | str, *, case_sensitive: bool = True) -> OutlineStore:
        """Load an outline from YAML.

        Raises
        ------
        DestinationError
            If the file cannot be read or parsed
        """
        path = Path(file_path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except FileNotFoundError as exc:
            raise DestinationError(f"Outline not found: {path}") from exc
        except (OSError, yaml.YAMLError) as exc:
            raise DestinationError(f"Failed to read outline {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise DestinationError(f"Outline {path} must be a mapping at top level")

        store = cls.from_dict(data, case_sensitive=case_sensitive)
        log.debug("Loaded outline", path=str(path), headings=len(store.root.children))
        return store

    def save(self, file_path: Path | str) -> None:
        """Atomically write the outline as YAML."""
        path = Path(file_path)
        content = yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)
        try:
            atomic_write(path, content)
        except OSError as exc:
            raise DestinationError(f"Failed to write outline {path}: {exc}") from exc
        log.debug("Saved outline", path=str(path))


class OutlineClockSource:
    """Interval source reading clock records below the clock root heading.

    Interval paths are relative to the clock root, so a clock on
    ``Tasks/ProjectX/Design`` yields the path ``("ProjectX", "Design")``.
    """

    def __init__(self, store: OutlineStore, root: str = DEFAULT_CLOCK_ROOT) -> None:
        self.store = store
        self.root = root

    def iter_intervals(self) -> Iterable[RawInterval]:
        top = self.store.find([self.root])
        if top is None:
            return

        stack: list[tuple[OutlineNode, tuple[str, ...]]] = [(top, ())]
        while stack:
            node, path = stack.pop()
            for record in node.records:
                if "start" in record and "end" in record:
                    yield RawInterval(start=record["start"], end=record["end"], path=path)
            stack.extend((child, (*path, child.label)) for child in reversed(node.children))
