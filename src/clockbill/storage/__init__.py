"""Outline document storage with atomic writes and file locking."""

from .files import FileLock, FileLockTimeout, atomic_write
from .outline import DEFAULT_CLOCK_ROOT, OutlineClockSource, OutlineNode, OutlineStore, default_label_order

__all__ = [
    "DEFAULT_CLOCK_ROOT",
    "FileLock",
    "FileLockTimeout",
    "OutlineClockSource",
    "OutlineNode",
    "OutlineStore",
    "atomic_write",
    "default_label_order",
]
