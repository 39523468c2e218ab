"""Core value types and algorithms: paths, rounding, intervals, time."""

from .errors import (
    ClockbillError,
    CounterPersistenceError,
    DestinationError,
    InvalidAmountError,
    InvalidIntervalError,
    MalformedDateTokenError,
    UnknownCurrencyError,
)
from .intervals import RawInterval, RoundedInterval, normalize_interval, normalize_intervals
from .paths import HierarchicalPath, compare_paths, make_path, path_precedes, paths_equal, sort_paths
from .rounding import DEFAULT_GRANULARITY_MINUTES, round_down, round_up

__all__ = [
    "ClockbillError",
    "CounterPersistenceError",
    "DEFAULT_GRANULARITY_MINUTES",
    "DestinationError",
    "HierarchicalPath",
    "InvalidAmountError",
    "InvalidIntervalError",
    "MalformedDateTokenError",
    "RawInterval",
    "RoundedInterval",
    "UnknownCurrencyError",
    "compare_paths",
    "make_path",
    "normalize_interval",
    "normalize_intervals",
    "path_precedes",
    "paths_equal",
    "round_down",
    "round_up",
    "sort_paths",
]
