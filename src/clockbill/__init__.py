"""clockbill - rounded, rolled-up billing totals from hierarchical clock entries."""

from .billing import InvoiceSequence, InvoiceSequenceConfig, format_amount
from .config import ConfigError, Settings, get_settings, load_settings
from .core import (
    ClockbillError,
    RawInterval,
    RoundedInterval,
    compare_paths,
    normalize_interval,
    paths_equal,
    round_down,
    round_up,
)
from .pipelines import BillingPipeline, create_billing_pipeline
from .rollups import compute_daily_rollups, extract_project_times, rollup_day, select_period
from .storage import OutlineClockSource, OutlineStore

__version__ = "0.1.0"

__all__ = [
    "BillingPipeline",
    "ClockbillError",
    "ConfigError",
    "InvoiceSequence",
    "InvoiceSequenceConfig",
    "OutlineClockSource",
    "OutlineStore",
    "RawInterval",
    "RoundedInterval",
    "Settings",
    "compare_paths",
    "compute_daily_rollups",
    "create_billing_pipeline",
    "extract_project_times",
    "format_amount",
    "get_settings",
    "load_settings",
    "normalize_interval",
    "paths_equal",
    "round_down",
    "round_up",
    "rollup_day",
    "select_period",
    "__version__",
]
