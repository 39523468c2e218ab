"""Daily rollups, period windows and project time extraction."""

from .aggregator import (
    DEFAULT_ROLLUP_ROOT,
    DayRollup,
    RollupEntry,
    compute_daily_rollups,
    format_summary,
    parse_summary,
    rollup_day,
    rollup_exists,
    write_day_rollup,
)
from .extractor import ProjectTime, compare_string_lists, extract_project_times, rebuild_rollups
from .time_windows import (
    PeriodKind,
    PeriodWindow,
    compute_day_window,
    compute_month_window,
    compute_week_window,
    days_in_month,
    get_week_start,
    is_leap_year,
    select_period,
    week_number,
)

__all__ = [
    # Period windows
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
    # Aggregation
    "DEFAULT_ROLLUP_ROOT",
    "DayRollup",
    "RollupEntry",
    "compute_daily_rollups",
    "format_summary",
    "parse_summary",
    "rollup_day",
    "rollup_exists",
    "write_day_rollup",
    # Extraction
    "ProjectTime",
    "compare_string_lists",
    "extract_project_times",
    "rebuild_rollups",
]
