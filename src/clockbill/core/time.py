"""Civil timestamp utilities.

All timestamps handled by clockbill are naive ``datetime`` values in a single
local civil calendar. Nothing here converts between zones; timezone-aware input
is rejected rather than silently shifted.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time

from .errors import MalformedDateTokenError

__all__ = [
    "DATE_PREFIX_PATTERN",
    "TIMESTAMP_FORMAT",
    "floor_to_midnight",
    "format_day_heading",
    "format_timestamp",
    "parse_date_prefix",
    "parse_timestamp",
]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

DATE_PREFIX_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?!\d)")

# Accepts "2024-03-05 09:00", "2024-03-05T09:00:30" and outline-style
# "[2024-03-05 Tue 09:00]".
_TIMESTAMP_PATTERN = re.compile(
    r"^\[?(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:\s+[A-Za-z]{2,3})?"
    r"[ T]+(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?\]?$"
)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a civil timestamp.

    Parameters
    ----------
    value
        Timestamp string or an existing naive datetime

    Returns
    -------
    datetime
        Naive datetime

    Raises
    ------
    ValueError
        If the value cannot be parsed or carries timezone information
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            raise ValueError(f"Timezone-aware timestamps are not supported: {value.isoformat()}")
        return value

    text = value.strip()
    match = _TIMESTAMP_PATTERN.match(text)
    if not match:
        raise ValueError(f"Cannot parse timestamp: {value!r}")

    day = date.fromisoformat(match.group("date"))
    clock = time(
        int(match.group("hour")),
        int(match.group("minute")),
        int(match.group("second") or 0),
    )
    return datetime.combine(day, clock)


def format_timestamp(dt: datetime) -> str:
    """Format a timestamp as ``YYYY-MM-DD HH:MM``."""
    return dt.strftime(TIMESTAMP_FORMAT)


def floor_to_midnight(dt: datetime | date) -> datetime:
    """Return midnight at the start of the given day."""
    return datetime(dt.year, dt.month, dt.day)


def format_day_heading(day: date) -> str:
    """Format a day as ``YYYY-MM-DD Ddd`` (e.g. ``2024-03-05 Tue``)."""
    return f"{day:%Y-%m-%d} {day:%a}"


def parse_date_prefix(text: str) -> date:
    """Extract the leading ``YYYY-MM-DD`` date from a heading.

    Raises
    ------
    MalformedDateTokenError
        If the text does not start with a valid calendar date
    """
    match = DATE_PREFIX_PATTERN.match(text)
    if not match:
        raise MalformedDateTokenError(text)

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise MalformedDateTokenError(text) from exc
