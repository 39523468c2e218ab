"""Loguru configuration with timing instrumentation.

This module provides centralized loguru configuration with:
- Coloured console output
- Structured JSON log files (when a log directory is given)
- Context manager and decorator for timing operations

Library modules only obtain bound loggers through ``get_logger``; sinks are
configured once by the application via ``configure_loguru``.
"""

from __future__ import annotations

import functools
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "COMPONENTS",
    "configure_loguru",
    "get_logger",
    "log_timing",
    "timing_context",
]

F = TypeVar("F", bound=Callable[..., Any])

COMPONENTS = ("rollup", "billing", "storage", "pipeline")


def configure_loguru(
    *,
    log_dir: Path | None = None,
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "10 days",
    enable_console: bool = True,
    enable_timing_logs: bool = True,
) -> None:
    """Configure loguru sinks.

    Parameters
    ----------
    log_dir
        Directory for JSONL log files (no file sinks when None)
    level
        Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    rotation
        Log rotation policy (e.g., "50 MB", "1 day")
    retention
        Log retention policy (e.g., "10 days")
    enable_console
        Enable console output on stderr
    enable_timing_logs
        Write timing records to a separate ``timing.jsonl``

    Example
    -------
    >>> from clockbill.observability import configure_loguru
    >>> configure_loguru(log_dir=Path("logs"), level="DEBUG")
    """
    logger.remove()

    if enable_console:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "clockbill.jsonl",
            format="{message}",
            level=level,
            rotation=rotation,
            retention=retention,
            serialize=True,
            backtrace=True,
            diagnose=False,
        )

        if enable_timing_logs:
            logger.add(
                log_dir / "timing.jsonl",
                format="{message}",
                level="DEBUG",
                rotation=rotation,
                retention=retention,
                serialize=True,
                filter=lambda record: record["extra"].get("timing", False),
            )

    logger.configure(extra={"component": "clockbill"})
    get_logger().info("Loguru configured", log_dir=str(log_dir) if log_dir else None, level=level)


def get_logger(component: str = "clockbill") -> Any:
    """Get a logger bound to a component name.

    Parameters
    ----------
    component
        Component name (rollup, billing, storage, pipeline)

    Returns
    -------
    Logger
        Loguru logger bound to component
    """
    return logger.bind(component=component)


@contextmanager
def timing_context(
    operation: str,
    *,
    component: str = "clockbill",
    trace_id: str | None = None,
    **metadata: Any,
) -> Generator[dict[str, Any], None, None]:
    """Time an operation and log its start and end.

    Yields
    ------
    dict
        Context dictionary; values added to it are logged with the END record

    Example
    -------
    >>> with timing_context("invoice", component="pipeline") as ctx:
    ...     ctx["rows"] = 12
    """
    start_ns = time.perf_counter_ns()
    context: dict[str, Any] = {}
    bound = logger.bind(component=component, timing=True, operation=operation, trace_id=trace_id)

    bound.debug(f"START: {operation}", phase="start", **metadata)

    try:
        yield context
    finally:
        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        bound.debug(
            f"END: {operation}",
            phase="end",
            duration_ms=duration_ms,
            **metadata,
            **context,
        )


def log_timing(component: str = "clockbill") -> Callable[[F], F]:
    """Decorator that wraps a function call in ``timing_context``."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            operation = f"{func.__module__}.{func.__name__}"
            with timing_context(operation, component=component):
                return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
