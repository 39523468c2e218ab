"""Billing pipeline - orchestration of the period report and invoice workflows.

The pipeline wires the collaborators together: raw intervals come from an
interval source, day rollups are written into a hierarchical destination,
and finished tables are handed to a render sink. It holds no aggregation
logic of its own.

Every run gets a trace id that is bound to all log records it emits. Tables
are built completely before anything irreversible happens (allocating an
invoice number, handing the table to the sink), so a failing run leaves no
partially-rendered output behind.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from ..billing.currency import DEFAULT_CURRENCY, format_amount
from ..billing.invoice_sequence import InvoiceSequence, InvoiceSequenceConfig
from ..core.rounding import DEFAULT_GRANULARITY_MINUTES
from ..observability import get_logger, timing_context
from ..reports.table import Table, build_invoice_detail, build_period_report
from ..rollups.aggregator import DEFAULT_ROLLUP_ROOT, compute_daily_rollups, rollup_exists, write_day_rollup
from ..rollups.extractor import extract_project_times
from ..rollups.time_windows import PeriodKind, PeriodWindow, select_period
from ..storage.outline import DEFAULT_CLOCK_ROOT, OutlineClockSource

if TYPE_CHECKING:
    from ..config.settings import Settings
    from ..core.host import HierarchicalDestination, IntervalSource, RenderSink
    from ..storage.outline import OutlineStore

__all__ = [
    "BillingPipeline",
    "BillingPipelineConfig",
    "InvoiceResult",
    "PeriodReportResult",
    "create_billing_pipeline",
]

log = get_logger("pipeline")


@dataclass
class BillingPipelineConfig:
    """Configuration for the billing pipeline."""

    rollup_root: str = DEFAULT_ROLLUP_ROOT
    clock_root: str = DEFAULT_CLOCK_ROOT
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES
    recompute_always: bool = False
    case_sensitive: bool = True
    currency: str = DEFAULT_CURRENCY
    hourly_rate: float = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> BillingPipelineConfig:
        return cls(
            rollup_root=settings.rollup_root,
            clock_root=settings.clock_root,
            granularity_minutes=settings.rounding_minutes,
            recompute_always=settings.recompute_always,
            case_sensitive=settings.case_sensitive,
            currency=settings.currency,
            hourly_rate=settings.hourly_rate,
        )


@dataclass
class PeriodReportResult:
    """Result of a period report run."""

    window: PeriodWindow
    table: Table
    total_hours: float
    days_written: int
    days_reused: int
    duration_ms: float
    trace_id: str
    day_paths: list[tuple[str, ...]] = field(default_factory=list)


@dataclass
class InvoiceResult:
    """Result of an invoice run."""

    invoice_number: int
    period_start: datetime | date | None
    period_end: datetime | date | None
    currency: str
    rate: float
    total_hours: float
    total_amount: str
    rows_count: int
    table: Table
    duration_ms: float
    trace_id: str


class BillingPipeline:
    """Thin orchestration for period reports and invoices.

    Example:
        >>> store = OutlineStore.load("work.yaml")
        >>> pipeline = create_billing_pipeline(settings, store, sink=CollectingSink())
        >>> report = pipeline.run_period_report(datetime(2024, 3, 6), "week")
        >>> invoice = pipeline.create_invoice(date(2024, 3, 1), date(2024, 4, 1))
    """

    def __init__(
        self,
        config: BillingPipelineConfig,
        *,
        store: HierarchicalDestination,
        source: IntervalSource,
        sequence: InvoiceSequence,
        sink: RenderSink | None = None,
    ) -> None:
        """Initialize billing pipeline.

        Parameters
        ----------
        config
            Pipeline configuration
        store
            Destination receiving day rollups, also read back for invoices
        source
            Supplies the raw clock intervals
        sequence
            Invoice number allocator
        sink
            Receives finished tables (tables are only returned when None)
        """
        self.config = config
        self.store = store
        self.source = source
        self.sequence = sequence
        self.sink = sink

    def run_period_report(
        self,
        anchor: datetime | date | None = None,
        kind: PeriodKind = "week",
    ) -> PeriodReportResult:
        """Roll up the period around ``anchor`` and emit its report table.

        Intervals whose rounded start lies inside the window are rolled up
        per day. Each day's rollup is written into the store unless one
        already exists there and recomputation is not forced.

        Parameters
        ----------
        anchor
            Any moment inside the period (default: now)
        kind
            "day", "week" or "month"

        Returns
        -------
        PeriodReportResult
            Window, table and counters

        Raises
        ------
        InvalidIntervalError
            If any interval in the window is invalid; nothing is written then
        """
        trace_id = str(uuid.uuid4())
        start_time = time.time()
        bound = log.bind(trace_id=trace_id)

        window = select_period(anchor if anchor is not None else datetime.now(), kind)
        bound.info("Period report started", window=window.label, kind=kind)

        with timing_context("period_report", component="pipeline", trace_id=trace_id) as ctx:
            rollups = compute_daily_rollups(
                self.source.iter_intervals(),
                self.config.granularity_minutes,
                window=window,
                case_sensitive=self.config.case_sensitive,
            )

            written = reused = 0
            day_paths: list[tuple[str, ...]] = []
            for rollup in rollups:
                if not self.config.recompute_always and rollup_exists(
                    self.store, rollup.day, self.config.rollup_root
                ):
                    reused += 1
                    continue
                day_paths.append(write_day_rollup(self.store, rollup, self.config.rollup_root))
                written += 1

            table = build_period_report(window, rollups)
            total_hours = sum(rollup.day_total for rollup in rollups)
            ctx.update(days=len(rollups), rows=len(table.rows))

        if self.sink is not None:
            self.sink.accept(table)

        duration_ms = (time.time() - start_time) * 1000
        bound.info(
            "Period report completed",
            window=window.label,
            days_written=written,
            days_reused=reused,
            total_hours=total_hours,
            duration_ms=duration_ms,
        )

        return PeriodReportResult(
            window=window,
            table=table,
            total_hours=total_hours,
            days_written=written,
            days_reused=reused,
            duration_ms=duration_ms,
            trace_id=trace_id,
            day_paths=day_paths,
        )

    def create_invoice(
        self,
        start: datetime | date | None = None,
        end: datetime | date | None = None,
        *,
        rate: float | None = None,
        currency: str | None = None,
    ) -> InvoiceResult:
        """Build the invoice detail table for ``[start, end)`` and number it.

        The currency is taken from the argument, then from the document
        metadata (``currency``), then from configuration. The invoice number
        is allocated only after the table has been built; a failure before
        that point burns no number.

        Raises
        ------
        UnknownCurrencyError, InvalidAmountError
            If amounts cannot be formatted
        CounterPersistenceError
            If no invoice number could be allocated; nothing reaches the sink
        """
        trace_id = str(uuid.uuid4())
        start_time = time.time()
        bound = log.bind(trace_id=trace_id)

        code = currency or self.store.metadata.get("currency") or self.config.currency
        hourly_rate = self.config.hourly_rate if rate is None else rate
        bound.info("Invoice started", period_start=_iso(start), period_end=_iso(end), currency=code)

        with timing_context("invoice", component="pipeline", trace_id=trace_id) as ctx:
            project_times = extract_project_times(
                self.store,
                start,
                end,
                root=self.config.rollup_root,
                source=self.source,
                recompute=self.config.recompute_always,
                granularity_minutes=self.config.granularity_minutes,
                case_sensitive=self.config.case_sensitive,
            )

            table = build_invoice_detail(project_times, rate=hourly_rate, currency=code)
            total_hours = sum(item.hours for item in project_times)
            total_amount = format_amount(total_hours * hourly_rate, code)

            invoice_number = self.sequence.next_invoice()
            table.title = f"Invoice {invoice_number}"
            table.metadata["invoice"] = invoice_number
            ctx.update(invoice=invoice_number, rows=len(project_times))

        if self.sink is not None:
            self.sink.accept(table)

        duration_ms = (time.time() - start_time) * 1000
        bound.info(
            "Invoice completed",
            invoice=invoice_number,
            total_hours=total_hours,
            total_amount=total_amount,
            duration_ms=duration_ms,
        )

        return InvoiceResult(
            invoice_number=invoice_number,
            period_start=start,
            period_end=end,
            currency=table.metadata["currency"],
            rate=hourly_rate,
            total_hours=total_hours,
            total_amount=total_amount,
            rows_count=len(project_times),
            table=table,
            duration_ms=duration_ms,
            trace_id=trace_id,
        )


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def create_billing_pipeline(
    settings: Settings,
    store: OutlineStore,
    *,
    sink: RenderSink | None = None,
    source: IntervalSource | None = None,
    sequence: InvoiceSequence | None = None,
) -> BillingPipeline:
    """Factory function to create a billing pipeline from settings.

    Parameters
    ----------
    settings
        Loaded settings
    store
        Outline document; clock records under ``settings.clock_root`` are the
        default interval source
    sink
        Optional render sink
    source
        Interval source overriding the outline's clock records
    sequence
        Invoice sequence overriding the one configured in settings

    Returns
    -------
    BillingPipeline
        Configured pipeline instance
    """
    if source is None:
        source = OutlineClockSource(store, root=settings.clock_root)

    if sequence is None:
        sequence = InvoiceSequence(
            InvoiceSequenceConfig(
                counter_path=settings.counter_path,
                start=settings.invoice_start,
                lock_timeout=settings.lock_timeout,
            )
        )

    return BillingPipeline(
        BillingPipelineConfig.from_settings(settings),
        store=store,
        source=source,
        sequence=sequence,
        sink=sink,
    )
