"""Workflow pipelines."""

from .billing_pipeline import (
    BillingPipeline,
    BillingPipelineConfig,
    InvoiceResult,
    PeriodReportResult,
    create_billing_pipeline,
)

__all__ = [
    "BillingPipeline",
    "BillingPipelineConfig",
    "InvoiceResult",
    "PeriodReportResult",
    "create_billing_pipeline",
]
