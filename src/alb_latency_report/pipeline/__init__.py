"""Report pipeline module."""

from .filters import RequestFilter
from .report_pipeline import (
    LatencyReportPipeline,
    ObjectOutcome,
    PipelineResult,
    setup_logging,
)

__all__ = [
    # Filtering
    "RequestFilter",
    # Pipeline
    "LatencyReportPipeline",
    "ObjectOutcome",
    "PipelineResult",
    "setup_logging",
]
