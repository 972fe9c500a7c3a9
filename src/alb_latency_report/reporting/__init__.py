"""
Reporting module for load balancer latency summaries.

Provides:
- LatencyAccumulator: Mergeable aggregate of retained requests
- LatencyReport: Immutable snapshot handed to a sink
- SlackWebhookSink / LoggingSink: Report delivery
"""

from .aggregations import (
    LatencyAccumulator,
    LatencyReport,
    SlowRequestSummary,
    aggregate_requests,
    resolve_display_timezone,
)
from .notifier import (
    LoggingSink,
    NotificationError,
    ReportSink,
    SlackWebhookSink,
    build_report_payload,
)

__all__ = [
    # Aggregation
    "LatencyAccumulator",
    "LatencyReport",
    "SlowRequestSummary",
    "aggregate_requests",
    "resolve_display_timezone",
    # Delivery
    "ReportSink",
    "SlackWebhookSink",
    "LoggingSink",
    "NotificationError",
    "build_report_payload",
]
