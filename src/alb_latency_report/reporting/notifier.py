"""
Report sinks for the latency summary.

SlackWebhookSink posts the summary to a Slack incoming webhook as one
message with an attachment of fields; LoggingSink writes the same
payload to the log, which is what dry runs use.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from ..config.constants import (
    REPORT_WINDOW_HOURS,
    SLOW_REQUEST_THRESHOLD_MS,
    TOP_SLOWEST_COUNT,
)
from .aggregations import LatencyReport

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class NotificationError(Exception):
    """Raised when the report could not be delivered."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        if status_code is not None:
            message = f"{message} (HTTP {status_code})"
        super().__init__(message)


def build_report_payload(
    hostname: str,
    report: LatencyReport,
    slow_threshold_ms: float = SLOW_REQUEST_THRESHOLD_MS,
    window_hours: int = REPORT_WINDOW_HOURS,
    top_n: int = TOP_SLOWEST_COUNT,
) -> dict[str, Any]:
    """
    Build the Slack message for a report.

    Args:
        hostname: Application hostname the report covers
        report: Aggregated report
        slow_threshold_ms: Threshold shown in the slow request field title
        window_hours: Window shown in the message text
        top_n: Listing size shown in the slowest request field title

    Returns:
        JSON-serialisable webhook payload
    """
    threshold = f"{slow_threshold_ms:g}"

    return {
        "text": (
            f"Load Balancer for {hostname}: Backend performance in the last "
            f"{window_hours}h"
        ),
        "attachments": [
            {
                "fields": [
                    {
                        "title": "# Requests",
                        "value": report.total_requests,
                        "short": True,
                    },
                    {
                        "title": f"# Requests slower than {threshold}ms",
                        "value": report.slow_requests,
                        "short": True,
                    },
                    {
                        "title": "# Uniques",
                        "value": report.unique_clients,
                        "short": True,
                    },
                    {
                        "title": "# Uniques with slow requests",
                        "value": report.unique_slow_clients,
                        "short": True,
                    },
                    {
                        "title": f"Top {top_n} Slowest Requests",
                        "value": report.slowest_text,
                    },
                ]
            }
        ],
    }


class ReportSink(ABC):
    """Destination for a finished report."""

    def __init__(
        self,
        slow_threshold_ms: float = SLOW_REQUEST_THRESHOLD_MS,
        window_hours: int = REPORT_WINDOW_HOURS,
        top_n: int = TOP_SLOWEST_COUNT,
    ):
        self.slow_threshold_ms = slow_threshold_ms
        self.window_hours = window_hours
        self.top_n = top_n

    def build_payload(self, hostname: str, report: LatencyReport) -> dict[str, Any]:
        return build_report_payload(
            hostname,
            report,
            slow_threshold_ms=self.slow_threshold_ms,
            window_hours=self.window_hours,
            top_n=self.top_n,
        )

    @abstractmethod
    def send(self, hostname: str, report: LatencyReport) -> None:
        """
        Deliver the report.

        Raises:
            NotificationError: If delivery fails
        """
        pass


class SlackWebhookSink(ReportSink):
    """
    Posts reports to a Slack incoming webhook.

    Example:
        sink = SlackWebhookSink("https://hooks.slack.com/services/...")
        sink.send("app.example.com", report)
    """

    def __init__(
        self,
        webhook_url: str,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        **kwargs: Any,
    ):
        """
        Initialize the sink.

        Args:
            webhook_url: Slack incoming webhook URL
            client: Pre-built httpx client (mainly for tests)
            timeout: Request timeout in seconds
            **kwargs: Passed to ReportSink (slow_threshold_ms, window_hours, top_n)
        """
        super().__init__(**kwargs)
        self.webhook_url = webhook_url
        self._client = client
        self.timeout = timeout

    def send(self, hostname: str, report: LatencyReport) -> None:
        payload = self.build_payload(hostname, report)

        try:
            if self._client is not None:
                response = self._client.post(
                    self.webhook_url, json=payload, timeout=self.timeout
                )
            else:
                response = httpx.post(
                    self.webhook_url, json=payload, timeout=self.timeout
                )
        except httpx.HTTPError as e:
            raise NotificationError(f"Failed to post report to Slack: {e}") from e

        if not response.is_success:
            raise NotificationError(
                f"Slack rejected report: {response.text[:500]}",
                status_code=response.status_code,
            )

        logger.info(f"Report for {hostname} delivered to Slack")


class LoggingSink(ReportSink):
    """Writes the report payload to the log instead of sending it."""

    def send(self, hostname: str, report: LatencyReport) -> None:
        payload = self.build_payload(hostname, report)
        logger.info(f"Report for {hostname}:\n{json.dumps(payload, indent=2)}")
