"""
Unit tests for report delivery.

The Slack webhook is exercised through httpx.MockTransport, so no
network access is needed.
"""

import json

import httpx
import pytest

from alb_latency_report.reporting import (
    LatencyReport,
    LoggingSink,
    NotificationError,
    SlackWebhookSink,
    SlowRequestSummary,
    build_report_payload,
)

WEBHOOK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"


@pytest.fixture
def report():
    return LatencyReport(
        total_requests=1200,
        slow_requests=14,
        unique_clients=310,
        unique_slow_clients=9,
        slowest=(
            SlowRequestSummary("08:12:01 UTC", 2310.5, "/checkout"),
            SlowRequestSummary("07:55:43 UTC", 1800.0, "/search"),
        ),
    )


class TestBuildReportPayload:
    """Tests for the Slack message layout."""

    def test_text(self, report):
        payload = build_report_payload("app.example.com", report)
        assert payload["text"] == (
            "Load Balancer for app.example.com: Backend performance in the last 24h"
        )

    def test_fields(self, report):
        payload = build_report_payload("app.example.com", report)

        (attachment,) = payload["attachments"]
        fields = attachment["fields"]
        assert [field["title"] for field in fields] == [
            "# Requests",
            "# Requests slower than 500ms",
            "# Uniques",
            "# Uniques with slow requests",
            "Top 5 Slowest Requests",
        ]
        assert [field["value"] for field in fields[:4]] == [1200, 14, 310, 9]
        assert all(field["short"] for field in fields[:4])
        assert fields[4]["value"] == (
            "08:12:01 UTC 2310.50ms /checkout\n07:55:43 UTC 1800.00ms /search"
        )

    def test_custom_settings_in_titles(self, report):
        payload = build_report_payload(
            "app.example.com", report, slow_threshold_ms=250.5, window_hours=12, top_n=3
        )

        titles = [field["title"] for field in payload["attachments"][0]["fields"]]
        assert "# Requests slower than 250.5ms" in titles
        assert "Top 3 Slowest Requests" in titles
        assert payload["text"].endswith("in the last 12h")

    def test_empty_report(self):
        payload = build_report_payload(
            "app.example.com",
            LatencyReport(
                total_requests=0, slow_requests=0, unique_clients=0, unique_slow_clients=0
            ),
        )
        assert payload["attachments"][0]["fields"][4]["value"] == ""


class TestSlackWebhookSink:
    """Tests for SlackWebhookSink.send."""

    def test_posts_payload(self, report):
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(request)
            return httpx.Response(200, text="ok")

        client = httpx.Client(transport=httpx.MockTransport(handler))
        SlackWebhookSink(WEBHOOK_URL, client=client).send("app.example.com", report)

        (request,) = received
        assert request.method == "POST"
        assert str(request.url) == WEBHOOK_URL
        body = json.loads(request.content)
        assert body == build_report_payload("app.example.com", report)

    def test_error_status_raises(self, report):
        client = httpx.Client(
            transport=httpx.MockTransport(
                lambda request: httpx.Response(404, text="no_service")
            )
        )
        sink = SlackWebhookSink(WEBHOOK_URL, client=client)

        with pytest.raises(NotificationError) as exc_info:
            sink.send("app.example.com", report)

        assert exc_info.value.status_code == 404
        assert "no_service" in str(exc_info.value)

    def test_transport_error_raises(self, report):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        sink = SlackWebhookSink(WEBHOOK_URL, client=client)

        with pytest.raises(NotificationError) as exc_info:
            sink.send("app.example.com", report)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class TestLoggingSink:
    """Tests for LoggingSink.send."""

    def test_logs_payload(self, report, caplog):
        with caplog.at_level("INFO"):
            LoggingSink().send("app.example.com", report)

        assert "Report for app.example.com" in caplog.text
        assert "# Uniques with slow requests" in caplog.text
