"""
Shared fixtures for integration tests.

Provides:
- A local log tree laid out like the load balancer's S3 bucket
- A recording sink that keeps delivered reports in memory
- A clean configuration environment for CLI runs
"""

import gzip
from datetime import datetime, timezone
from pathlib import Path

import pytest

from alb_latency_report.config import clear_settings_cache
from alb_latency_report.reporting import ReportSink
from tests.unit.conftest import make_log_line

APP_HOSTNAME = "app.example.com"
LOG_PREFIX = "AWSLogs/123456789012/elasticloadbalancing/us-east-1"
NOW = datetime(2024, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

CONFIG_ENV = [
    "S3_BUCKET",
    "S3_PATH",
    "APP_HOSTNAME",
    "SLACK_WEBHOOK",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_REGION",
    "EXCLUDED_USER_AGENT",
    "REPORT_TIMEZONE",
    "MAX_WORKERS",
    "SLOW_THRESHOLD_MS",
    "TOP_N",
    "WINDOW_HOURS",
]


# =============================================================================
# SAMPLE LOG FIXTURES
# =============================================================================


def sample_objects() -> dict[str, bytes]:
    """
    Two log objects, one per scanned day, relative to the bucket root.

    Seven lines parse; three of them are retained by the filter for
    NOW and APP_HOSTNAME (one slow). One line is malformed.
    """
    url = f"https://{APP_HOSTNAME}:443"

    yesterday = [
        # before the window
        make_log_line(timestamp="2024-03-01T08:00:00.000000Z", url=f"{url}/old"),
        make_log_line(
            timestamp="2024-03-01T12:00:00.000000Z",
            client="192.0.2.10:40001",
            backend_time="0.120",
            url=f"{url}/orders",
        ),
        make_log_line(
            timestamp="2024-03-01T13:00:00.000000Z",
            user_agent="PINGOMETER_BOT_(HTTPS://PINGOMETER.COM)",
            url=f"{url}/health",
        ),
        "this line is not an access log entry",
    ]
    today = [
        make_log_line(
            timestamp="2024-03-02T01:00:00.000000Z",
            client="192.0.2.20:50000",
            backend_time="0.900",
            url=f"{url}/reports/export?format=csv",
            target_group="arn:aws:elasticloadbalancing:us-east-1:123456789012:targetgroup/web/1",
        ),
        make_log_line(
            timestamp="2024-03-02T02:00:00.000000Z",
            url="https://admin.example.com:443/",
        ),
        make_log_line(
            timestamp="2024-03-02T08:30:00.000000Z",
            client="192.0.2.10:40999",
            backend_time="0.045",
            url=f"{url}/search",
        ),
        make_log_line(timestamp="2024-03-02T08:45:00.000000Z", url="garbage"),
    ]

    return {
        f"{LOG_PREFIX}/2024/03/01/part-0001.log": "\n".join(yesterday).encode("utf-8"),
        f"{LOG_PREFIX}/2024/03/02/part-0002.log.gz": gzip.compress(
            "\n".join(today).encode("utf-8")
        ),
    }


def write_objects(root: Path, objects: dict[str, bytes]) -> Path:
    for key, data in objects.items():
        path = root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return root


@pytest.fixture
def log_root(tmp_path: Path) -> Path:
    """Local log tree holding the sample objects."""
    return write_objects(tmp_path / "bucket", sample_objects())


# =============================================================================
# SINK AND ENVIRONMENT FIXTURES
# =============================================================================


class RecordingSink(ReportSink):
    """Sink keeping (hostname, report, payload) tuples in memory."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.sent = []

    def send(self, hostname, report):
        self.sent.append((hostname, report, self.build_payload(hostname, report)))


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No configuration in the environment and no config files in cwd."""
    for key in CONFIG_ENV:
        # setenv first so anything set during the test is removed on teardown
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    workdir = tmp_path / "workdir"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    clear_settings_cache()
    yield monkeypatch
    clear_settings_cache()
