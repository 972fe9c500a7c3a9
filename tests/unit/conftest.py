"""
Pytest configuration and shared fixtures for unit tests.
"""

from datetime import datetime, timezone

import pytest

APP_HOSTNAME = "app.example.com"
NOW = datetime(2024, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


def make_log_line(
    timestamp: str = "2024-03-02T08:00:00.000000Z",
    client: str = "192.0.2.10:54321",
    backend_time: str = "0.120",
    url: str = f"https://{APP_HOSTNAME}:443/orders",
    user_agent: str = "Mozilla/5.0 (X11; Linux x86_64)",
    status: str = "200",
    target_group: str | None = None,
) -> str:
    """
    Build one access log line in the classic (16 field) format.

    Passing target_group appends the 17th field of the newer format.
    """
    fields = [
        "https",
        timestamp,
        "app/prod-lb/50dc6c495c0c9188",
        client,
        "10.0.1.15:8080",
        "0.000",
        backend_time,
        "0.000",
        status,
        status,
        "34",
        "366",
        f'"GET {url} HTTP/1.1"',
        f'"{user_agent}"',
        "ECDHE-RSA-AES128-GCM-SHA256",
        "TLSv1.2",
    ]
    if target_group is not None:
        fields.append(target_group)
    return " ".join(fields)


@pytest.fixture
def log_line():
    """Factory fixture building access log lines."""
    return make_log_line


@pytest.fixture
def register_sources():
    """
    Ensure the built-in sources are registered.

    Tests may call IngestionRegistry.clear(), so the source classes
    are registered again explicitly.
    """
    from alb_latency_report.ingestion.providers import LocalLogSource, S3LogSource
    from alb_latency_report.ingestion.registry import IngestionRegistry

    if not IngestionRegistry.is_source_registered("aws_s3"):
        IngestionRegistry.register_source("aws_s3", S3LogSource)
    if not IngestionRegistry.is_source_registered("local"):
        IngestionRegistry.register_source("local", LocalLogSource)
