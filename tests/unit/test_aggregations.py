"""
Unit tests for latency aggregation.

Tests cover:
- Counting total and slow requests (strictly above the threshold)
- Unique client IPs regardless of port
- Deterministic top-N ordering with ties
- Merging per-object accumulators
"""

from datetime import timezone

import pytest

from alb_latency_report.ingestion.parsers import ALBLogParser, parse_line
from alb_latency_report.reporting import (
    LatencyAccumulator,
    LatencyReport,
    SlowRequestSummary,
    aggregate_requests,
    resolve_display_timezone,
)


@pytest.fixture
def make_request(log_line):
    """Build a parsed request with the given backend latency in ms."""

    def _make(ms: float, client: str = "192.0.2.10:54321", path: str = "/orders"):
        line = log_line(
            backend_time=f"{ms / 1000:.5f}",
            client=client,
            url=f"https://app.example.com:443{path}",
        )
        return parse_line(line)

    return _make


class TestLatencyAccumulator:
    """Tests for LatencyAccumulator."""

    def test_empty(self):
        report = LatencyAccumulator().build_report(display_tz=timezone.utc)

        assert report.total_requests == 0
        assert report.slow_requests == 0
        assert report.unique_clients == 0
        assert report.unique_slow_clients == 0
        assert report.slowest == ()
        assert report.slowest_text == ""

    def test_slow_threshold_is_strict(self, make_request):
        accumulator = LatencyAccumulator(slow_threshold_ms=500)
        accumulator.add(make_request(500.0))
        accumulator.add(make_request(500.01))

        assert accumulator.total_requests == 2
        assert accumulator.slow_requests == 1

    def test_unique_clients_ignore_port(self, make_request):
        accumulator = LatencyAccumulator()
        accumulator.add(make_request(10, client="192.0.2.10:1000"))
        accumulator.add(make_request(900, client="192.0.2.10:2000"))
        accumulator.add(make_request(20, client="192.0.2.11:1000"))

        report = accumulator.build_report(display_tz=timezone.utc)
        assert report.unique_clients == 2
        assert report.unique_slow_clients == 1

    def test_top_five_order_with_ties(self, make_request):
        """Slowest first; equal latencies keep encounter order."""
        accumulator = LatencyAccumulator(top_n=5)
        latencies = [100, 500, 500, 50, 900, 10]
        for index, ms in enumerate(latencies):
            accumulator.add(make_request(ms, path=f"/r{index}"))

        slowest = accumulator.slowest()

        assert [round(r.backend_processing_ms) for r in slowest] == [
            900,
            500,
            500,
            100,
            50,
        ]
        assert [r.path for r in slowest] == ["/r4", "/r1", "/r2", "/r0", "/r3"]

    def test_buffer_stays_bounded(self, make_request):
        accumulator = LatencyAccumulator(top_n=2)
        for ms in range(50):
            accumulator.add(make_request(ms))

        assert len(accumulator._candidates) < 4
        assert [round(r.backend_processing_ms) for r in accumulator.slowest()] == [
            49,
            48,
        ]

    def test_merge_matches_single_pass(self, make_request):
        latencies = [120, 730, 730, 15, 980, 501, 499, 730]
        requests = [
            make_request(ms, client=f"192.0.2.{i % 3}:1", path=f"/r{i}")
            for i, ms in enumerate(latencies)
        ]

        single = LatencyAccumulator()
        for i, request in enumerate(requests):
            single.add(request, order=(0, i))

        first = LatencyAccumulator()
        second = LatencyAccumulator()
        for i, request in enumerate(requests):
            target = first if i < 4 else second
            target.add(request, order=(0, i))
        # Merge order must not matter
        merged = second.merge(first)

        expected = single.build_report(display_tz=timezone.utc)
        assert merged.build_report(display_tz=timezone.utc) == expected

    def test_merge_order_independent_with_corrupt_latency(self, log_line):
        """A line with a nan latency is skipped, so merge order cannot matter."""
        parser = ALBLogParser()
        lines = [
            log_line(backend_time=seconds, url=f"https://app.example.com:443/r{i}")
            for i, seconds in enumerate(
                ["0.1", "nan", "0.9", "0.3", "0.7", "0.2", "0.05"]
            )
        ]
        requests = list(parser.parse_lines(lines))
        assert parser.skipped == 1

        def split():
            first = LatencyAccumulator(top_n=2)
            second = LatencyAccumulator(top_n=2)
            for i, request in enumerate(requests):
                (first if i < 3 else second).add(request, order=(0, i))
            return first, second

        a, b = split()
        forward = [r.path for r in a.merge(b).slowest()]
        a, b = split()
        backward = [r.path for r in b.merge(a).slowest()]

        assert forward == backward == ["/r2", "/r4"]

    def test_merge_rejects_different_config(self):
        with pytest.raises(ValueError):
            LatencyAccumulator(top_n=5).merge(LatencyAccumulator(top_n=3))

    def test_rejects_invalid_top_n(self):
        with pytest.raises(ValueError):
            LatencyAccumulator(top_n=0)


class TestLatencyReport:
    """Tests for the report snapshot."""

    def test_summary_format(self, make_request):
        report = aggregate_requests(
            [make_request(1234.56, path="/checkout")], display_tz=timezone.utc
        )

        (summary,) = report.slowest
        assert summary.time_of_day == "08:00:00 UTC"
        assert summary.latency_ms == pytest.approx(1234.56)
        assert summary.path == "/checkout"
        assert report.slowest_text == "08:00:00 UTC 1234.56ms /checkout"

    def test_missing_path_rendered_as_dash(self):
        summary = SlowRequestSummary(time_of_day="08:00:00 UTC", latency_ms=1.0, path=None)
        assert summary.format() == "08:00:00 UTC 1.00ms -"

    def test_slowest_text_is_newline_joined(self, make_request):
        report = aggregate_requests(
            [make_request(10, path="/a"), make_request(20, path="/b")],
            display_tz=timezone.utc,
        )
        assert report.slowest_text.splitlines() == [
            "08:00:00 UTC 20.00ms /b",
            "08:00:00 UTC 10.00ms /a",
        ]

    def test_display_timezone(self, make_request):
        report = aggregate_requests(
            [make_request(10)], display_tz=resolve_display_timezone("Europe/Berlin")
        )
        assert report.slowest[0].time_of_day == "09:00:00 CET"

    def test_to_dict(self):
        report = LatencyReport(
            total_requests=3, slow_requests=1, unique_clients=2, unique_slow_clients=1
        )
        assert report.to_dict() == {
            "total_requests": 3,
            "slow_requests": 1,
            "unique_clients": 2,
            "unique_slow_clients": 1,
            "slowest": [],
        }


class TestResolveDisplayTimezone:
    """Tests for resolve_display_timezone."""

    def test_empty_is_local(self):
        assert resolve_display_timezone("") is not None

    def test_unknown_zone(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            resolve_display_timezone("Mars/Olympus_Mons")
