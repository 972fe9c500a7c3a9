"""
Latency aggregation over retained load balancer requests.

LatencyAccumulator folds requests one at a time into:
- total request count
- slow request count (backend time strictly above the threshold)
- unique client IPs, overall and among slow requests
- the N slowest requests, ties kept in encounter order

Accumulators can be merged, so each log object can be folded on its
own (possibly in a worker thread) and combined afterwards. As long as
every request carries a unique order key the merged result does not
depend on the merge order.
"""

import heapq
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any, Iterable, Optional

from dateutil import tz

from ..config.constants import (
    SLOW_REQUEST_THRESHOLD_MS,
    SLOWEST_TIME_FORMAT,
    TOP_SLOWEST_COUNT,
)
from ..ingestion.base import ALBRequest

OrderKey = tuple[int, ...]


@dataclass(frozen=True)
class SlowRequestSummary:
    """One line of the slowest request listing."""

    time_of_day: str
    latency_ms: float
    path: Optional[str]

    def format(self) -> str:
        """Render as "HH:MM:SS TZ 1234.56ms /path"."""
        return f"{self.time_of_day} {self.latency_ms:.2f}ms {self.path or '-'}"


@dataclass(frozen=True)
class LatencyReport:
    """Aggregate snapshot handed to the report sink."""

    total_requests: int
    slow_requests: int
    unique_clients: int
    unique_slow_clients: int
    slowest: tuple[SlowRequestSummary, ...] = ()

    @property
    def slowest_text(self) -> str:
        """Newline-joined slowest request listing (empty if no requests)."""
        return "\n".join(summary.format() for summary in self.slowest)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "total_requests": self.total_requests,
            "slow_requests": self.slow_requests,
            "unique_clients": self.unique_clients,
            "unique_slow_clients": self.unique_slow_clients,
            "slowest": [summary.format() for summary in self.slowest],
        }


def resolve_display_timezone(name: Optional[str] = None) -> tzinfo:
    """
    Resolve the timezone used to print request times.

    Args:
        name: IANA zone name (e.g. "Europe/Berlin"); empty for the host's zone

    Returns:
        tzinfo instance

    Raises:
        ValueError: If the zone name is unknown
    """
    if not name:
        return tz.tzlocal()

    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown timezone: {name}")
    return zone


class LatencyAccumulator:
    """
    Mergeable running aggregate of retained requests.

    Only the slowest candidates are buffered; the buffer is trimmed
    back to top_n whenever it grows to twice that size.

    Example:
        accumulator = LatencyAccumulator()
        for request in requests:
            accumulator.add(request)
        report = accumulator.build_report()
    """

    def __init__(
        self,
        slow_threshold_ms: float = SLOW_REQUEST_THRESHOLD_MS,
        top_n: int = TOP_SLOWEST_COUNT,
    ):
        if top_n < 1:
            raise ValueError(f"top_n must be >= 1, got {top_n}")

        self.slow_threshold_ms = slow_threshold_ms
        self.top_n = top_n

        self.total_requests = 0
        self.slow_requests = 0
        self.client_ips: set[str] = set()
        self.slow_client_ips: set[str] = set()

        self._candidates: list[tuple[tuple[float, OrderKey], ALBRequest]] = []
        self._next_order = 0

    def is_slow(self, request: ALBRequest) -> bool:
        return request.backend_processing_ms > self.slow_threshold_ms

    def add(self, request: ALBRequest, order: Optional[OrderKey] = None) -> None:
        """
        Fold one retained request into the aggregate.

        Args:
            request: Request that passed the filter
            order: Encounter-order key used to break latency ties.
                Defaults to a running counter local to this accumulator;
                pass explicit keys when accumulators will be merged.
        """
        if order is None:
            order = (self._next_order,)
            self._next_order += 1

        self.total_requests += 1
        client_ip = request.client_ip
        self.client_ips.add(client_ip)

        if self.is_slow(request):
            self.slow_requests += 1
            self.slow_client_ips.add(client_ip)

        self._candidates.append(((-request.backend_processing_ms, order), request))
        if len(self._candidates) >= 2 * self.top_n:
            self._trim()

    def merge(self, other: "LatencyAccumulator") -> "LatencyAccumulator":
        """
        Fold another accumulator into this one.

        Args:
            other: Accumulator built with the same threshold and top_n

        Returns:
            self, for chaining

        Raises:
            ValueError: If the accumulators were configured differently
        """
        if (other.slow_threshold_ms, other.top_n) != (
            self.slow_threshold_ms,
            self.top_n,
        ):
            raise ValueError(
                "Cannot merge accumulators with different slow_threshold_ms/top_n"
            )

        self.total_requests += other.total_requests
        self.slow_requests += other.slow_requests
        self.client_ips |= other.client_ips
        self.slow_client_ips |= other.slow_client_ips
        self._candidates.extend(other._candidates)
        self._trim()
        return self

    def slowest(self) -> list[ALBRequest]:
        """Return the slowest requests, slowest first, ties in encounter order."""
        self._trim()
        return [request for _, request in self._candidates]

    def build_report(self, display_tz: Optional[tzinfo] = None) -> LatencyReport:
        """
        Snapshot the aggregate as a LatencyReport.

        Args:
            display_tz: Timezone for the slowest request times
                (defaults to the host's local zone)

        Returns:
            Immutable LatencyReport
        """
        if display_tz is None:
            display_tz = tz.tzlocal()

        summaries = tuple(
            SlowRequestSummary(
                time_of_day=request.timestamp.astimezone(display_tz).strftime(
                    SLOWEST_TIME_FORMAT
                ),
                latency_ms=request.backend_processing_ms,
                path=request.path,
            )
            for request in self.slowest()
        )

        return LatencyReport(
            total_requests=self.total_requests,
            slow_requests=self.slow_requests,
            unique_clients=len(self.client_ips),
            unique_slow_clients=len(self.slow_client_ips),
            slowest=summaries,
        )

    def _trim(self) -> None:
        # nsmallest is stable and the key never compares requests
        self._candidates = heapq.nsmallest(
            self.top_n, self._candidates, key=lambda candidate: candidate[0]
        )


def aggregate_requests(
    requests: Iterable[ALBRequest],
    slow_threshold_ms: float = SLOW_REQUEST_THRESHOLD_MS,
    top_n: int = TOP_SLOWEST_COUNT,
    display_tz: Optional[tzinfo] = None,
) -> LatencyReport:
    """
    Aggregate an already-filtered collection of requests in one go.

    Args:
        requests: Retained requests in encounter order
        slow_threshold_ms: Slow request threshold (strictly greater)
        top_n: Number of slowest requests to list
        display_tz: Timezone for the slowest request times

    Returns:
        LatencyReport
    """
    accumulator = LatencyAccumulator(slow_threshold_ms=slow_threshold_ms, top_n=top_n)
    for request in requests:
        accumulator.add(request)
    return accumulator.build_report(display_tz=display_tz)
