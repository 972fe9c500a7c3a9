"""
Latency report pipeline.

Runs one report end to end:
1. List the UTC day folders overlapping the trailing window
2. Fetch each log object (skipping objects that cannot be read)
3. Parse lines (skipping malformed ones) and keep matching requests
4. Fold everything into one LatencyAccumulator
5. Hand the LatencyReport to the sink

Objects are processed sequentially by default. With max_workers > 1
they are fetched and parsed in a thread pool; per-object accumulators
are merged in listing order so the report is the same either way.
"""

import logging
import zlib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

from ..config.constants import (
    HEALTH_CHECK_USER_AGENT,
    REPORT_WINDOW_HOURS,
    SLOW_REQUEST_THRESHOLD_MS,
    TOP_SLOWEST_COUNT,
)
from ..config.settings import Settings
from ..ingestion.base import LogSource
from ..ingestion.exceptions import SourceFetchError
from ..ingestion.parsers import ALBLogParser
from ..ingestion.registry import get_source
from ..reporting.aggregations import (
    LatencyAccumulator,
    LatencyReport,
    resolve_display_timezone,
)
from ..reporting.notifier import (
    LoggingSink,
    NotificationError,
    ReportSink,
    SlackWebhookSink,
)
from .filters import RequestFilter

logger = logging.getLogger(__name__)

# Skip messages kept on the result (all of them are logged)
MAX_SKIP_DIAGNOSTICS = 50


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # boto3 is very chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))


@dataclass
class PipelineResult:
    """Result of a report pipeline run."""

    success: bool
    hostname: str
    now: datetime
    started_at: datetime = field(default_factory=lambda: datetime.now().astimezone())
    completed_at: Optional[datetime] = None
    report: Optional[LatencyReport] = None
    delivered: bool = False
    # Stats
    days_scanned: list[date] = field(default_factory=list)
    listings_failed: int = 0
    objects_listed: int = 0
    objects_processed: int = 0
    objects_failed: int = 0
    lines_parsed: int = 0
    lines_skipped: int = 0
    requests_retained: int = 0
    # Diagnostics
    skip_diagnostics: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get pipeline duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "success": self.success,
            "hostname": self.hostname,
            "now": self.now.isoformat(),
            "started_at": self.started_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "duration_seconds": self.duration_seconds,
            "report": self.report.to_dict() if self.report else None,
            "delivered": self.delivered,
            "days_scanned": [day.isoformat() for day in self.days_scanned],
            "listings_failed": self.listings_failed,
            "objects_listed": self.objects_listed,
            "objects_processed": self.objects_processed,
            "objects_failed": self.objects_failed,
            "lines_parsed": self.lines_parsed,
            "lines_skipped": self.lines_skipped,
            "requests_retained": self.requests_retained,
            "skip_diagnostics": self.skip_diagnostics,
            "errors": self.errors,
        }


@dataclass
class ObjectOutcome:
    """What processing one log object produced."""

    key: str
    accumulator: LatencyAccumulator
    lines_parsed: int = 0
    lines_skipped: int = 0
    skip_diagnostics: list[str] = field(default_factory=list)
    error: Optional[str] = None


class LatencyReportPipeline:
    """
    Fetch, parse, filter and aggregate load balancer logs into a report.

    Example:
        source = get_source("aws_s3", bucket="my-elb-logs", path_prefix="prod")
        pipeline = LatencyReportPipeline(
            source=source,
            hostname="app.example.com",
            sink=SlackWebhookSink(webhook_url),
        )
        result = pipeline.run()
        print(result.report.slowest_text)
    """

    def __init__(
        self,
        source: LogSource,
        hostname: str,
        sink: Optional[ReportSink] = None,
        excluded_user_agent: str = HEALTH_CHECK_USER_AGENT,
        slow_threshold_ms: float = SLOW_REQUEST_THRESHOLD_MS,
        top_n: int = TOP_SLOWEST_COUNT,
        window_hours: int = REPORT_WINDOW_HOURS,
        display_tz: Optional[tzinfo] = None,
        max_workers: int = 1,
    ):
        """
        Initialize the pipeline.

        Args:
            source: Where log objects come from
            hostname: Application hostname to report on
            sink: Report destination (None to only compute the report)
            excluded_user_agent: Health-check user agent to ignore
            slow_threshold_ms: Slow request threshold (strictly greater)
            top_n: Number of slowest requests to list
            window_hours: Trailing window length
            display_tz: Timezone for slowest request times (host zone if None)
            max_workers: Threads used to process log objects
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        self.source = source
        self.hostname = hostname
        self.sink = sink
        self.excluded_user_agent = excluded_user_agent
        self.slow_threshold_ms = slow_threshold_ms
        self.top_n = top_n
        self.window = timedelta(hours=window_hours)
        self.display_tz = display_tz
        self.max_workers = max_workers

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        source: Optional[LogSource] = None,
        sink: Optional[ReportSink] = None,
        dry_run: bool = False,
    ) -> "LatencyReportPipeline":
        """
        Build a pipeline from validated settings.

        Args:
            settings: Application settings
            source: Override the S3 source (e.g. a LocalLogSource)
            sink: Override the sink
            dry_run: Log the report instead of posting it to Slack

        Returns:
            Configured pipeline
        """
        if source is None:
            source = get_source(
                "aws_s3",
                bucket=settings.s3_bucket,
                path_prefix=settings.s3_path,
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=settings.aws_region,
            )

        sink_options = {
            "slow_threshold_ms": settings.slow_threshold_ms,
            "window_hours": settings.window_hours,
            "top_n": settings.top_n,
        }
        if sink is None:
            if dry_run:
                sink = LoggingSink(**sink_options)
            else:
                sink = SlackWebhookSink(settings.slack_webhook, **sink_options)

        return cls(
            source=source,
            hostname=settings.app_hostname,
            sink=sink,
            excluded_user_agent=settings.excluded_user_agent,
            slow_threshold_ms=settings.slow_threshold_ms,
            top_n=settings.top_n,
            window_hours=settings.window_hours,
            display_tz=resolve_display_timezone(settings.report_timezone),
            max_workers=settings.max_workers,
        )

    def days_to_scan(self, now: datetime) -> list[date]:
        """
        UTC days whose log folders can hold requests inside the window.

        For the default 24h window that is always yesterday and today.
        """
        now = now.astimezone(timezone.utc)
        first_day = (now - self.window).date()
        return [
            first_day + timedelta(days=offset)
            for offset in range((now.date() - first_day).days + 1)
        ]

    def run(self, now: Optional[datetime] = None) -> PipelineResult:
        """
        Build the report and deliver it to the sink.

        Args:
            now: End of the report window (defaults to the current time)

        Returns:
            PipelineResult; success is False only if delivery failed
        """
        if now is None:
            now = datetime.now(timezone.utc)

        result = PipelineResult(success=False, hostname=self.hostname, now=now)
        logger.info(
            f"Building latency report for {self.hostname} "
            f"({self.window} ending {now.isoformat()})"
        )

        accumulator = self.collect(now, result)
        report = accumulator.build_report(display_tz=self.display_tz)
        result.report = report
        result.requests_retained = report.total_requests

        logger.info(
            f"Aggregated {report.total_requests} requests "
            f"({report.slow_requests} slow, {report.unique_clients} uniques) "
            f"from {result.objects_processed} objects; "
            f"skipped {result.lines_skipped} lines and {result.objects_failed} objects"
        )

        result.success = True
        if self.sink is not None:
            try:
                self.sink.send(self.hostname, report)
                result.delivered = True
            except NotificationError as e:
                logger.error(f"Report delivery failed: {e}")
                result.errors.append(str(e))
                result.success = False

        result.completed_at = datetime.now().astimezone()
        return result

    def collect(
        self, now: datetime, result: Optional[PipelineResult] = None
    ) -> LatencyAccumulator:
        """
        Fetch, parse and filter every log object into one accumulator.

        Args:
            now: End of the report window
            result: Result object to record stats on (optional)

        Returns:
            Merged LatencyAccumulator
        """
        if result is None:
            result = PipelineResult(success=False, hostname=self.hostname, now=now)

        request_filter = RequestFilter(
            hostname=self.hostname,
            now=now,
            window=self.window,
            excluded_user_agent=self.excluded_user_agent,
        )

        keys = self._list_keys(now, result)
        result.objects_listed = len(keys)

        if self.max_workers > 1 and len(keys) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                outcomes = list(
                    executor.map(
                        lambda item: self._process_object(
                            item[0], item[1], request_filter
                        ),
                        enumerate(keys),
                    )
                )
        else:
            outcomes = [
                self._process_object(index, key, request_filter)
                for index, key in enumerate(keys)
            ]

        accumulator = self._new_accumulator()
        for outcome in outcomes:
            result.lines_parsed += outcome.lines_parsed
            result.lines_skipped += outcome.lines_skipped
            room = MAX_SKIP_DIAGNOSTICS - len(result.skip_diagnostics)
            if room > 0:
                result.skip_diagnostics.extend(outcome.skip_diagnostics[:room])

            if outcome.error is not None:
                result.objects_failed += 1
                result.errors.append(outcome.error)
                continue

            result.objects_processed += 1
            accumulator.merge(outcome.accumulator)

        if result.objects_failed:
            logger.warning(
                f"Completed with {result.objects_failed} unreadable object(s). "
                f"Some requests may be missing from the report."
            )

        return accumulator

    def _new_accumulator(self) -> LatencyAccumulator:
        return LatencyAccumulator(
            slow_threshold_ms=self.slow_threshold_ms, top_n=self.top_n
        )

    def _list_keys(self, now: datetime, result: PipelineResult) -> list[str]:
        keys: list[str] = []
        for day in self.days_to_scan(now):
            result.days_scanned.append(day)
            try:
                keys.extend(self.source.list_objects(day))
            except SourceFetchError as e:
                logger.warning(f"Skipping {day.isoformat()}: {e}")
                result.listings_failed += 1
                result.errors.append(str(e))
        return keys

    def _process_object(
        self, index: int, key: str, request_filter: RequestFilter
    ) -> ObjectOutcome:
        """Fetch and fold one log object; failures are reported, not raised."""
        outcome = ObjectOutcome(key=key, accumulator=self._new_accumulator())
        parser = ALBLogParser(source_key=key)

        try:
            log_object = self.source.fetch(key)
            lines = log_object.iter_lines()
            for request in parser.parse_lines(lines):
                if request_filter.keep(request):
                    outcome.accumulator.add(request, order=(index, parser.parsed))
        except SourceFetchError as e:
            logger.warning(f"Skipping object: {e}")
            outcome.error = str(e)
        except (OSError, EOFError, zlib.error) as e:
            # Corrupt or truncated gzip body
            logger.warning(f"Skipping undecodable object {key}: {e}")
            outcome.error = f"Failed to decode {key}: {e}"
        else:
            logger.debug(
                f"{key}: {parser.parsed} parsed, {parser.skipped} skipped, "
                f"{outcome.accumulator.total_requests} retained"
            )

        outcome.lines_parsed = parser.parsed
        outcome.lines_skipped = parser.skipped
        outcome.skip_diagnostics = [str(error) for error in parser.failures]
        return outcome
