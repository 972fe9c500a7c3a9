#!/usr/bin/env python3
"""
CLI script to build and post the load balancer latency report.

Usage:
    # Report on the last 24h of S3 logs and post to Slack
    python scripts/run_report.py

    # Print the Slack payload instead of posting it
    python scripts/run_report.py --dry-run

    # Replay logs copied from the bucket into a local directory
    python scripts/run_report.py --source local --input ./elb-logs --dry-run

    # Pin the end of the window (reproducible runs)
    python scripts/run_report.py --now 2024-03-02T09:00:00Z --dry-run
"""

import argparse
import dataclasses
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from alb_latency_report.config import (
    ConfigurationError,
    check_sops_installed,
    get_settings,
)
from alb_latency_report.ingestion import get_source
from alb_latency_report.pipeline import LatencyReportPipeline, setup_logging


def parse_now(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid timestamp: {value}. Use ISO 8601, e.g. 2024-03-02T09:00:00Z"
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Summarise load balancer backend latency and post it to Slack",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Daily report (S3 -> Slack)
  python scripts/run_report.py

  # Preview without posting
  python scripts/run_report.py --dry-run --verbose

  # Local replay with 4 worker threads
  python scripts/run_report.py --source local --input ./elb-logs --workers 4 --dry-run
        """,
    )

    # Configuration
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to SOPS-encrypted config (default: config.enc.yaml, then env vars)",
    )

    # Log source
    parser.add_argument(
        "--source",
        choices=["aws_s3", "local"],
        default="aws_s3",
        help="Where to read log objects from (default: aws_s3)",
    )
    parser.add_argument(
        "--input",
        type=Path,
        help="Root directory holding <S3_PATH>/YYYY/MM/DD/ folders (--source local)",
    )

    # Processing options
    parser.add_argument(
        "--now",
        type=parse_now,
        help="End of the report window in ISO 8601 (default: current time)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Threads used to fetch and parse log objects (default: MAX_WORKERS or 1)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the report payload instead of posting it to Slack",
    )

    # Optional
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.source == "local" and args.input is None:
        parser.error("--input is required with --source local")
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be >= 1")

    # Setup logging
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    logger = logging.getLogger(__name__)

    if args.config and not check_sops_installed():
        logger.error(f"SOPS is required to decrypt {args.config} but is not installed")
        return 2

    try:
        settings = get_settings(str(args.config) if args.config else None)
        if args.workers is not None:
            settings = dataclasses.replace(settings, max_workers=args.workers)
        settings.require_valid(
            require_storage=args.source == "aws_s3",
            require_webhook=not args.dry_run,
        )
    except ConfigurationError as e:
        for error in e.errors:
            logger.error(error)
        return 2

    source = None
    if args.source == "local":
        source = get_source(
            "local", root_dir=args.input, path_prefix=settings.s3_path
        )

    try:
        pipeline = LatencyReportPipeline.from_settings(
            settings, source=source, dry_run=args.dry_run
        )
    except ValueError as e:
        # Unknown REPORT_TIMEZONE
        logger.error(f"Failed to initialize pipeline: {e}")
        return 2

    result = pipeline.run(now=args.now)
    report = result.report

    print()
    print("Latency Report Result")
    print("=" * 50)
    print(f"  Hostname: {result.hostname}")
    print(f"  Days scanned: {', '.join(d.isoformat() for d in result.days_scanned)}")
    print(
        f"  Objects: {result.objects_processed}/{result.objects_listed} processed, "
        f"{result.objects_failed} failed"
    )
    print(
        f"  Lines: {result.lines_parsed:,} parsed, {result.lines_skipped:,} skipped"
    )
    if report is not None:
        print(f"  Requests: {report.total_requests:,} ({report.slow_requests:,} slow)")
        print(
            f"  Uniques: {report.unique_clients:,} "
            f"({report.unique_slow_clients:,} with slow requests)"
        )
    print(f"  Delivered: {'yes' if result.delivered else 'no'}")
    duration = result.duration_seconds or 0
    print(f"  Duration: {duration:.1f}s")

    if result.errors:
        print()
        print("Errors:")
        for error in result.errors:
            print(f"  - {error}")

    logger.debug(f"Result: {result.to_dict()}")

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
