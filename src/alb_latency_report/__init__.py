"""
Load balancer latency report.

Reads a day's worth of load balancer access logs from S3, keeps the
requests for one application hostname in the trailing 24 hours and
posts a backend latency summary to Slack.
"""

__version__ = "0.1.0"
