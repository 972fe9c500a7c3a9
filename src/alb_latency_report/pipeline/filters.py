"""
Inclusion filter for parsed load balancer requests.

A request is retained when all of these hold:
- its user agent is not the excluded health-check agent
- the host of its request URL is the application hostname
- it was logged inside the trailing report window ending at `now`

`now` is fixed when the filter is built, so keep() is a pure function
of the request.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..config.constants import HEALTH_CHECK_USER_AGENT, REPORT_WINDOW_HOURS
from ..ingestion.base import ALBRequest


@dataclass(frozen=True)
class RequestFilter:
    """
    Predicate set deciding which requests enter the report.

    Attributes:
        hostname: Application hostname requests must target
        now: Reference instant the window ends at (timezone-aware)
        window: Length of the trailing window
        excluded_user_agent: User agent whose requests are ignored
    """

    hostname: str
    now: datetime
    window: timedelta = timedelta(hours=REPORT_WINDOW_HOURS)
    excluded_user_agent: str = HEALTH_CHECK_USER_AGENT

    def __post_init__(self):
        if self.now.tzinfo is None:
            raise ValueError(
                f"Datetime {self.now} has no timezone. Please provide timezone-aware "
                f"datetime (e.g., datetime(..., tzinfo=timezone.utc))"
            )

    @property
    def window_start(self) -> datetime:
        """Oldest instant still excluded from the window."""
        return self.now - self.window

    def keep(self, request: ALBRequest) -> bool:
        """
        Check whether a request belongs in the report.

        Args:
            request: Parsed request

        Returns:
            True if every predicate holds
        """
        if request.user_agent == self.excluded_user_agent:
            return False

        # Malformed URLs have no hostname and never match
        hostname = request.hostname
        if hostname is None or hostname != self.hostname.lower():
            return False

        return request.timestamp > self.window_start
