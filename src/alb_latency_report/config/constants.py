"""
Constants for load balancer log parsing and latency reporting.
"""

# =============================================================================
# Access Log Format
# =============================================================================

# Field order of a classic load balancer access log line.
# The request line and user agent are quoted and may contain spaces.
CLASSIC_LOG_FIELDS = (
    "protocol",
    "timestamp",
    "elb",
    "client_address",
    "backend_address",
    "request_processing_time",
    "backend_processing_time",
    "response_processing_time",
    "elb_status_code",
    "backend_status_code",
    "received_bytes",
    "sent_bytes",
    "request_line",
    "user_agent",
    "ssl_cipher",
    "ssl_protocol",
)

# Same layout with the routing target group appended
TARGET_GROUP_LOG_FIELDS = CLASSIC_LOG_FIELDS + ("target_group",)

# Placeholder used by the load balancer for empty values
EMPTY_FIELD = "-"

# =============================================================================
# Report Defaults
# =============================================================================

# Synthetic uptime checker that should never count as real traffic
HEALTH_CHECK_USER_AGENT = "PINGOMETER_BOT_(HTTPS://PINGOMETER.COM)"

# Requests slower than this (strictly greater) are reported as slow
SLOW_REQUEST_THRESHOLD_MS = 500.0

# Number of slowest requests listed in the report
TOP_SLOWEST_COUNT = 5

# Trailing window covered by one report
REPORT_WINDOW_HOURS = 24

# Date layout appended to the storage prefix, one folder per UTC day
DATE_PREFIX_FORMAT = "/%Y/%m/%d/"

DEFAULT_AWS_REGION = "us-east-1"

# Time-of-day rendering for the slowest request listing
SLOWEST_TIME_FORMAT = "%H:%M:%S %Z"
