"""
Load balancer access log line parser.

Turns one raw access log line into an ALBRequest:

1. Sanitize: invalid UTF-8 sequences are replaced, never raised
2. Tokenize: bare runs of non-space characters, or "quoted runs"
   that keep their internal spaces
3. Match the token count against the known log formats
4. Type the fields (timestamp, processing times, status codes, sizes)

Lines that do not fit a known format raise FieldCountMismatchError;
ALBLogParser turns those into skip diagnostics so one bad line never
stops a run.
"""

import logging
import math
import re
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional, Union

from dateutil import parser as date_parser

from ...config.constants import EMPTY_FIELD
from ..base import ALBRequest
from ..exceptions import FieldCountMismatchError, ParseError
from .schema import KNOWN_ARITIES, get_schema

logger = logging.getLogger(__name__)

# Either a bare token or a double-quoted token (quotes stripped, may be empty)
_TOKEN_PATTERN = re.compile(r'([^" ]+)|"([^"]*)"')

# Keep at most this many skip messages per parser for reporting
MAX_RECORDED_FAILURES = 100

RawLine = Union[str, bytes]


def sanitize_line(raw: RawLine) -> str:
    """
    Decode a raw line, replacing invalid byte sequences.

    Args:
        raw: Line as read from storage (bytes) or already decoded text

    Returns:
        Clean text without surrounding whitespace
    """
    if isinstance(raw, bytes):
        text = raw.decode("utf-8", errors="replace")
    else:
        # Lone surrogates (e.g. from surrogateescape decoding) become "?"
        text = raw.encode("utf-8", errors="replace").decode("utf-8")
    return text.strip()


def tokenize_line(line: str) -> list[str]:
    """
    Split an access log line into fields.

    Examples:
        >>> tokenize_line('a b "GET http://x/ HTTP/1.1" c')
        ['a', 'b', 'GET http://x/ HTTP/1.1', 'c']
    """
    tokens = []
    for match in _TOKEN_PATTERN.finditer(line):
        bare, quoted = match.groups()
        tokens.append(bare if bare is not None else quoted)
    return tokens


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp from the log.

    Args:
        value: Timestamp string (e.g., "2024-01-15T12:30:45.123456Z")

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        ValueError: If timestamp cannot be parsed
    """
    # Handle 'Z' suffix (UTC)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        # Fallback for edge cases
        dt = date_parser.isoparse(value)

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _to_processing_time(value: str) -> float:
    """Convert a processing time field, rejecting nan and infinities."""
    seconds = float(value)
    if not math.isfinite(seconds):
        raise ValueError(f"processing time is not finite: {value!r}")
    return seconds


def _to_optional_int(value: str) -> Optional[int]:
    """Convert a status code field, mapping the "-" placeholder to None."""
    if value == EMPTY_FIELD:
        return None
    return int(value)


def parse_line(raw: RawLine, line_number: Optional[int] = None) -> ALBRequest:
    """
    Parse a single access log line.

    Args:
        raw: Raw log line
        line_number: Position in its log object, for diagnostics

    Returns:
        Parsed ALBRequest

    Raises:
        FieldCountMismatchError: Token count matches no known log format
        ParseError: A typed field (timestamp, number) is invalid
    """
    line = sanitize_line(raw)
    tokens = tokenize_line(line)

    schema = get_schema(len(tokens))
    if schema is None:
        raise FieldCountMismatchError(
            field_count=len(tokens),
            expected_counts=KNOWN_ARITIES,
            line_number=line_number,
            line_content=line,
        )

    values = dict(zip(schema.fields, tokens))

    try:
        return ALBRequest(
            protocol=values["protocol"],
            timestamp=parse_timestamp(values["timestamp"]),
            elb=values["elb"],
            client_address=values["client_address"],
            backend_address=values["backend_address"],
            request_processing_time=_to_processing_time(
                values["request_processing_time"]
            ),
            backend_processing_time=_to_processing_time(
                values["backend_processing_time"]
            ),
            response_processing_time=_to_processing_time(
                values["response_processing_time"]
            ),
            elb_status_code=_to_optional_int(values["elb_status_code"]),
            backend_status_code=_to_optional_int(values["backend_status_code"]),
            received_bytes=int(values["received_bytes"]),
            sent_bytes=int(values["sent_bytes"]),
            request_line=values["request_line"],
            user_agent=values["user_agent"],
            ssl_cipher=values["ssl_cipher"],
            ssl_protocol=values["ssl_protocol"],
            target_group=values.get("target_group"),
        )
    except (ValueError, OverflowError) as e:
        raise ParseError(
            f"Invalid {schema.log_format.value} log field: {e}",
            line_number=line_number,
            line_content=line,
        ) from e


class ALBLogParser:
    """
    Streaming parser that skips unparseable lines.

    Keeps running counts so the caller can report how much input was
    dropped. Instances are not shared between threads; the pipeline
    creates one per log object.

    Example:
        parser = ALBLogParser(source_key="logs/2024/01/15/part-1.log")
        for request in parser.parse_lines(log_object.iter_lines()):
            accumulator.add(request)
        print(parser.parsed, parser.skipped)
    """

    def __init__(self, source_key: Optional[str] = None):
        self.source_key = source_key
        self.parsed = 0
        self.skipped = 0
        self.failures: list[ParseError] = []

    def parse_lines(self, lines: Iterable[RawLine]) -> Iterator[ALBRequest]:
        """
        Parse lines, yielding records and skipping malformed ones.

        Args:
            lines: Raw lines in file order

        Yields:
            ALBRequest for every line that parses
        """
        for line_number, raw in enumerate(lines, 1):
            try:
                request = parse_line(raw, line_number=line_number)
            except ParseError as e:
                self._record_failure(e)
                continue

            self.parsed += 1
            yield request

    def _record_failure(self, error: ParseError) -> None:
        self.skipped += 1
        if len(self.failures) < MAX_RECORDED_FAILURES:
            self.failures.append(error)

        where = f" in {self.source_key}" if self.source_key else ""
        logger.warning(
            f"Could not parse line{where}, skipping: {error.line_content}"
        )
        logger.debug(f"Parse failure detail: {error}")
