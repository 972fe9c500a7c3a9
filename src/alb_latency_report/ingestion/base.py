"""
Abstract base class and data models for log sources.

Provides the request record parsed from one access log line, the
log object container handed out by sources, and the interface every
storage source implements.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterator, Optional

from ..config.constants import DATE_PREFIX_FORMAT
from ..utils.url_utils import extract_hostname, extract_path
from .file_utils import decompress_payload, iter_raw_lines


@dataclass(frozen=True)
class ALBRequest:
    """
    One load balancer request, parsed from a single access log line.

    Stored fields mirror the log line; everything else is derived on
    access and never cached, so a record is an immutable value.

    Fields:
        protocol: Listener protocol (http, https, h2, ...)
        timestamp: Time the response was sent (UTC)
        elb: Load balancer identifier
        client_address: Client "ip:port"
        backend_address: Backend "ip:port", "-" if no backend answered
        request_processing_time: Seconds, -1 when not applicable
        backend_processing_time: Seconds, -1 when not applicable
        response_processing_time: Seconds, -1 when not applicable
        elb_status_code: Status returned by the load balancer
        backend_status_code: Status returned by the backend (None if "-")
        received_bytes: Request size
        sent_bytes: Response size
        request_line: "METHOD URL PROTOCOL"
        user_agent: User-Agent header
        ssl_cipher: TLS cipher ("-" for plain HTTP)
        ssl_protocol: TLS version ("-" for plain HTTP)
        target_group: Routing target group (newer log format only)
    """

    protocol: str
    timestamp: datetime
    elb: str
    client_address: str
    backend_address: str
    request_processing_time: float
    backend_processing_time: float
    response_processing_time: float
    elb_status_code: Optional[int]
    backend_status_code: Optional[int]
    received_bytes: int
    sent_bytes: int
    request_line: str
    user_agent: str
    ssl_cipher: str
    ssl_protocol: str
    target_group: Optional[str] = None

    @property
    def client_ip(self) -> str:
        """
        Client IP address without the port.

        Handles both IPv4 and IPv6 addresses:
        - IPv4: 192.0.2.100:54321 -> 192.0.2.100
        - IPv6: [2001:db8::1]:54321 -> 2001:db8::1
        """
        address = self.client_address
        if address.startswith("["):
            bracket_end = address.find("]")
            if bracket_end != -1:
                return address[1:bracket_end]
        return address.rsplit(":", 1)[0]

    @property
    def backend_processing_ms(self) -> float:
        """Backend processing time in milliseconds."""
        return self.backend_processing_time * 1000

    @property
    def request_method(self) -> Optional[str]:
        parts = self.request_line.split(" ")
        return parts[0] or None

    @property
    def url(self) -> Optional[str]:
        parts = self.request_line.split(" ")
        if len(parts) < 2:
            return None
        return parts[1]

    @property
    def hostname(self) -> Optional[str]:
        """Host of the requested URL, None if the URL is malformed."""
        return extract_hostname(self.url)

    @property
    def path(self) -> Optional[str]:
        """Path of the requested URL, None if the URL is malformed."""
        return extract_path(self.url)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary representation.

        Returns:
            Dictionary with stored and derived fields
        """
        return {
            "protocol": self.protocol,
            "timestamp": self.timestamp.isoformat(),
            "elb": self.elb,
            "client_address": self.client_address,
            "backend_address": self.backend_address,
            "request_processing_time": self.request_processing_time,
            "backend_processing_time": self.backend_processing_time,
            "response_processing_time": self.response_processing_time,
            "elb_status_code": self.elb_status_code,
            "backend_status_code": self.backend_status_code,
            "received_bytes": self.received_bytes,
            "sent_bytes": self.sent_bytes,
            "request_line": self.request_line,
            "user_agent": self.user_agent,
            "ssl_cipher": self.ssl_cipher,
            "ssl_protocol": self.ssl_protocol,
            "target_group": self.target_group,
            "client_ip": self.client_ip,
            "backend_processing_ms": self.backend_processing_ms,
            "request_method": self.request_method,
            "hostname": self.hostname,
            "path": self.path,
        }


@dataclass
class LogObject:
    """
    A single log object as returned by a source.

    Attributes:
        key: Object key (or relative file path)
        data: Raw body, possibly gzip-compressed
        content_encoding: Content-Encoding metadata reported by storage
    """

    key: str
    data: bytes
    content_encoding: Optional[str] = None

    def iter_lines(self) -> Iterator[bytes]:
        """
        Yield raw log lines from the (decompressed) body.

        Raises:
            gzip.BadGzipFile: If the body is flagged as gzip but corrupt
        """
        body = decompress_payload(
            self.data, key=self.key, content_encoding=self.content_encoding
        )
        yield from iter_raw_lines(body)


class LogSource(ABC):
    """
    Abstract base class for all log sources.

    Each storage backend implements this interface to enumerate the
    log objects written for a given UTC day and to retrieve them.

    Subclasses must implement:
        - source_name: Property returning the source identifier
        - list_objects(): Keys stored under the date prefix
        - fetch(): Retrieve one object

    Example Implementation:
        @IngestionRegistry.register('aws_s3')
        class S3LogSource(LogSource):
            @property
            def source_name(self) -> str:
                return 'aws_s3'

            def list_objects(self, day):
                return [obj['Key'] for obj in self._list(self.date_prefix(day))]

            def fetch(self, key):
                return LogObject(key=key, data=self._get(key))
    """

    def __init__(self, path_prefix: str = ""):
        """
        Initialize the source.

        Args:
            path_prefix: Prefix the date folders live under (e.g. "AWSLogs/123/elb")
        """
        self.path_prefix = path_prefix.rstrip("/")

    @property
    @abstractmethod
    def source_name(self) -> str:
        """
        Return the source name identifier.

        This is used for registry lookup and logging.
        """
        pass

    @abstractmethod
    def list_objects(self, day: date) -> list[str]:
        """
        List object keys stored for one UTC day.

        Args:
            day: Day whose folder is listed

        Returns:
            Object keys in listing order

        Raises:
            SourceFetchError: If the listing fails
        """
        pass

    @abstractmethod
    def fetch(self, key: str) -> LogObject:
        """
        Retrieve a single log object.

        Args:
            key: Object key from list_objects()

        Returns:
            LogObject with the raw body

        Raises:
            SourceFetchError: If the object cannot be read
        """
        pass

    def date_prefix(self, day: date) -> str:
        """
        Build the listing prefix for a day.

        Example:
            >>> source.path_prefix = "logs/app"
            >>> source.date_prefix(date(2024, 1, 15))
            'logs/app/2024/01/15/'
        """
        day_folder = day.strftime(DATE_PREFIX_FORMAT)
        if not self.path_prefix:
            return day_folder.lstrip("/")
        return self.path_prefix + day_folder
