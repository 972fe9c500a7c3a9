"""
Ingestion layer for load balancer access logs.

Provides the log source interface (S3, local directory), the access
log parser and the request record it produces.

Usage:
    from alb_latency_report.ingestion import ALBLogParser, get_source

    source = get_source('aws_s3', bucket='my-elb-logs', path_prefix='prod')

    for key in source.list_objects(day):
        log_object = source.fetch(key)
        parser = ALBLogParser(source_key=key)
        for request in parser.parse_lines(log_object.iter_lines()):
            print(request.timestamp, request.client_ip)
"""

from .base import ALBRequest, LogObject, LogSource
from .exceptions import (
    FieldCountMismatchError,
    IngestionError,
    ParseError,
    ProviderNotFoundError,
    SourceFetchError,
)
from .file_utils import decompress_payload, is_gzip_payload, iter_raw_lines
from .parsers import ALBLogParser, parse_line, tokenize_line
from .registry import IngestionRegistry, get_source, list_sources

# Import sources to ensure they're registered
from .providers import LocalLogSource, S3LogSource  # noqa: E402

__all__ = [
    # Base classes and data models
    "ALBRequest",
    "LogObject",
    "LogSource",
    # Sources
    "LocalLogSource",
    "S3LogSource",
    # Registry functions
    "IngestionRegistry",
    "get_source",
    "list_sources",
    # Parsing
    "ALBLogParser",
    "parse_line",
    "tokenize_line",
    # Exceptions
    "IngestionError",
    "ParseError",
    "FieldCountMismatchError",
    "ProviderNotFoundError",
    "SourceFetchError",
    # File utilities
    "decompress_payload",
    "is_gzip_payload",
    "iter_raw_lines",
]
