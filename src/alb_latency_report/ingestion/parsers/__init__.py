"""
Format parsers for load balancer access logs.

Provides the line tokenizer, the schema lookup for the known log
layouts, and a streaming parser that skips malformed lines.

Usage:
    from alb_latency_report.ingestion.parsers import ALBLogParser, parse_line

    # Parse one line (raises ParseError on malformed input)
    request = parse_line(raw_line)
    print(request.client_ip, request.backend_processing_ms)

    # Parse a whole object, skipping bad lines
    parser = ALBLogParser(source_key=log_object.key)
    for request in parser.parse_lines(log_object.iter_lines()):
        process(request)
"""

from .alb_parser import (
    ALBLogParser,
    parse_line,
    parse_timestamp,
    sanitize_line,
    tokenize_line,
)
from .schema import (
    ALB_SCHEMAS,
    CLASSIC_SCHEMA,
    KNOWN_ARITIES,
    TARGET_GROUP_SCHEMA,
    LogFormat,
    LogSchema,
    get_schema,
)

__all__ = [
    # Schema
    "ALB_SCHEMAS",
    "CLASSIC_SCHEMA",
    "TARGET_GROUP_SCHEMA",
    "KNOWN_ARITIES",
    "LogFormat",
    "LogSchema",
    "get_schema",
    # Parser
    "ALBLogParser",
    "parse_line",
    "parse_timestamp",
    "sanitize_line",
    "tokenize_line",
]
