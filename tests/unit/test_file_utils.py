"""
Unit tests for file_utils gzip detection and line splitting.

Tests cover:
- Content-Encoding, .gz suffix and magic byte detection
- Transparent decompression of log object bodies
- BadGzipFile for corrupt gzip
"""

import gzip

import pytest

from alb_latency_report.ingestion.base import LogObject
from alb_latency_report.ingestion.file_utils import (
    decompress_payload,
    is_gzip_payload,
    iter_raw_lines,
)

PLAIN = b"line one\nline two\n"


class TestIsGzipPayload:
    """Tests for is_gzip_payload function."""

    def test_plain_payload(self):
        assert is_gzip_payload(PLAIN, key="part-1.log") is False

    def test_content_encoding(self):
        assert is_gzip_payload(PLAIN, content_encoding="GZIP") is True

    def test_gz_suffix(self):
        assert is_gzip_payload(PLAIN, key="part-1.log.gz") is True

    def test_magic_bytes_without_metadata(self):
        """Gzip bodies are recognised even without suffix or encoding."""
        assert is_gzip_payload(gzip.compress(PLAIN), key="part-1.log") is True

    def test_empty_payload(self):
        assert is_gzip_payload(b"") is False


class TestDecompressPayload:
    """Tests for decompress_payload function."""

    def test_plain_passthrough(self):
        assert decompress_payload(PLAIN, key="part-1.log") == PLAIN

    def test_gzip_body(self):
        assert decompress_payload(gzip.compress(PLAIN), key="part-1.log.gz") == PLAIN

    def test_corrupt_gzip_raises(self):
        with pytest.raises(gzip.BadGzipFile):
            decompress_payload(b"not gzip at all", key="part-1.log.gz")


class TestIterRawLines:
    """Tests for iter_raw_lines function."""

    def test_splits_and_drops_blank_lines(self):
        data = b"first\r\n\n  \nsecond\n"
        assert list(iter_raw_lines(data)) == [b"first", b"second"]

    def test_keeps_invalid_bytes_for_the_parser(self):
        assert list(iter_raw_lines(b"abc\xff\n")) == [b"abc\xff"]


class TestLogObject:
    """Tests for LogObject body handling."""

    def test_iter_lines_gzip(self):
        log_object = LogObject(key="part-1.log", data=gzip.compress(PLAIN))
        assert list(log_object.iter_lines()) == [b"line one", b"line two"]

    def test_iter_lines_plain(self):
        log_object = LogObject(key="part-1.log", data=PLAIN)
        assert list(log_object.iter_lines()) == [b"line one", b"line two"]

    def test_iter_lines_content_encoding(self):
        log_object = LogObject(
            key="part-1", data=gzip.compress(PLAIN), content_encoding="gzip"
        )
        assert list(log_object.iter_lines()) == [b"line one", b"line two"]
