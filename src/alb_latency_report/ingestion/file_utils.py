"""
Shared file utilities for ingestion module.

Provides gzip detection and line splitting for log objects fetched
from object storage or the local filesystem.
"""

import gzip
from typing import Iterator, Optional

GZIP_MAGIC = b"\x1f\x8b"


def is_gzip_payload(
    data: bytes,
    key: Optional[str] = None,
    content_encoding: Optional[str] = None,
) -> bool:
    """
    Decide whether a payload is gzip-compressed.

    Gzip detection is performed by:
    1. Checking the Content-Encoding reported by the storage provider
    2. Checking for a .gz key suffix
    3. Checking for gzip magic bytes (0x1f 0x8b) even without the above

    Args:
        data: Raw object body
        key: Object key or file name
        content_encoding: Content-Encoding metadata, if any

    Returns:
        True if the payload should be gunzipped
    """
    if content_encoding and content_encoding.lower() == "gzip":
        return True

    if key and key.lower().endswith(".gz"):
        return True

    return data[:2] == GZIP_MAGIC


def decompress_payload(
    data: bytes,
    key: Optional[str] = None,
    content_encoding: Optional[str] = None,
) -> bytes:
    """
    Return the decoded body of a log object.

    Args:
        data: Raw object body
        key: Object key or file name
        content_encoding: Content-Encoding metadata, if any

    Returns:
        Uncompressed bytes

    Raises:
        gzip.BadGzipFile: If the payload claims to be gzip but is not
    """
    if is_gzip_payload(data, key=key, content_encoding=content_encoding):
        return gzip.decompress(data)
    return data


def iter_raw_lines(data: bytes) -> Iterator[bytes]:
    """
    Split an uncompressed payload into raw lines.

    Lines are yielded without their terminator; blank lines are dropped.
    Decoding is left to the parser so invalid byte sequences can be
    sanitised per line.
    """
    for line in data.splitlines():
        if line.strip():
            yield line
