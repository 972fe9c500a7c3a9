"""
URL utility functions.

Helpers for pulling host and path out of the absolute URLs recorded
in load balancer request lines.
"""

import re
from typing import Optional
from urllib.parse import urlsplit

# Characters allowed anywhere in a URI (RFC 3986), percent escapes included
_URI_CHARACTERS = re.compile(r"[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]*")


def _split_absolute_url(url: Optional[str]):
    """Split an absolute URL, returning None when it is not well formed."""
    if not url or url == "-":
        return None

    # Unescaped characters such as {, | or " make the URL invalid
    if not _URI_CHARACTERS.fullmatch(url):
        return None

    try:
        parsed = urlsplit(url)
        # Accessing port validates the netloc (raises on garbage like ':abc')
        parsed.port
    except ValueError:
        return None

    if not parsed.scheme or not parsed.netloc:
        return None

    return parsed


def extract_hostname(url: Optional[str]) -> Optional[str]:
    """
    Extract the hostname from an absolute URL.

    Args:
        url: URL from a request line (e.g., "https://example.com:443/api")

    Returns:
        Lowercased hostname without port, or None if the URL is malformed

    Examples:
        >>> extract_hostname("https://example.com:443/api/data")
        'example.com'
        >>> extract_hostname("not a url")
        None
    """
    parsed = _split_absolute_url(url)
    if parsed is None:
        return None
    return parsed.hostname or None


def extract_path(url: Optional[str]) -> Optional[str]:
    """
    Extract the path component from an absolute URL.

    Query string and fragment are dropped. An empty path is returned
    as an empty string, mirroring what the client actually requested.

    Args:
        url: URL from a request line

    Returns:
        Path string, or None if the URL is malformed

    Examples:
        >>> extract_path("https://example.com:443/api/data?key=value")
        '/api/data'
    """
    parsed = _split_absolute_url(url)
    if parsed is None:
        return None
    return parsed.path
