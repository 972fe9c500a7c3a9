"""Utility modules for the latency report pipeline."""

from .url_utils import extract_hostname, extract_path

__all__ = [
    "extract_hostname",
    "extract_path",
]
