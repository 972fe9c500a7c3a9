"""
Amazon S3 log source.

Lists the per-day folders the load balancer writes its access logs
to and downloads the objects, gzip-compressed or not.
"""

from .adapter import S3LogSource

__all__ = ["S3LogSource"]
