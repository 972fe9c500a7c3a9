"""
Local filesystem log source.

Reads access logs that were synced to disk with the same layout the
load balancer uses in S3 (one folder per UTC day), which makes it
possible to replay a report offline:

    <root>/<prefix>/YYYY/MM/DD/<file>.log[.gz]
"""

import logging
from datetime import date
from pathlib import Path
from typing import Union

from ...base import LogObject, LogSource
from ...exceptions import SourceFetchError
from ...registry import IngestionRegistry

logger = logging.getLogger(__name__)


@IngestionRegistry.register("local")
class LocalLogSource(LogSource):
    """
    Log source reading access logs from a local directory tree.

    Keys are paths relative to the root directory, so they look the
    same as the S3 keys the files were downloaded from.

    Example:
        source = LocalLogSource(root_dir="data/elb-logs", path_prefix="prod")
        keys = source.list_objects(date(2024, 1, 15))
    """

    def __init__(self, root_dir: Union[str, Path], path_prefix: str = ""):
        """
        Initialize the local source.

        Args:
            root_dir: Directory acting as the bucket root
            path_prefix: Prefix in front of the date folders
        """
        super().__init__(path_prefix=path_prefix)
        self.root_dir = Path(root_dir)

    @property
    def source_name(self) -> str:
        """Return the source name identifier."""
        return "local"

    def list_objects(self, day: date) -> list[str]:
        """
        List files directly inside the day folder.

        A missing day folder is not an error; it simply has no logs.

        Raises:
            SourceFetchError: If the folder exists but cannot be read
        """
        prefix = self.date_prefix(day)
        day_dir = self.root_dir / prefix

        if not day_dir.is_dir():
            logger.info(f"No log folder for {day.isoformat()}: {day_dir}")
            return []

        try:
            files = sorted(path for path in day_dir.iterdir() if path.is_file())
        except OSError as e:
            raise SourceFetchError(
                f"Failed to list {day_dir}", key=prefix, reason=str(e)
            ) from e

        keys = [path.relative_to(self.root_dir).as_posix() for path in files]
        logger.info(f"Found {len(keys)} log files under {day_dir}")
        return keys

    def fetch(self, key: str) -> LogObject:
        """
        Read one log file.

        Raises:
            SourceFetchError: If the file cannot be read
        """
        path = self.root_dir / key
        try:
            data = path.read_bytes()
        except OSError as e:
            raise SourceFetchError(
                f"Failed to read {path}", key=key, reason=str(e)
            ) from e

        return LogObject(key=key, data=data)
