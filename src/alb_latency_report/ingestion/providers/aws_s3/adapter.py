"""
Amazon S3 log source.

Load balancers deliver their access logs to S3 under one folder per
UTC day:

    s3://<bucket>/<prefix>/YYYY/MM/DD/<object>.log[.gz]

The source lists a day folder with list_objects_v2 (delimited, so
nested folders are not descended into) and downloads objects with
get_object, passing the Content-Encoding through so gzip bodies can
be decompressed transparently.
"""

import logging
from datetime import date
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ....config.constants import DEFAULT_AWS_REGION
from ...base import LogObject, LogSource
from ...exceptions import SourceFetchError
from ...registry import IngestionRegistry

logger = logging.getLogger(__name__)


@IngestionRegistry.register("aws_s3")
class S3LogSource(LogSource):
    """
    Log source reading access logs from an S3 bucket.

    Example:
        source = S3LogSource(
            bucket="my-elb-logs",
            path_prefix="AWSLogs/123456789012/elasticloadbalancing/us-east-1",
            aws_access_key_id="AKIA...",
            aws_secret_access_key="...",
        )
        for key in source.list_objects(date(2024, 1, 15)):
            log_object = source.fetch(key)
    """

    def __init__(
        self,
        bucket: str,
        path_prefix: str = "",
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        region_name: str = DEFAULT_AWS_REGION,
        client: Any = None,
    ):
        """
        Initialize the S3 source.

        Args:
            bucket: Bucket the load balancer writes to
            path_prefix: Key prefix in front of the date folders
            aws_access_key_id: Access key (falls back to the boto3 chain)
            aws_secret_access_key: Secret key (falls back to the boto3 chain)
            region_name: Bucket region
            client: Pre-built S3 client (mainly for tests)
        """
        super().__init__(path_prefix=path_prefix)
        self.bucket = bucket

        if client is None:
            client = boto3.client(
                "s3",
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key,
                region_name=region_name,
            )
        self._client = client

    @property
    def source_name(self) -> str:
        """Return the source name identifier."""
        return "aws_s3"

    def list_objects(self, day: date) -> list[str]:
        """
        List object keys in the day folder.

        Args:
            day: UTC day to list

        Returns:
            Object keys in S3 listing order (lexicographic)

        Raises:
            SourceFetchError: If the listing fails
        """
        prefix = self.date_prefix(day)
        logger.info(f"Listing s3://{self.bucket}/{prefix}")

        keys = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            pages = paginator.paginate(
                Bucket=self.bucket, Prefix=prefix, Delimiter="/"
            )
            for page in pages:
                for obj in page.get("Contents", []):
                    key = obj["Key"]
                    if key.endswith("/"):
                        continue
                    keys.append(key)
        except (BotoCoreError, ClientError) as e:
            raise SourceFetchError(
                f"Failed to list s3://{self.bucket}", key=prefix, reason=str(e)
            ) from e

        logger.info(f"Found {len(keys)} log objects under {prefix}")
        return keys

    def fetch(self, key: str) -> LogObject:
        """
        Download one log object.

        Args:
            key: Object key

        Returns:
            LogObject with the raw body and its Content-Encoding

        Raises:
            SourceFetchError: If the object cannot be downloaded
        """
        logger.debug(f"Fetching s3://{self.bucket}/{key}")

        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            data = response["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise SourceFetchError(
                f"Failed to fetch s3://{self.bucket}", key=key, reason=str(e)
            ) from e

        return LogObject(
            key=key,
            data=data,
            content_encoding=response.get("ContentEncoding"),
        )
