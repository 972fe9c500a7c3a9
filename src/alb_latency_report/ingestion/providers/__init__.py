"""
Storage-specific log sources.

Each subdirectory contains a source implementation for one storage
backend (aws_s3/, local/).

Sources are auto-registered when imported via the ingestion module.
"""

# Import local filesystem source (auto-registers via decorator)
from .local import LocalLogSource  # noqa: F401

# Import Amazon S3 source (auto-registers via decorator)
from .aws_s3 import S3LogSource  # noqa: F401

__all__: list[str] = [
    "LocalLogSource",
    "S3LogSource",
]
