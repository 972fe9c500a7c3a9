"""
Application settings and configuration management.

Supports loading from:
1. SOPS-encrypted YAML files (config.enc.yaml)
2. Environment variables, optionally seeded from a .env file (fallback)
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .constants import (
    DEFAULT_AWS_REGION,
    HEALTH_CHECK_USER_AGENT,
    REPORT_WINDOW_HOURS,
    SLOW_REQUEST_THRESHOLD_MS,
    TOP_SLOWEST_COUNT,
)

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """
    Raised when required settings are missing or invalid.

    Attributes:
        errors: Individual validation messages
    """

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid configuration: " + "; ".join(errors))


@dataclass
class Settings:
    """Application settings for the latency report."""

    # Log storage
    s3_bucket: str = ""
    s3_path: str = ""
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = DEFAULT_AWS_REGION

    # Application the report is about
    app_hostname: str = ""

    # Notification
    slack_webhook: str = ""

    # Report tuning
    excluded_user_agent: str = HEALTH_CHECK_USER_AGENT
    slow_threshold_ms: float = SLOW_REQUEST_THRESHOLD_MS
    top_n: int = TOP_SLOWEST_COUNT
    window_hours: int = REPORT_WINDOW_HOURS
    report_timezone: str = ""
    max_workers: int = 1

    def validate(
        self, require_storage: bool = True, require_webhook: bool = True
    ) -> list[str]:
        """
        Validate required settings are present. Returns list of errors.

        Args:
            require_storage: Check S3 location and credentials
                (not needed when replaying from a local directory)
            require_webhook: Check the Slack webhook (not needed for dry runs)
        """
        errors = []

        if not self.app_hostname:
            errors.append("APP_HOSTNAME is required")

        if require_storage:
            if not self.s3_bucket:
                errors.append("S3_BUCKET is required")
            if not self.s3_path:
                errors.append("S3_PATH is required")
            if not self.aws_access_key_id:
                errors.append("AWS_ACCESS_KEY_ID is required")
            if not self.aws_secret_access_key:
                errors.append("AWS_SECRET_ACCESS_KEY is required")

        if require_webhook and not self.slack_webhook:
            errors.append("SLACK_WEBHOOK is required")

        if self.slow_threshold_ms < 0:
            errors.append(
                f"slow_threshold_ms must be >= 0, got {self.slow_threshold_ms}"
            )
        if self.top_n < 1:
            errors.append(f"top_n must be >= 1, got {self.top_n}")
        if self.window_hours < 1:
            errors.append(f"window_hours must be >= 1, got {self.window_hours}")
        if self.max_workers < 1:
            errors.append(f"max_workers must be >= 1, got {self.max_workers}")

        return errors

    def require_valid(
        self, require_storage: bool = True, require_webhook: bool = True
    ) -> "Settings":
        """
        Fail fast on invalid configuration.

        Args:
            require_storage: See validate()
            require_webhook: See validate()

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: If validate() reports any error
        """
        errors = self.validate(
            require_storage=require_storage, require_webhook=require_webhook
        )
        if errors:
            raise ConfigurationError(errors)
        return self

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Create Settings from configuration dictionary (e.g., from SOPS)."""
        storage = config.get("storage", {})
        aws = config.get("aws", {})
        app = config.get("app", {})
        slack = config.get("slack", {})
        report = config.get("report", {})

        return cls(
            s3_bucket=storage.get("bucket", ""),
            s3_path=storage.get("path", ""),
            aws_access_key_id=aws.get("access_key_id", ""),
            aws_secret_access_key=aws.get("secret_access_key", ""),
            aws_region=aws.get("region", DEFAULT_AWS_REGION),
            app_hostname=app.get("hostname", ""),
            slack_webhook=slack.get("webhook", ""),
            excluded_user_agent=report.get(
                "excluded_user_agent", HEALTH_CHECK_USER_AGENT
            ),
            slow_threshold_ms=float(
                report.get("slow_threshold_ms", SLOW_REQUEST_THRESHOLD_MS)
            ),
            top_n=int(report.get("top_n", TOP_SLOWEST_COUNT)),
            window_hours=int(report.get("window_hours", REPORT_WINDOW_HOURS)),
            report_timezone=report.get("timezone", ""),
            max_workers=int(report.get("max_workers", 1)),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""

        def safe_int(key: str, default: int) -> int:
            """Safely parse int from env var, using default on error."""
            try:
                return int(os.environ.get(key, str(default)))
            except ValueError:
                logger.warning(f"Ignoring invalid {key}, using {default}")
                return default

        def safe_float(key: str, default: float) -> float:
            """Safely parse float from env var, using default on error."""
            try:
                return float(os.environ.get(key, str(default)))
            except ValueError:
                logger.warning(f"Ignoring invalid {key}, using {default}")
                return default

        return cls(
            s3_bucket=os.environ.get("S3_BUCKET", ""),
            s3_path=os.environ.get("S3_PATH", ""),
            aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", ""),
            aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", ""),
            aws_region=os.environ.get("AWS_REGION", DEFAULT_AWS_REGION),
            app_hostname=os.environ.get("APP_HOSTNAME", ""),
            slack_webhook=os.environ.get("SLACK_WEBHOOK", ""),
            excluded_user_agent=os.environ.get(
                "EXCLUDED_USER_AGENT", HEALTH_CHECK_USER_AGENT
            ),
            slow_threshold_ms=safe_float(
                "SLOW_THRESHOLD_MS", SLOW_REQUEST_THRESHOLD_MS
            ),
            top_n=safe_int("TOP_N", TOP_SLOWEST_COUNT),
            window_hours=safe_int("WINDOW_HOURS", REPORT_WINDOW_HOURS),
            report_timezone=os.environ.get("REPORT_TIMEZONE", ""),
            max_workers=safe_int("MAX_WORKERS", 1),
        )


# Default config file paths
DEFAULT_CONFIG_PATH = Path("config.enc.yaml")
DEFAULT_DOTENV_PATH = Path(".env")


@lru_cache
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get cached settings instance.

    Loads from SOPS-encrypted config file if available, otherwise from
    env vars (after loading a .env file in the working directory).

    Args:
        config_path: Optional path to SOPS-encrypted config file

    Returns:
        Settings instance (not yet validated, see Settings.require_valid)
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if path.exists():
        try:
            from .sops_loader import decrypt_sops_file

            config = decrypt_sops_file(path)
            return Settings.from_dict(config)
        except Exception as e:
            logger.warning(f"Failed to load SOPS config from {path}: {e}")
            logger.warning("Falling back to environment variables")

    if DEFAULT_DOTENV_PATH.exists():
        load_dotenv(DEFAULT_DOTENV_PATH)
        logger.debug(f"Loaded {DEFAULT_DOTENV_PATH}")

    return Settings.from_env()


def clear_settings_cache() -> None:
    """Clear the cached settings (useful for testing)."""
    get_settings.cache_clear()
