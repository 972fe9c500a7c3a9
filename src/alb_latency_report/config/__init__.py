"""Configuration module."""

from .constants import (
    HEALTH_CHECK_USER_AGENT,
    REPORT_WINDOW_HOURS,
    SLOW_REQUEST_THRESHOLD_MS,
    TOP_SLOWEST_COUNT,
)
from .settings import ConfigurationError, Settings, clear_settings_cache, get_settings
from .sops_loader import check_sops_installed, decrypt_sops_file

__all__ = [
    # Report defaults
    "HEALTH_CHECK_USER_AGENT",
    "REPORT_WINDOW_HOURS",
    "SLOW_REQUEST_THRESHOLD_MS",
    "TOP_SLOWEST_COUNT",
    # Settings
    "ConfigurationError",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Config loading
    "decrypt_sops_file",
    "check_sops_installed",
]
