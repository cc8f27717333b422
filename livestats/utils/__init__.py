# ==============================================================================
# livestats Utilities
# ==============================================================================
"""
Shared utilities: configuration loading, HTTP retry policy and version lookup.
"""

from livestats.utils.config import (
    MilestoneSettings,
    RealtimeSettings,
    ServerSettings,
    Settings,
    StoreSettings,
    get_settings,
)
from livestats.utils.retry import HTTP_RETRY_EXCEPTIONS, retry_light
from livestats.utils.versions import get_livestats_version

__all__ = [
    # Config
    "MilestoneSettings",
    "RealtimeSettings",
    "ServerSettings",
    "Settings",
    "StoreSettings",
    "get_settings",
    # Retry
    "HTTP_RETRY_EXCEPTIONS",
    "retry_light",
    # Versions
    "get_livestats_version",
]
