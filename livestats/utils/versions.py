# ==============================================================================
# Version Utilities
# ==============================================================================
"""
Utilities for retrieving package versions.
"""

from importlib.metadata import PackageNotFoundError, version


def get_livestats_version() -> str:
    """
    Get the livestats package version.

    Returns:
        Version string (e.g., "0.1.0")
    """
    try:
        return version("livestats")
    except PackageNotFoundError:
        return "0.1.0"
