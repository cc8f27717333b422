# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared constants and helpers used across CLI command modules.

This module provides:
- ANSI color codes and status icons
- HTTP helpers (with light retry) for talking to a running server
"""

import logging
from typing import Any

import requests

from livestats.utils.config import get_settings
from livestats.utils.retry import HTTP_RETRY_EXCEPTIONS, retry_light

logger = logging.getLogger(__name__)

# Seconds before an HTTP call to the server is abandoned
REQUEST_TIMEOUT = 5


# ==============================================================================
# ANSI Colors and Icons
# ==============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"
    CIRCLE = "●"
    ARROW = "→"


C, I = Colors, Icons


# ==============================================================================
# HTTP Helpers
# ==============================================================================


def resolve_base_url(url: str | None) -> str:
    """Use ``url`` if given, else the configured server address."""
    return (url or get_settings().server.base_url).rstrip("/")


@retry_light(HTTP_RETRY_EXCEPTIONS, logger)
def api_get(base_url: str, path: str, **params: Any) -> dict[str, Any]:
    """GET a JSON document from the server, raising on HTTP errors."""
    response = requests.get(f"{base_url}{path}", params=params, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()


@retry_light(HTTP_RETRY_EXCEPTIONS, logger)
def api_post(base_url: str, path: str, body: Any) -> requests.Response:
    """POST a JSON body. The response is returned whatever its status."""
    return requests.post(f"{base_url}{path}", json=body, timeout=REQUEST_TIMEOUT)


def print_unreachable(base_url: str, error: Exception) -> None:
    print(f"\n  {C.BRIGHT_RED}{I.CROSS} Cannot reach livestats at {base_url}{C.RESET}")
    print(f"  {C.DIM}{error}{C.RESET}")
    print()
