# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for livestats.

Commands are organized into separate modules:
- shared.py: Colors, icons and HTTP helpers
- serve.py: Run the server
- config.py: Show configuration
- status.py: Live activity of a running server
- events.py: Send single or simulated events
"""

from livestats.cli.shared import (
    # Classes
    Colors,
    Icons,
    # Aliases
    C,
    I,
    # HTTP helpers
    api_get,
    api_post,
    resolve_base_url,
)

__all__ = [
    "Colors",
    "Icons",
    "C",
    "I",
    "api_get",
    "api_post",
    "resolve_base_url",
]
