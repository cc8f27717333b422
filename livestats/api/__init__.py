# ==============================================================================
# HTTP / WebSocket API
# ==============================================================================
"""
FastAPI surface of livestats: REST endpoints, the dashboard WebSocket and the
application factory that wires them to the core services.
"""

from livestats.api.server import Services, build_services, create_app
from livestats.api.validation import validate_event

__all__ = [
    "Services",
    "build_services",
    "create_app",
    "validate_event",
]
