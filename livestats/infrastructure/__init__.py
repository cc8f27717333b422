# ==============================================================================
# Infrastructure
# ==============================================================================
"""
Transport adapters for the ports-and-adapters architecture.

Available implementations:
- StarletteDashboardSocket: FastAPI/Starlette WebSocket dashboard socket
"""

from livestats.infrastructure.websocket import StarletteDashboardSocket

__all__ = [
    "StarletteDashboardSocket",
]
