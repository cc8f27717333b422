# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the ports between the realtime layer and its
transports.
"""

from livestats.base.socket import DashboardSocket

__all__ = [
    "DashboardSocket",
]
