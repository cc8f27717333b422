# ==============================================================================
# Realtime Dashboard Layer
# ==============================================================================
"""
Live dashboard connections and update fan-out.

This module contains:
- ConnectionRegistry: live dashboard sockets and their lifecycle
- BroadcastRouter: per-connection delivery and milestone alerts
- MessageDispatcher: handling of client -> server messages
- PeriodicTask: fixed-period jobs such as the inactive connection sweep
"""

from livestats.realtime.dispatcher import MessageDispatcher
from livestats.realtime.protocol import ServerMessageType, parse_client_message
from livestats.realtime.registry import Connection, ConnectionRegistry, ConnectionState
from livestats.realtime.router import BroadcastRouter, FanoutResult, subscription_accepts
from livestats.realtime.scheduler import PeriodicTask

__all__ = [
    "BroadcastRouter",
    "Connection",
    "ConnectionRegistry",
    "ConnectionState",
    "FanoutResult",
    "MessageDispatcher",
    "PeriodicTask",
    "ServerMessageType",
    "parse_client_message",
    "subscription_accepts",
]
