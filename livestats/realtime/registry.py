# ==============================================================================
# Connection Registry
# ==============================================================================
"""
Registry of live dashboard connections.

Connection lifecycle: Connecting -> Open -> Closed. A connection is Open from
``register()`` (after the WebSocket handshake) until ``unregister()`` or a
``sweep()`` removes it; removal is terminal.

The registry is the only owner of the connection map. The broadcast router
reads it through ``get()`` and ``snapshot()``.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from livestats.base import DashboardSocket
from livestats.core.models import Subscription
from livestats.core.time_buckets import Clock, utc_now

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One registered dashboard connection.

    Attributes:
        connection_id: Generated id, unique within the registry
        socket: Transport handle used for sends
        connected_at: Registration time
        last_activity: Time of the latest inbound message
        focused: Dashboard tab visibility, None until reported
        last_focus_change: When focus was last reported
        subscription: Update filter, None means receive everything
    """

    connection_id: str
    socket: DashboardSocket
    connected_at: datetime
    last_activity: datetime
    focused: bool | None = None
    last_focus_change: datetime | None = None
    subscription: Subscription | None = None

    @property
    def is_open(self) -> bool:
        return self.socket.is_open

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.OPEN if self.is_open else ConnectionState.CLOSED

    def info(self) -> dict[str, Any]:
        """JSON-ready description for status endpoints."""
        return {
            "id": self.connection_id,
            "connectedAt": self.connected_at.isoformat(),
            "lastActivity": self.last_activity.isoformat(),
            "focused": bool(self.focused),
            "subscriptions": self.subscription.to_payload() if self.subscription else None,
            "state": self.state.value,
        }


class ConnectionRegistry:
    """Owned mapping from connection id to Connection."""

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._connections: dict[str, Connection] = {}

    @property
    def count(self) -> int:
        """Number of registered dashboards."""
        return len(self._connections)

    def _generate_id(self, now: datetime) -> str:
        while True:
            connection_id = f"dashboard_{int(now.timestamp() * 1000)}_{secrets.token_hex(5)[:9]}"
            if connection_id not in self._connections:
                return connection_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def register(self, socket: DashboardSocket) -> Connection:
        """
        Register a socket whose handshake has completed.

        Args:
            socket: Open dashboard socket

        Returns:
            The new Connection; the dashboard count includes it
        """
        now = self._clock()
        connection = Connection(
            connection_id=self._generate_id(now),
            socket=socket,
            connected_at=now,
            last_activity=now,
        )
        self._connections[connection.connection_id] = connection
        logger.info(
            "Dashboard connected: %s (%d total)", connection.connection_id, self.count
        )
        return connection

    def unregister(self, connection_id: str) -> Connection | None:
        """
        Remove a connection.

        Returns:
            The removed Connection, or None if it was already gone
        """
        connection = self._connections.pop(connection_id, None)
        if connection is not None:
            logger.info("Dashboard disconnected: %s (%d total)", connection_id, self.count)
        return connection

    def sweep(self, inactivity_timeout: timedelta) -> list[Connection]:
        """
        Remove connections that went quiet or whose socket is no longer open.

        Args:
            inactivity_timeout: Maximum time since the last inbound message

        Returns:
            The removed connections
        """
        cutoff = self._clock() - inactivity_timeout
        removed = []
        for connection in list(self._connections.values()):
            if connection.last_activity < cutoff or not connection.is_open:
                del self._connections[connection.connection_id]
                logger.info("Cleaning up inactive connection: %s", connection.connection_id)
                removed.append(connection)
        if removed:
            logger.info("Cleaned up %d inactive connections", len(removed))
        return removed

    # ------------------------------------------------------------------
    # Per-connection state
    # ------------------------------------------------------------------

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def record_activity(self, connection_id: str) -> bool:
        """Mark a connection as active now. Returns False if unknown."""
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        connection.last_activity = self._clock()
        return True

    def set_subscription(self, connection_id: str, subscription: Subscription | None) -> bool:
        """Replace a connection's subscription. Returns False if unknown."""
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        connection.subscription = subscription
        return True

    def set_focus(self, connection_id: str, focused: bool) -> bool:
        """Record dashboard tab visibility. Returns False if unknown."""
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        connection.focused = focused
        connection.last_focus_change = self._clock()
        return True

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def snapshot(self) -> list[Connection]:
        """Current connections as a list that later mutations do not affect."""
        return list(self._connections.values())

    def connections_info(self) -> list[dict[str, Any]]:
        return [connection.info() for connection in self._connections.values()]

    def performance_metrics(self) -> dict[str, Any]:
        """Totals across all connections; average connection time in ms."""
        now = self._clock()
        connections = self.snapshot()
        connected_ms = [(now - c.connected_at).total_seconds() * 1000 for c in connections]
        return {
            "totalConnections": len(connections),
            "activeConnections": sum(1 for c in connections if c.is_open),
            "averageConnectionTime": sum(connected_ms) / len(connected_ms) if connected_ms else 0,
            "focusedDashboards": sum(1 for c in connections if c.focused),
            "subscribedDashboards": sum(1 for c in connections if c.subscription is not None),
        }
