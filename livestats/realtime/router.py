# ==============================================================================
# Broadcast Router
# ==============================================================================
"""
Decides which dashboards receive which updates, and delivers them.

Fan-outs iterate a snapshot of the registry, so connections that open or
close while a broadcast is suspended on a send neither break the loop nor
receive a half-finished broadcast. A failed send to one socket is logged and
counted; every other recipient still gets the message.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from livestats.core.event_store import EventStore
from livestats.core.milestones import MilestoneDetector
from livestats.core.models import Alert, AlertLevel, Session, Subscription, VisitorEvent
from livestats.core.time_buckets import Clock, utc_now
from livestats.exceptions import DeliveryFailure
from livestats.realtime.protocol import ServerMessageType, encode_envelope
from livestats.realtime.registry import Connection, ConnectionRegistry

logger = logging.getLogger(__name__)


@dataclass
class FanoutResult:
    """Outcome of one broadcast."""

    sent: int = 0
    failed: int = 0
    skipped: int = 0


def subscription_accepts(
    subscription: Subscription | None,
    update_type: str,
    country: str | None,
    page: str | None,
) -> bool:
    """
    Apply a dashboard's subscription to one update.

    Accepts when there is no subscription. Otherwise the update class must be
    subscribed (or ``all``), a country filter must equal the payload's
    country, and a page filter must be a substring of the payload's page.
    """
    if subscription is None:
        return True

    event_types = subscription.event_types
    if "all" not in event_types and update_type not in event_types:
        return False

    filters = subscription.filters
    if filters.country and filters.country != country:
        return False
    if filters.page and (not page or filters.page not in page):
        return False
    return True


class BroadcastRouter:
    """
    Per-connection delivery of store updates, alerts and replies.

    Args:
        store: Event store queried for summaries and sessions
        registry: Connection registry; only read, except for disconnects
        detector: Milestone detector run after every new event
        clock: Callable returning the current timezone-aware time
        connection_timeout: Idle time after which ``sweep_inactive`` drops a
            dashboard
    """

    def __init__(
        self,
        store: EventStore,
        registry: ConnectionRegistry,
        detector: MilestoneDetector | None = None,
        clock: Clock = utc_now,
        connection_timeout: timedelta = timedelta(minutes=5),
    ):
        self._store = store
        self._registry = registry
        self._detector = detector or MilestoneDetector()
        self._clock = clock
        self._connection_timeout = connection_timeout

        self._sent_total = 0
        self._failed_total = 0

    @property
    def delivery_stats(self) -> dict[str, int]:
        """Cumulative sends and delivery failures."""
        return {"sent": self._sent_total, "failed": self._failed_total}

    # ------------------------------------------------------------------
    # Delivery primitives
    # ------------------------------------------------------------------

    async def _deliver(self, connection: Connection, text: str) -> None:
        try:
            await connection.socket.send_text(text)
        except Exception as e:
            raise DeliveryFailure(connection.connection_id, e) from e

    async def send_to_one(
        self, connection_id: str, message_type: ServerMessageType, data: dict[str, Any]
    ) -> bool:
        """
        Unicast one message.

        Returns:
            True if sent; False if the connection is unknown, closed, or the
            send failed
        """
        connection = self._registry.get(connection_id)
        if connection is None or not connection.is_open:
            return False

        text = encode_envelope(message_type, data, self._clock())
        try:
            await self._deliver(connection, text)
        except DeliveryFailure as e:
            logger.warning("%s", e)
            self._failed_total += 1
            return False
        self._sent_total += 1
        return True

    async def _fanout(
        self,
        message_type: ServerMessageType,
        data: dict[str, Any],
        accept: Callable[[Connection], bool] | None = None,
    ) -> FanoutResult:
        text = encode_envelope(message_type, data, self._clock())
        result = FanoutResult()

        for connection in self._registry.snapshot():
            if accept is not None and not accept(connection):
                result.skipped += 1
                continue
            if not connection.is_open:
                result.failed += 1
                continue
            try:
                await self._deliver(connection, text)
            except DeliveryFailure as e:
                logger.warning("%s", e)
                result.failed += 1
            else:
                result.sent += 1

        if result.failed:
            logger.warning(
                "Failed to send %s to %d connections, sent to %d",
                message_type.value,
                result.failed,
                result.sent,
            )
        self._sent_total += result.sent
        self._failed_total += result.failed
        return result

    async def broadcast_to_all(
        self, message_type: ServerMessageType, data: dict[str, Any]
    ) -> FanoutResult:
        return await self._fanout(message_type, data)

    async def broadcast_to_others(
        self, exclude_id: str, message_type: ServerMessageType, data: dict[str, Any]
    ) -> FanoutResult:
        return await self._fanout(
            message_type, data, accept=lambda c: c.connection_id != exclude_id
        )

    async def _broadcast_filtered(
        self,
        message_type: ServerMessageType,
        data: dict[str, Any],
        country: str | None,
        page: str | None,
    ) -> FanoutResult:
        return await self._fanout(
            message_type,
            data,
            accept=lambda c: subscription_accepts(
                c.subscription, message_type.value, country, page
            ),
        )

    # ------------------------------------------------------------------
    # Store updates
    # ------------------------------------------------------------------

    async def on_new_event(self, event: VisitorEvent) -> FanoutResult:
        """Deliver a freshly ingested event, then run milestone detection."""
        result = await self._broadcast_filtered(
            ServerMessageType.NEW_EVENT,
            {"event": event.to_payload(), "timestamp": self._clock()},
            event.country,
            event.page,
        )
        await self.check_milestones()
        return result

    async def on_visitor_update(self, event: VisitorEvent | dict[str, Any]) -> FanoutResult:
        """
        Deliver the consolidated "visitor changed" update.

        Args:
            event: The triggering event, or a plain payload such as a bulk
                update marker
        """
        if isinstance(event, VisitorEvent):
            payload, country, page = event.to_payload(), event.country, event.page
        else:
            payload, country, page = event, event.get("country"), event.get("page")

        data = {
            "event": payload,
            "stats": self._store.summary().to_payload(),
            "activeSessions": [s.to_payload() for s in self._store.active_sessions()],
            "timestamp": self._clock(),
        }
        return await self._broadcast_filtered(
            ServerMessageType.VISITOR_UPDATE, data, country, page
        )

    async def on_session_activity(self, session: Session) -> FanoutResult:
        data = session.to_payload()
        data["timestamp"] = self._clock()
        return await self._broadcast_filtered(
            ServerMessageType.SESSION_ACTIVITY, data, session.country, session.current_page
        )

    async def broadcast_stats_update(self) -> FanoutResult:
        return await self.broadcast_to_all(
            ServerMessageType.STATS_UPDATE,
            {"stats": self._store.summary().to_payload(), "timestamp": self._clock()},
        )

    async def broadcast_alert(
        self, level: AlertLevel, message: str, details: dict[str, Any] | None = None
    ) -> FanoutResult:
        return await self.broadcast_to_all(
            ServerMessageType.ALERT,
            {
                "level": AlertLevel(level).value,
                "message": message,
                "details": details or {},
                "timestamp": self._clock(),
            },
        )

    async def check_milestones(self) -> list[Alert]:
        """Evaluate milestones on a fresh summary and broadcast each alert."""
        summary = self._store.summary()
        recent = self._store.query()[: self._detector.thresholds.spike_sample]
        alerts = self._detector.evaluate(summary, recent, self._clock())
        for alert in alerts:
            logger.info("Milestone reached: %s", alert.message)
            await self.broadcast_alert(alert.level, alert.message, alert.details)
        return alerts

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def announce_connection(self, connection: Connection) -> None:
        """Welcome a new dashboard and tell the others it joined."""
        now = self._clock()
        await self.send_to_one(
            connection.connection_id,
            ServerMessageType.CONNECTION_ESTABLISHED,
            {
                "connectionId": connection.connection_id,
                "totalDashboards": self._registry.count,
                "connectedAt": connection.connected_at,
                "initialData": self._store.summary().to_payload(),
            },
        )
        await self.broadcast_to_others(
            connection.connection_id,
            ServerMessageType.USER_CONNECTED,
            {"totalDashboards": self._registry.count, "connectedAt": now},
        )

    async def announce_disconnect(self, connection_id: str) -> bool:
        """
        Unregister a dashboard and tell the remaining ones.

        Returns:
            False if the connection had already been removed (e.g. swept)
        """
        if self._registry.unregister(connection_id) is None:
            return False
        await self.broadcast_to_all(
            ServerMessageType.USER_DISCONNECTED,
            {"totalDashboards": self._registry.count, "disconnectedAt": self._clock()},
        )
        return True

    async def sweep_inactive(self) -> list[Connection]:
        """Drop idle or closed dashboards, close their sockets, notify the rest."""
        removed = self._registry.sweep(self._connection_timeout)
        for connection in removed:
            if not connection.is_open:
                continue
            try:
                await connection.socket.close(code=1001)
            except Exception as e:
                logger.debug("Closing swept connection %s failed: %s", connection.connection_id, e)

        if removed:
            await self.broadcast_to_all(
                ServerMessageType.USER_DISCONNECTED,
                {
                    "totalDashboards": self._registry.count,
                    "cleanedUp": len(removed),
                    "disconnectedAt": self._clock(),
                },
            )
        return removed
