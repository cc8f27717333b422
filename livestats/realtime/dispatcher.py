# ==============================================================================
# Dashboard Message Dispatcher
# ==============================================================================
"""
Routes inbound dashboard messages to registry, store and router operations.

Every inbound frame counts as activity for the sweep. Protocol errors and
handler failures are answered with an ``error`` message; the connection is
never closed because of a bad message.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from livestats.core import analytics
from livestats.core.event_store import EventStore
from livestats.core.models import Subscription, SubscriptionFilters
from livestats.core.time_buckets import Clock, utc_now
from livestats.exceptions import ProtocolError
from livestats.realtime.protocol import (
    ChartDataRequest,
    ClientMessage,
    DashboardActionMessage,
    DetailedStatsRequest,
    FilteredDataRequest,
    FocusChangeMessage,
    HeartbeatMessage,
    ServerMessageType,
    SessionDetailsRequest,
    SubscribeMessage,
    parse_client_message,
)
from livestats.realtime.registry import ConnectionRegistry
from livestats.realtime.router import BroadcastRouter

logger = logging.getLogger(__name__)

Handler = Callable[[str, Any], Awaitable[None]]

DETAILED_STATS_EVENT_LIMIT = 50
FILTERED_EVENT_LIMIT = 100
FILTERED_SESSION_LIMIT = 50


class MessageDispatcher:
    """Handles every client -> server message type."""

    def __init__(
        self,
        store: EventStore,
        registry: ConnectionRegistry,
        router: BroadcastRouter,
        clock: Clock = utc_now,
    ):
        self._store = store
        self._registry = registry
        self._router = router
        self._clock = clock

        self._handlers: dict[type, Handler] = {
            HeartbeatMessage: self._on_heartbeat,
            SubscribeMessage: self._on_subscribe,
            FocusChangeMessage: self._on_focus_change,
            DetailedStatsRequest: self._on_detailed_stats,
            FilteredDataRequest: self._on_filtered_data,
            ChartDataRequest: self._on_chart_data,
            SessionDetailsRequest: self._on_session_details,
            DashboardActionMessage: self._on_dashboard_action,
        }

    async def dispatch(self, connection_id: str, raw: str | bytes) -> None:
        """Parse one inbound frame and run its handler."""
        self._registry.record_activity(connection_id)

        try:
            message: ClientMessage = parse_client_message(raw)
        except ProtocolError as e:
            logger.warning("Bad message from %s: %s", connection_id, e)
            await self._router.send_to_one(
                connection_id, ServerMessageType.ERROR, {"message": str(e)}
            )
            return

        logger.debug("Message from %s: %s", connection_id, message.type)
        handler = self._handlers[type(message)]
        try:
            await handler(connection_id, message)
        except Exception as e:
            logger.exception("Error handling %s from %s", message.type, connection_id)
            await self._router.send_to_one(
                connection_id,
                ServerMessageType.ERROR,
                {
                    "message": f"Failed to handle {message.type}",
                    "error": str(e),
                    "requestId": getattr(message, "request_id", None),
                },
            )

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _on_heartbeat(self, connection_id: str, message: HeartbeatMessage) -> None:
        await self._router.send_to_one(
            connection_id,
            ServerMessageType.HEARTBEAT_RESPONSE,
            {"timestamp": self._clock(), "connectionId": connection_id},
        )

    async def _on_subscribe(self, connection_id: str, message: SubscribeMessage) -> None:
        now = self._clock()
        subscription = Subscription(
            event_types=message.event_types or ["all"],
            filters=message.filters or SubscriptionFilters(),
            subscribed_at=now,
        )
        self._registry.set_subscription(connection_id, subscription)
        logger.info(
            "Subscription from %s: %s %s",
            connection_id,
            subscription.event_types,
            subscription.filters.to_payload(exclude_none=True),
        )
        await self._router.send_to_one(
            connection_id,
            ServerMessageType.SUBSCRIPTION_CONFIRMED,
            {
                "eventTypes": subscription.event_types,
                "filters": subscription.filters.to_payload(exclude_none=True),
                "subscribedAt": now,
            },
        )

    async def _on_focus_change(self, connection_id: str, message: FocusChangeMessage) -> None:
        self._registry.set_focus(connection_id, message.focused)

    async def _on_detailed_stats(self, connection_id: str, message: DetailedStatsRequest) -> None:
        events = self._store.query(message.filter)[:DETAILED_STATS_EVENT_LIMIT]
        await self._router.send_to_one(
            connection_id,
            ServerMessageType.DETAILED_STATS_RESPONSE,
            {
                "filter": message.filter.to_payload(exclude_none=True),
                "events": [e.to_payload() for e in events],
                "sessions": [s.to_payload() for s in self._store.active_sessions()],
                "requestedAt": self._clock(),
            },
        )

    async def _on_filtered_data(self, connection_id: str, message: FilteredDataRequest) -> None:
        filters = message.filters
        events = self._store.query(filters)[:FILTERED_EVENT_LIMIT]
        sessions = self._store.active_sessions(country=filters.country, page=filters.page)
        await self._router.send_to_one(
            connection_id,
            ServerMessageType.FILTERED_DATA_RESPONSE,
            {
                "requestId": message.request_id,
                "filters": filters.to_payload(exclude_none=True),
                "events": [e.to_payload() for e in events],
                "sessions": [s.to_payload() for s in sessions[:FILTERED_SESSION_LIMIT]],
                "summary": self._store.summary().to_payload(),
                "generatedAt": self._clock(),
            },
        )

    async def _on_chart_data(self, connection_id: str, message: ChartDataRequest) -> None:
        metric = analytics.resolve_chart_metric(message.chart_type)
        points = self._store.time_series(
            metric,
            message.time_range,
            country=message.filters.country,
            page=message.filters.page,
        )
        await self._router.send_to_one(
            connection_id,
            ServerMessageType.CHART_DATA_RESPONSE,
            {
                "requestId": message.request_id,
                "chartType": metric.value,
                "timeRange": message.time_range,
                "chartData": [p.to_payload() for p in points],
                "generatedAt": self._clock(),
            },
        )

    async def _on_session_details(
        self, connection_id: str, message: SessionDetailsRequest
    ) -> None:
        await self._router.send_to_one(
            connection_id,
            ServerMessageType.SESSION_DETAILS_RESPONSE,
            {
                "requestId": message.request_id,
                "sessionId": message.session_id,
                "sessionDetails": analytics.session_details(self._store, message.session_id),
                "generatedAt": self._clock(),
            },
        )

    async def _on_dashboard_action(
        self, connection_id: str, message: DashboardActionMessage
    ) -> None:
        logger.info("Dashboard action from %s: %s", connection_id, message.action)
        await self._router.broadcast_to_others(
            connection_id,
            ServerMessageType.DASHBOARD_ACTION_BROADCAST,
            {
                "fromDashboard": connection_id,
                "action": message.action,
                "details": message.details,
                "timestamp": self._clock(),
            },
        )
