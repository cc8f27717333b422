# ==============================================================================
# Dashboard Socket Protocol
# ==============================================================================
"""
Message types exchanged with dashboards over the WebSocket.

Inbound frames are a closed union discriminated on ``type``; anything that is
not valid JSON, not an object, or carries an unknown ``type`` raises
ProtocolError. Outbound frames are always the envelope
``{"type": ..., "data": {...}, "timestamp": ...}``.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from livestats.core.models import CamelModel, EventQuery, SubscriptionFilters
from livestats.exceptions import ProtocolError

RequestId = Union[str, int, None]


# ==============================================================================
# Client -> Server
# ==============================================================================


class HeartbeatMessage(CamelModel):
    type: Literal["heartbeat"]


class SubscribeMessage(CamelModel):
    type: Literal["subscribe_to_events"]
    event_types: list[str] | None = None
    filters: SubscriptionFilters | None = None


class FocusChangeMessage(CamelModel):
    type: Literal["dashboard_focus_change"]
    focused: bool


class DetailedStatsRequest(CamelModel):
    type: Literal["request_detailed_stats"]
    filter: EventQuery = Field(default_factory=EventQuery)


class FilteredDataRequest(CamelModel):
    type: Literal["request_filtered_data"]
    filters: EventQuery = Field(default_factory=EventQuery)
    request_id: RequestId = None


class ChartDataRequest(CamelModel):
    type: Literal["request_chart_data"]
    chart_type: str | None = None
    time_range: int = Field(default=10, ge=1, le=1440)
    filters: SubscriptionFilters = Field(default_factory=SubscriptionFilters)
    request_id: RequestId = None


class SessionDetailsRequest(CamelModel):
    type: Literal["request_session_details"]
    session_id: str
    request_id: RequestId = None


class DashboardActionMessage(CamelModel):
    type: Literal["track_dashboard_action"]
    action: str
    details: dict[str, Any] = Field(default_factory=dict)


ClientMessage = Annotated[
    Union[
        HeartbeatMessage,
        SubscribeMessage,
        FocusChangeMessage,
        DetailedStatsRequest,
        FilteredDataRequest,
        ChartDataRequest,
        SessionDetailsRequest,
        DashboardActionMessage,
    ],
    Field(discriminator="type"),
]

_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)

CLIENT_MESSAGE_TYPES = frozenset(
    {
        "heartbeat",
        "subscribe_to_events",
        "dashboard_focus_change",
        "request_detailed_stats",
        "request_filtered_data",
        "request_chart_data",
        "request_session_details",
        "track_dashboard_action",
    }
)


def parse_client_message(raw: str | bytes) -> ClientMessage:
    """
    Parse one inbound frame.

    Args:
        raw: Text (or binary) frame payload

    Returns:
        The typed message

    Raises:
        ProtocolError: Invalid JSON, non-object payload, unknown type, or a
            payload that does not match its type
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError(f"Invalid message format: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError("Invalid message format: expected a JSON object")

    message_type = data.get("type")
    if not isinstance(message_type, str) or message_type not in CLIENT_MESSAGE_TYPES:
        raise ProtocolError(f"Unknown message type: {message_type}")

    try:
        return _client_message_adapter.validate_python(data)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'message'}: {err['msg']}"
            for err in e.errors()
        )
        raise ProtocolError(f"Invalid {message_type} message: {details}") from e


# ==============================================================================
# Server -> Client
# ==============================================================================


class ServerMessageType(str, Enum):
    """Every outbound message type."""

    CONNECTION_ESTABLISHED = "connection_established"
    USER_CONNECTED = "user_connected"
    USER_DISCONNECTED = "user_disconnected"
    NEW_EVENT = "new_event"
    VISITOR_UPDATE = "visitor_update"
    SESSION_ACTIVITY = "session_activity"
    STATS_UPDATE = "stats_update"
    ALERT = "alert"
    HEARTBEAT_RESPONSE = "heartbeat_response"
    SUBSCRIPTION_CONFIRMED = "subscription_confirmed"
    DETAILED_STATS_RESPONSE = "detailed_stats_response"
    FILTERED_DATA_RESPONSE = "filtered_data_response"
    CHART_DATA_RESPONSE = "chart_data_response"
    SESSION_DETAILS_RESPONSE = "session_details_response"
    DASHBOARD_ACTION_BROADCAST = "dashboard_action_broadcast"
    ERROR = "error"


class Envelope(BaseModel):
    """Wire format of every server -> client frame."""

    type: ServerMessageType
    data: dict[str, Any]
    timestamp: datetime


def encode_envelope(
    message_type: ServerMessageType, data: dict[str, Any], timestamp: datetime
) -> str:
    """Serialize an outbound message to its JSON text frame."""
    return Envelope(type=message_type, data=data, timestamp=timestamp).model_dump_json()
