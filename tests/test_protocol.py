# ==============================================================================
# Tests for the Dashboard Socket Protocol
# ==============================================================================
"""
Unit tests for inbound message parsing and the outbound envelope.
"""

import json

import pytest
from conftest import START

from livestats.exceptions import ProtocolError
from livestats.realtime.protocol import (
    ChartDataRequest,
    FilteredDataRequest,
    HeartbeatMessage,
    ServerMessageType,
    SubscribeMessage,
    encode_envelope,
    parse_client_message,
)


class TestParseClientMessage:
    def test_heartbeat(self):
        assert isinstance(parse_client_message('{"type": "heartbeat"}'), HeartbeatMessage)

    def test_subscribe_with_filters(self):
        message = parse_client_message(
            json.dumps(
                {
                    "type": "subscribe_to_events",
                    "eventTypes": ["new_event"],
                    "filters": {"country": "US"},
                }
            )
        )
        assert isinstance(message, SubscribeMessage)
        assert message.event_types == ["new_event"]
        assert message.filters.country == "US"

    def test_chart_request_defaults(self):
        message = parse_client_message('{"type": "request_chart_data"}')
        assert isinstance(message, ChartDataRequest)
        assert message.time_range == 10
        assert message.chart_type is None

    def test_filtered_request_uses_event_query(self):
        message = parse_client_message(
            '{"type": "request_filtered_data", "filters": {"type": "click"}, "requestId": 7}'
        )
        assert isinstance(message, FilteredDataRequest)
        assert message.filters.type.value == "click"
        assert message.request_id == 7

    def test_bytes_accepted(self):
        assert isinstance(parse_client_message(b'{"type": "heartbeat"}'), HeartbeatMessage)

    def test_invalid_json(self):
        with pytest.raises(ProtocolError, match="Invalid message format"):
            parse_client_message("{not json")

    def test_non_object(self):
        with pytest.raises(ProtocolError, match="expected a JSON object"):
            parse_client_message("[1, 2]")

    def test_unknown_type_is_named(self):
        with pytest.raises(ProtocolError, match="Unknown message type: launch_rockets"):
            parse_client_message('{"type": "launch_rockets"}')

    def test_missing_type(self):
        with pytest.raises(ProtocolError, match="Unknown message type: None"):
            parse_client_message("{}")

    def test_invalid_payload_for_known_type(self):
        with pytest.raises(ProtocolError, match="Invalid request_chart_data message"):
            parse_client_message('{"type": "request_chart_data", "timeRange": 5000}')


class TestEncodeEnvelope:
    def test_envelope_fields(self):
        text = encode_envelope(ServerMessageType.HEARTBEAT_RESPONSE, {"at": START}, START)
        payload = json.loads(text)
        assert payload["type"] == "heartbeat_response"
        assert payload["data"]["at"].startswith("2024-06-12T12:00:30")
        assert payload["timestamp"].startswith("2024-06-12T12:00:30")
