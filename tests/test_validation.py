# ==============================================================================
# Tests for Inbound Event Validation
# ==============================================================================
"""
Unit tests for validate_event().
"""

from datetime import timezone

import pytest

from livestats.api.validation import validate_event
from livestats.core.models import EventType
from livestats.exceptions import EventValidationError


class TestValidateEvent:
    def test_minimal_event(self):
        event = validate_event({"type": "pageview", "sessionId": "s1", "page": "/home"})
        assert event.type == EventType.PAGEVIEW
        assert event.country == "Unknown"
        assert event.metadata == {}
        assert event.timestamp is None

    def test_strings_trimmed(self):
        event = validate_event({"type": "click", "sessionId": "  s1 ", "page": " /a "})
        assert event.session_id == "s1"
        assert event.page == "/a"

    def test_naive_timestamp_treated_as_utc(self):
        event = validate_event(
            {"type": "click", "sessionId": "s1", "page": "/a", "timestamp": "2024-06-12T10:00:00"}
        )
        assert event.timestamp.tzinfo == timezone.utc

    def test_missing_fields_listed(self):
        with pytest.raises(EventValidationError) as exc_info:
            validate_event({"type": "pageview"})
        assert "sessionId is required" in exc_info.value.errors
        assert "page is required" in exc_info.value.errors

    def test_unknown_type(self):
        with pytest.raises(EventValidationError) as exc_info:
            validate_event({"type": "scroll", "sessionId": "s1", "page": "/a"})
        assert exc_info.value.errors == [
            "type must be one of: pageview, click, session_end"
        ]

    def test_blank_session_rejected(self):
        with pytest.raises(EventValidationError):
            validate_event({"type": "pageview", "sessionId": "   ", "page": "/a"})

    def test_non_object_rejected(self):
        with pytest.raises(EventValidationError):
            validate_event(["not", "an", "object"])
