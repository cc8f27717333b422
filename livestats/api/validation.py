# ==============================================================================
# Inbound Event Validation
# ==============================================================================
"""
Validation of events posted by client applications.

Malformed events are rejected here, before they reach the EventStore.
"""

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field, ValidationError

from livestats.core.models import CamelModel, EventType, VisitorEvent
from livestats.exceptions import EventValidationError


class EventIn(CamelModel):
    """Raw event body as sent by clients. Strings are trimmed."""

    model_config = ConfigDict(str_strip_whitespace=True)

    type: EventType
    session_id: str = Field(..., min_length=1)
    page: str = Field(..., min_length=1)
    country: str | None = None
    timestamp: datetime | None = None
    metadata: dict[str, Any] | None = None

    def to_event(self) -> VisitorEvent:
        return VisitorEvent(
            type=self.type,
            session_id=self.session_id,
            page=self.page,
            country=self.country or "Unknown",
            timestamp=self.timestamp,
            metadata=self.metadata or {},
        )


def _describe(error: dict[str, Any]) -> str:
    field = ".".join(str(part) for part in error["loc"]) or "event"
    if error["type"] == "missing":
        return f"{field} is required"
    if error["type"] == "enum":
        allowed = ", ".join(t.value for t in EventType)
        return f"{field} must be one of: {allowed}"
    return f"{field}: {error['msg']}"


def validate_event(data: Any) -> VisitorEvent:
    """
    Validate one inbound event body.

    Args:
        data: Decoded JSON body

    Returns:
        The validated event (timestamp may still be None)

    Raises:
        EventValidationError: With one message per problem found
    """
    try:
        return EventIn.model_validate(data).to_event()
    except ValidationError as e:
        raise EventValidationError([_describe(err) for err in e.errors()]) from e
