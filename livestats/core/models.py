# ==============================================================================
# Visitor Analytics Domain Models
# ==============================================================================
"""
Pydantic models for visitor events, sessions and aggregate statistics.

These models are used for:
- Holding the in-memory event log and session table
- Serializing payloads sent to dashboards (camelCase JSON)
- Type safety throughout the application

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


def ensure_aware(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    """Base model whose JSON form uses camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self, **kwargs: Any) -> dict[str, Any]:
        """Serialize to a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, **kwargs)


class EventType(str, Enum):
    """Visitor event types accepted from client applications."""

    PAGEVIEW = "pageview"
    CLICK = "click"
    SESSION_END = "session_end"


class VisitorEvent(CamelModel):
    """
    A single visitor behaviour event. Immutable once stored.

    Attributes:
        type: Event type (pageview, click, session_end)
        session_id: Visitor session identifier
        page: Page the event happened on
        country: Visitor country, "Unknown" when not supplied
        timestamp: When the event happened; assigned on ingest when absent
        metadata: Free-form client data, never interpreted
    """

    model_config = ConfigDict(frozen=True)

    type: EventType = Field(..., description="Event type")
    session_id: str = Field(..., description="Session identifier")
    page: str = Field(..., description="Page path")
    country: str = Field(default="Unknown", description="Visitor country")
    timestamp: datetime | None = Field(default=None, description="Event time")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Opaque client data")

    normalize_timestamp = field_validator("timestamp")(ensure_aware)


class Session(CamelModel):
    """
    Live state for one visitor session.

    The journey lists each distinct page once, in the order it was first seen.
    """

    session_id: str
    journey: list[str] = Field(default_factory=list)
    current_page: str | None = None
    start_time: datetime
    last_activity: datetime
    country: str = "Unknown"
    is_active: bool = True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration(self) -> int:
        """Whole seconds between the first and the latest event."""
        return int((self.last_activity - self.start_time).total_seconds())


class DailyStats(CamelModel):
    """Aggregate statistics, reset at each local calendar day boundary."""

    total_today: int = 0
    total_active: int = 0
    pages_visited: dict[str, int] = Field(default_factory=dict)
    last_reset: date


class StatsSummary(DailyStats):
    """Statistics snapshot plus the most recent events (newest first)."""

    recent_events: list[VisitorEvent] = Field(default_factory=list)


class EventQuery(CamelModel):
    """
    Filter and ordering options for event log queries.

    All predicates are optional equality checks; the date range is inclusive.
    """

    country: str | None = None
    page: str | None = None
    type: EventType | None = None
    session_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    sort_by: Literal["timestamp", "country", "page", "type", "sessionId"] = "timestamp"
    order: Literal["asc", "desc"] = "desc"

    normalize_dates = field_validator("start_date", "end_date")(ensure_aware)


class SessionSort(str, Enum):
    """Orderings for active session listings (always descending)."""

    LAST_ACTIVITY = "lastActivity"
    DURATION = "duration"
    START_TIME = "startTime"
    JOURNEY_LENGTH = "journeyLength"


class ChartMetric(str, Enum):
    """What a time series bucket counts."""

    VISITORS = "visitors"
    EVENTS = "events"
    PAGEVIEWS = "pageviews"
    SESSIONS = "sessions"


class TimeBucket(CamelModel):
    """One fixed-width time series bucket."""

    time: datetime = Field(..., description="Bucket start")
    value: int = Field(default=0, description="Count for the bucket")


class SubscriptionFilters(CamelModel):
    """Payload predicates a dashboard subscribes with."""

    country: str | None = None
    page: str | None = None


class Subscription(CamelModel):
    """Which update classes and payloads a dashboard wants to receive."""

    event_types: list[str] = Field(default_factory=lambda: ["all"])
    filters: SubscriptionFilters = Field(default_factory=SubscriptionFilters)
    subscribed_at: datetime | None = None

    @field_validator("event_types")
    @classmethod
    def empty_means_all(cls, value: list[str]) -> list[str]:
        return value or ["all"]


class AlertLevel(str, Enum):
    """Severity of a dashboard alert."""

    INFO = "info"
    WARNING = "warning"
    MILESTONE = "milestone"
    ERROR = "error"


class Alert(CamelModel):
    """An alert record pushed to every dashboard."""

    level: AlertLevel
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
