# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure domain logic with no network or framework dependencies.

This module contains:
- Domain models (VisitorEvent, Session, StatsSummary, ...)
- The in-memory EventStore (event log, sessions, daily stats, time series)
- Milestone detection

All code here is synchronous and easily unit-testable.
"""

from livestats.core.event_store import EventStore
from livestats.core.milestones import MilestoneDetector, MilestoneKind, MilestoneThresholds
from livestats.core.models import (
    Alert,
    AlertLevel,
    ChartMetric,
    DailyStats,
    EventQuery,
    EventType,
    Session,
    SessionSort,
    StatsSummary,
    Subscription,
    SubscriptionFilters,
    TimeBucket,
    VisitorEvent,
)

__all__ = [
    "Alert",
    "AlertLevel",
    "ChartMetric",
    "DailyStats",
    "EventQuery",
    "EventStore",
    "EventType",
    "MilestoneDetector",
    "MilestoneKind",
    "MilestoneThresholds",
    "Session",
    "SessionSort",
    "StatsSummary",
    "Subscription",
    "SubscriptionFilters",
    "TimeBucket",
    "VisitorEvent",
]
