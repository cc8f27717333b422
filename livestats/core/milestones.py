# ==============================================================================
# Milestone Detector - Pure Domain Logic
# ==============================================================================
"""
Threshold checks that turn a statistics snapshot into milestone alerts.

Each check is independent, so one evaluation may produce zero, one or several
alerts. The detector keeps no state between calls: the same snapshot always
yields the same alerts, and nothing is de-duplicated across evaluations.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from livestats.core.models import Alert, AlertLevel, DailyStats, VisitorEvent
from livestats.utils.config import MilestoneSettings


class MilestoneKind(str, Enum):
    """Kinds of milestone alert."""

    VISITOR = "visitor_milestone"
    CONCURRENT = "concurrent_milestone"
    TRAFFIC_SPIKE = "traffic_spike"


@dataclass(frozen=True)
class MilestoneThresholds:
    visitor_step: int = 100
    concurrent_threshold: int = 50
    spike_events: int = 5
    spike_window_seconds: int = 60
    spike_sample: int = 10


class MilestoneDetector:
    """Evaluates statistics against the configured milestone thresholds."""

    def __init__(self, thresholds: MilestoneThresholds | None = None):
        self.thresholds = thresholds or MilestoneThresholds()

    @classmethod
    def from_settings(cls, settings: MilestoneSettings) -> "MilestoneDetector":
        return cls(
            MilestoneThresholds(
                visitor_step=settings.visitor_step,
                concurrent_threshold=settings.concurrent_threshold,
                spike_events=settings.spike_events,
                spike_window_seconds=settings.spike_window_seconds,
                spike_sample=settings.spike_sample,
            )
        )

    def evaluate(
        self,
        stats: DailyStats,
        recent_events: Sequence[VisitorEvent],
        now: datetime,
    ) -> list[Alert]:
        """
        Check every milestone against one snapshot.

        Args:
            stats: Statistics snapshot taken after the latest ingest
            recent_events: Most recent log entries, newest first
            now: Reference time for the traffic spike window

        Returns:
            Alerts for every threshold that is met, possibly empty
        """
        t = self.thresholds
        alerts = []

        if stats.total_today > 0 and stats.total_today % t.visitor_step == 0:
            alerts.append(
                _milestone(
                    MilestoneKind.VISITOR,
                    f"{stats.total_today} visitors today!",
                    stats.total_today,
                )
            )

        if stats.total_active >= t.concurrent_threshold:
            alerts.append(
                _milestone(
                    MilestoneKind.CONCURRENT,
                    f"{stats.total_active} concurrent visitors!",
                    stats.total_active,
                )
            )

        cutoff = now - timedelta(seconds=t.spike_window_seconds)
        sample = recent_events[: t.spike_sample]
        recent_count = sum(1 for e in sample if e.timestamp is not None and e.timestamp > cutoff)
        if recent_count >= t.spike_events:
            alerts.append(
                _milestone(
                    MilestoneKind.TRAFFIC_SPIKE,
                    f"Traffic spike detected: {recent_count} events in the last minute",
                    recent_count,
                )
            )

        return alerts


def _milestone(kind: MilestoneKind, message: str, value: int) -> Alert:
    return Alert(
        level=AlertLevel.MILESTONE,
        message=message,
        details={"type": kind.value, "message": message, "value": value},
    )
