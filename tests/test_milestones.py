# ==============================================================================
# Tests for Milestone Detection
# ==============================================================================
"""
Unit tests for MilestoneDetector.

Tests cover:
- Visitor milestones on exact multiples only
- Concurrent visitor threshold
- Traffic spike over the recent sample
- Several alerts from one evaluation
"""

from datetime import date, timedelta

from conftest import START, make_event

from livestats.core.milestones import MilestoneDetector, MilestoneKind, MilestoneThresholds
from livestats.core.models import AlertLevel, DailyStats
from livestats.utils.config import MilestoneSettings


def _stats(total_today: int = 0, total_active: int = 0) -> DailyStats:
    return DailyStats(
        total_today=total_today, total_active=total_active, last_reset=date(2024, 6, 12)
    )


def _kinds(alerts) -> list[str]:
    return [a.details["type"] for a in alerts]


class TestVisitorMilestone:
    def test_fires_on_exact_multiple(self):
        alerts = MilestoneDetector().evaluate(_stats(total_today=100), [], START)
        assert _kinds(alerts) == [MilestoneKind.VISITOR.value]
        alert = alerts[0]
        assert alert.level == AlertLevel.MILESTONE
        assert alert.message == "100 visitors today!"
        assert alert.details["value"] == 100

    def test_silent_between_multiples(self):
        detector = MilestoneDetector()
        assert detector.evaluate(_stats(total_today=101), [], START) == []
        assert detector.evaluate(_stats(total_today=99), [], START) == []

    def test_zero_visitors_is_not_a_milestone(self):
        assert MilestoneDetector().evaluate(_stats(), [], START) == []


class TestConcurrentMilestone:
    def test_fires_at_threshold(self):
        alerts = MilestoneDetector().evaluate(_stats(total_today=7, total_active=50), [], START)
        assert _kinds(alerts) == [MilestoneKind.CONCURRENT.value]
        assert alerts[0].message == "50 concurrent visitors!"

    def test_below_threshold(self):
        assert MilestoneDetector().evaluate(_stats(total_today=7, total_active=49), [], START) == []


class TestTrafficSpike:
    def test_five_recent_events_is_a_spike(self):
        events = [make_event(timestamp=START - timedelta(seconds=n)) for n in range(5)]
        alerts = MilestoneDetector().evaluate(_stats(total_today=3), events, START)
        assert _kinds(alerts) == [MilestoneKind.TRAFFIC_SPIKE.value]
        assert alerts[0].details["value"] == 5
        assert "5 events in the last minute" in alerts[0].message

    def test_old_events_do_not_count(self):
        events = [make_event(timestamp=START - timedelta(seconds=n)) for n in range(4)]
        events += [make_event(timestamp=START - timedelta(minutes=2)) for _ in range(6)]
        assert MilestoneDetector().evaluate(_stats(total_today=3), events, START) == []

    def test_only_sample_is_inspected(self):
        thresholds = MilestoneThresholds(spike_events=3, spike_sample=2)
        events = [make_event(timestamp=START) for _ in range(5)]
        assert MilestoneDetector(thresholds).evaluate(_stats(total_today=3), events, START) == []


class TestCombined:
    def test_several_alerts_from_one_snapshot(self):
        events = [make_event(timestamp=START) for _ in range(10)]
        alerts = MilestoneDetector().evaluate(
            _stats(total_today=200, total_active=60), events, START
        )
        assert _kinds(alerts) == [
            MilestoneKind.VISITOR.value,
            MilestoneKind.CONCURRENT.value,
            MilestoneKind.TRAFFIC_SPIKE.value,
        ]

    def test_thresholds_from_settings(self):
        detector = MilestoneDetector.from_settings(
            MilestoneSettings(visitor_step=10, concurrent_threshold=2)
        )
        alerts = detector.evaluate(_stats(total_today=20, total_active=2), [], START)
        assert _kinds(alerts) == [MilestoneKind.VISITOR.value, MilestoneKind.CONCURRENT.value]
