# ==============================================================================
# Tests for the Event Store
# ==============================================================================
"""
Unit tests for EventStore.

Tests cover:
- Timestamp assignment and FIFO trimming of the event log
- Session journeys, session_end and idle expiry
- Daily statistics and the local day rollover
- Event queries (filters, date range, ordering)
- Active session listings
- Per-minute time series for every metric
- Reset
"""

from datetime import timedelta

import pytest
from conftest import START, make_event

from livestats.core.event_store import EventStore
from livestats.core.models import ChartMetric, EventQuery, EventType, SessionSort


# ==============================================================================
# Ingestion
# ==============================================================================


class TestIngest:
    """Tests for ingest() and the bounded log."""

    def test_missing_timestamp_assigned_from_clock(self, store, clock):
        stored = store.ingest(make_event())
        assert stored.timestamp == clock.now

    def test_explicit_timestamp_kept(self, store, clock):
        earlier = clock.now - timedelta(minutes=3)
        stored = store.ingest(make_event(timestamp=earlier))
        assert stored.timestamp == earlier

    def test_log_keeps_newest_max_events(self, store, clock):
        """Storing 1001 events drops exactly the first one."""
        for n in range(1001):
            clock.advance(milliseconds=10)
            store.ingest(make_event(session_id=f"s{n}"))

        assert store.event_count == 1000
        session_ids = {e.session_id for e in store.query()}
        assert "s0" not in session_ids
        assert "s1" in session_ids
        assert "s1000" in session_ids

    def test_invalid_capacity_rejected(self):
        with pytest.raises(ValueError, match="max_events"):
            EventStore(max_events=0)


# ==============================================================================
# Sessions
# ==============================================================================


class TestSessions:
    """Tests for the session table."""

    def test_journey_lists_distinct_pages_in_first_seen_order(self, store, clock):
        for page in ["/a", "/b", "/a"]:
            clock.advance(seconds=5)
            store.ingest(make_event(session_id="s1", page=page))

        session = store.get_session("s1")
        assert session.journey == ["/a", "/b"]
        assert session.current_page == "/a"
        assert session.is_active is True

    def test_session_times_and_duration(self, store, clock):
        first = store.ingest(make_event())
        clock.advance(seconds=42)
        last = store.ingest(make_event(page="/pricing"))

        session = store.get_session("s1")
        assert session.start_time == first.timestamp
        assert session.last_activity == last.timestamp
        assert session.duration == 42

    def test_country_taken_from_first_event(self, store):
        store.ingest(make_event(country="DE"))
        store.ingest(make_event(country="FR"))
        assert store.get_session("s1").country == "DE"

    def test_session_end_deactivates(self, store):
        store.ingest(make_event())
        store.ingest(make_event(event_type=EventType.SESSION_END))

        assert store.get_session("s1").is_active is False
        assert store.summary().total_active == 0
        assert store.active_sessions() == []

    def test_idle_session_expires_after_timeout(self, store, clock):
        store.ingest(make_event(session_id="idle"))
        clock.advance(minutes=31)
        store.ingest(make_event(session_id="busy"))

        assert store.get_session("idle").is_active is False
        assert store.summary().total_active == 1

    def test_idle_session_reported_inactive_without_new_events(self, store, clock):
        store.ingest(make_event())
        clock.advance(minutes=30)
        assert store.get_session("s1").is_active is False
        assert store.active_sessions() == []

    def test_session_just_inside_timeout_stays_active(self, store, clock):
        store.ingest(make_event())
        clock.advance(minutes=29, seconds=59)
        assert store.get_session("s1").is_active is True

    def test_idle_session_reactivated_by_new_event(self, store, clock):
        store.ingest(make_event(session_id="returning"))
        clock.advance(minutes=31)
        store.ingest(make_event(session_id="other"))
        assert store.get_session("returning").is_active is False

        store.ingest(make_event(session_id="returning", page="/again"))
        assert store.get_session("returning").is_active is True
        assert store.summary().total_active == 2
        assert {s.session_id for s in store.active_sessions()} == {"returning", "other"}

    def test_ended_session_stays_inactive_after_new_event(self, store):
        store.ingest(make_event())
        store.ingest(make_event(event_type=EventType.SESSION_END))
        store.ingest(make_event(page="/late"))
        assert store.get_session("s1").is_active is False
        assert store.summary().total_active == 0

    def test_returned_sessions_are_copies(self, store):
        store.ingest(make_event())
        copy = store.get_session("s1")
        copy.journey.append("/tampered")
        assert store.get_session("s1").journey == ["/home"]

    def test_unknown_session_is_none(self, store):
        assert store.get_session("nope") is None


# ==============================================================================
# Daily Stats
# ==============================================================================


class TestSummary:
    """Tests for summary() and the daily counters."""

    def test_counts_distinct_sessions_today(self, store):
        store.ingest(make_event(session_id="a", page="/x"))
        store.ingest(make_event(session_id="a", page="/y"))
        store.ingest(make_event(session_id="b", page="/x"))

        summary = store.summary()
        assert summary.total_today == 2
        assert summary.total_active == 2
        assert summary.pages_visited == {"/x": 2, "/y": 1}

    def test_recent_events_newest_first(self, store, clock):
        for n in range(12):
            clock.advance(seconds=1)
            store.ingest(make_event(session_id=f"s{n}"))

        recent = store.summary().recent_events
        assert len(recent) == 10
        assert recent[0].session_id == "s11"

    def test_day_rollover_resets_counters(self, store, clock):
        store.ingest(make_event(session_id="yesterday"))
        clock.advance(days=1)
        store.ingest(make_event(session_id="today", page="/new"))
        clock.advance(minutes=5)
        store.ingest(make_event(session_id="today", page="/other"))
        store.ingest(make_event(session_id="later", page="/new"))

        summary = store.summary()
        assert summary.total_today == 2
        assert summary.pages_visited == {"/new": 2, "/other": 1}
        assert summary.last_reset == clock.now.astimezone().date()

    def test_evicted_events_leave_total_today(self, clock):
        store = EventStore(max_events=2, clock=clock)
        for session_id in ["a", "b", "c"]:
            store.ingest(make_event(session_id=session_id))
        assert store.summary().total_today == 2


# ==============================================================================
# Queries
# ==============================================================================


class TestQuery:
    """Tests for query()."""

    @pytest.fixture()
    def populated(self, store, clock):
        rows = [
            ("s1", "/home", EventType.PAGEVIEW, "US"),
            ("s2", "/pricing", EventType.PAGEVIEW, "DE"),
            ("s1", "/home", EventType.CLICK, "US"),
            ("s3", "/about", EventType.PAGEVIEW, "US"),
        ]
        for session_id, page, event_type, country in rows:
            clock.advance(seconds=10)
            store.ingest(make_event(session_id, page, event_type, country))
        return store

    def test_default_is_newest_first(self, populated):
        assert [e.session_id for e in populated.query()] == ["s3", "s1", "s2", "s1"]

    def test_equality_filters(self, populated):
        events = populated.query(EventQuery(country="US", type=EventType.PAGEVIEW))
        assert [e.page for e in events] == ["/about", "/home"]

    def test_date_range_is_inclusive(self, populated):
        start = START + timedelta(seconds=20)
        end = START + timedelta(seconds=30)
        events = populated.query(EventQuery(start_date=start, end_date=end))
        assert [e.session_id for e in events] == ["s1", "s2"]

    def test_ascending_sort_by_page(self, populated):
        events = populated.query(EventQuery(sort_by="page", order="asc"))
        assert [e.page for e in events] == ["/about", "/home", "/home", "/pricing"]

    def test_sort_is_stable_for_ties(self, populated):
        """Equal keys keep insertion order."""
        events = populated.query(EventQuery(sort_by="country", order="asc"))
        assert [(e.country, e.session_id) for e in events] == [
            ("DE", "s2"),
            ("US", "s1"),
            ("US", "s1"),
            ("US", "s3"),
        ]


class TestActiveSessions:
    """Tests for active_sessions()."""

    def test_filters_are_case_insensitive_substrings(self, store, clock):
        store.ingest(make_event("s1", "/Products/42", country="United States"))
        store.ingest(make_event("s2", "/blog", country="Germany"))

        assert [s.session_id for s in store.active_sessions(country="united")] == ["s1"]
        assert [s.session_id for s in store.active_sessions(page="products")] == ["s1"]

    def test_duration_bounds(self, store, clock):
        store.ingest(make_event("short"))
        store.ingest(make_event("long"))
        clock.advance(seconds=100)
        store.ingest(make_event("long", "/more"))

        assert [s.session_id for s in store.active_sessions(min_duration=50)] == ["long"]
        assert [s.session_id for s in store.active_sessions(max_duration=50)] == ["short"]

    def test_sorted_descending(self, store, clock):
        store.ingest(make_event("first"))
        clock.advance(seconds=5)
        store.ingest(make_event("second"))
        store.ingest(make_event("first", "/b"))
        store.ingest(make_event("first", "/c"))

        by_activity = store.active_sessions()
        assert [s.session_id for s in by_activity] == ["first", "second"]
        by_start = store.active_sessions(sort_by=SessionSort.START_TIME)
        assert [s.session_id for s in by_start] == ["second", "first"]
        by_journey = store.active_sessions(sort_by=SessionSort.JOURNEY_LENGTH)
        assert by_journey[0].session_id == "first"


# ==============================================================================
# Time Series
# ==============================================================================


class TestTimeSeries:
    """Tests for time_series()."""

    def test_bucket_count_and_current_minute(self, store, clock):
        store.ingest(make_event())
        points = store.time_series(ChartMetric.EVENTS, 10)
        assert len(points) == 11
        assert points[-1].value == 1
        assert sum(p.value for p in points) == 1

    def test_empty_store_still_has_all_buckets(self, store):
        points = store.time_series(ChartMetric.VISITORS, 10)
        assert len(points) == 11
        assert all(p.value == 0 for p in points)
        assert points == sorted(points, key=lambda p: p.time)

    def test_visitors_counts_distinct_sessions(self, store):
        store.ingest(make_event("a"))
        store.ingest(make_event("a", "/b"))
        store.ingest(make_event("b"))
        assert store.time_series(ChartMetric.VISITORS, 5)[-1].value == 2

    def test_pageviews_skip_clicks(self, store):
        store.ingest(make_event())
        store.ingest(make_event(event_type=EventType.CLICK))
        assert store.time_series(ChartMetric.PAGEVIEWS, 5)[-1].value == 1

    def test_events_placed_in_their_minute(self, store, clock):
        store.ingest(make_event(timestamp=clock.now - timedelta(minutes=3)))
        points = store.time_series(ChartMetric.EVENTS, 10)
        assert points[-4].value == 1
        assert points[-1].value == 0

    def test_events_older_than_window_ignored(self, store, clock):
        store.ingest(make_event(timestamp=clock.now - timedelta(minutes=30)))
        assert sum(p.value for p in store.time_series(ChartMetric.EVENTS, 10)) == 0

    def test_sessions_counted_by_start(self, store, clock):
        store.ingest(make_event("a", "/x", timestamp=clock.now - timedelta(minutes=2)))
        store.ingest(make_event("a", "/y"))
        store.ingest(make_event("b", "/z", country="DE"))

        points = store.time_series(ChartMetric.SESSIONS, 5)
        assert points[-3].value == 1
        assert points[-1].value == 1
        filtered = store.time_series(ChartMetric.SESSIONS, 5, page="/y")
        assert sum(p.value for p in filtered) == 1
        by_country = store.time_series(ChartMetric.SESSIONS, 5, country="DE")
        assert sum(p.value for p in by_country) == 1

    def test_country_filter(self, store):
        store.ingest(make_event("a", country="US"))
        store.ingest(make_event("b", country="DE"))
        assert store.time_series(ChartMetric.EVENTS, 1, country="DE")[-1].value == 1


# ==============================================================================
# Reset
# ==============================================================================


class TestReset:
    def test_reset_clears_everything(self, store):
        store.ingest(make_event())
        store.reset()

        summary = store.summary()
        assert store.event_count == 0
        assert store.session_count == 0
        assert summary.total_today == 0
        assert summary.total_active == 0
        assert summary.pages_visited == {}
        assert summary.recent_events == []
