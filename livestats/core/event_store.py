# ==============================================================================
# Event Store
# ==============================================================================
"""
In-memory event log, session table and daily statistics.

The store is a plain object constructed once at startup and handed to the
HTTP layer and the broadcast router. All methods are synchronous and
complete within one event-loop step, so callers never observe a partially
applied ingest or reset.

Invariants after every ``ingest``:
- the event log holds at most ``max_events`` entries (oldest dropped first)
- each session's journey lists distinct pages in first-seen order
- ``total_active`` reflects the session table, with idle sessions expired
- ``total_today`` and ``pages_visited`` belong to the current local day
"""

import logging
from collections import defaultdict, deque
from datetime import datetime, timedelta

from livestats.core.models import (
    ChartMetric,
    DailyStats,
    EventQuery,
    EventType,
    Session,
    SessionSort,
    StatsSummary,
    TimeBucket,
    VisitorEvent,
)
from livestats.core.time_buckets import (
    Clock,
    bucket_index,
    bucket_starts,
    local_day,
    utc_now,
)
from livestats.utils.config import StoreSettings

logger = logging.getLogger(__name__)

_EVENT_SORT_KEYS = {
    "timestamp": lambda e: e.timestamp,
    "country": lambda e: e.country or "",
    "page": lambda e: e.page or "",
    "type": lambda e: e.type.value,
    "sessionId": lambda e: e.session_id or "",
}

_SESSION_SORT_KEYS = {
    SessionSort.LAST_ACTIVITY: lambda s: s.last_activity,
    SessionSort.DURATION: lambda s: s.duration,
    SessionSort.START_TIME: lambda s: s.start_time,
    SessionSort.JOURNEY_LENGTH: lambda s: len(s.journey),
}


def _matches(event: VisitorEvent, query: EventQuery) -> bool:
    """Check an event against the equality predicates and date range."""
    if query.country and event.country != query.country:
        return False
    if query.page and event.page != query.page:
        return False
    if query.type and event.type != query.type:
        return False
    if query.session_id and event.session_id != query.session_id:
        return False
    if query.start_date and event.timestamp < query.start_date:
        return False
    if query.end_date and event.timestamp > query.end_date:
        return False
    return True


def _session_mentions(session: Session, page: str) -> bool:
    """Case-insensitive substring match on the journey or current page."""
    needle = page.lower()
    if any(needle in visited.lower() for visited in session.journey):
        return True
    return bool(session.current_page) and needle in session.current_page.lower()


class EventStore:
    """
    Owner of the bounded event log, the session table and daily stats.

    Sessions are never evicted; they are only dropped by ``reset()``.
    Activity is recomputed lazily whenever a session is read or updated: a
    session is active until it sends session_end or goes idle, and a fresh
    event brings an idle session back.
    """

    def __init__(
        self,
        max_events: int = 1000,
        session_timeout_minutes: int = 30,
        recent_events: int = 10,
        clock: Clock = utc_now,
    ):
        """
        Initialize an empty store.

        Args:
            max_events: Event log capacity; older events are dropped first
            session_timeout_minutes: Idle time after which a session is inactive
            recent_events: Number of events included in ``summary()``
            clock: Callable returning the current timezone-aware time
        """
        if max_events <= 0:
            raise ValueError(f"max_events must be positive, got {max_events}")

        self._max_events = max_events
        self._session_timeout = timedelta(minutes=session_timeout_minutes)
        self._recent_events = recent_events
        self._clock = clock

        self._events: deque[VisitorEvent] = deque(maxlen=max_events)
        self._sessions: dict[str, Session] = {}
        self._ended: set[str] = set()
        self._stats = DailyStats(last_reset=local_day(clock()))

    @classmethod
    def from_settings(cls, settings: StoreSettings, clock: Clock = utc_now) -> "EventStore":
        """Build a store from the ``STORE_*`` settings group."""
        return cls(
            max_events=settings.max_events,
            session_timeout_minutes=settings.session_timeout_minutes,
            recent_events=settings.recent_events,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def max_events(self) -> int:
        return self._max_events

    @property
    def event_count(self) -> int:
        return len(self._events)

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def now(self) -> datetime:
        """Current time according to the store's clock."""
        return self._clock()

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest(self, event: VisitorEvent) -> VisitorEvent:
        """
        Store a validated event and update its session and the daily stats.

        Args:
            event: Validated event; a missing timestamp is set to now

        Returns:
            The stored event (with its timestamp assigned)
        """
        now = self._clock()
        if event.timestamp is None:
            event = event.model_copy(update={"timestamp": now})

        # deque(maxlen) drops the oldest entry once the log is full
        self._events.append(event)
        self._apply_to_session(event, now)
        self._update_stats(event, now)

        logger.debug(
            "Ingested %s for session %s on %s", event.type.value, event.session_id, event.page
        )
        return event

    def _apply_to_session(self, event: VisitorEvent, now: datetime) -> None:
        session = self._sessions.get(event.session_id)
        if session is None:
            session = Session(
                session_id=event.session_id,
                current_page=event.page,
                start_time=event.timestamp,
                last_activity=event.timestamp,
                country=event.country,
            )
            self._sessions[event.session_id] = session

        if event.page and event.page not in session.journey:
            session.journey.append(event.page)
        session.current_page = event.page
        session.last_activity = event.timestamp

        if event.type == EventType.SESSION_END:
            self._ended.add(event.session_id)

        self._refresh_activity(session, now)

    def _refresh_activity(self, session: Session, now: datetime) -> None:
        # session_end is terminal; idleness is not.
        session.is_active = (
            session.session_id not in self._ended
            and now - session.last_activity < self._session_timeout
        )

    def _update_stats(self, event: VisitorEvent, now: datetime) -> None:
        self._roll_day(now)
        if event.page:
            pages = self._stats.pages_visited
            pages[event.page] = pages.get(event.page, 0) + 1
        self._refresh_totals(now)

    def _roll_day(self, now: datetime) -> None:
        """Reset the daily counters when the local calendar day changed."""
        today = local_day(now)
        if self._stats.last_reset != today:
            logger.info("New day %s, resetting daily stats", today.isoformat())
            self._stats.total_today = 0
            self._stats.pages_visited = {}
            self._stats.last_reset = today

    def _refresh_totals(self, now: datetime) -> None:
        # Rescans the bounded log rather than keeping an incremental counter so
        # evicted events drop out of the count.
        today = local_day(now)
        self._stats.total_today = len(
            {e.session_id for e in self._events if local_day(e.timestamp) == today}
        )
        for session in self._sessions.values():
            self._refresh_activity(session, now)
        self._stats.total_active = sum(1 for s in self._sessions.values() if s.is_active)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self, query: EventQuery | None = None) -> list[VisitorEvent]:
        """
        Filter and order the event log.

        Args:
            query: Predicates and ordering; defaults to all events, newest first

        Returns:
            Matching events. Ties keep their insertion order.
        """
        query = query or EventQuery()
        matching = [e for e in self._events if _matches(e, query)]
        return sorted(
            matching, key=_EVENT_SORT_KEYS[query.sort_by], reverse=query.order == "desc"
        )

    def active_sessions(
        self,
        sort_by: SessionSort = SessionSort.LAST_ACTIVITY,
        country: str | None = None,
        page: str | None = None,
        min_duration: int | None = None,
        max_duration: int | None = None,
    ) -> list[Session]:
        """
        Copies of the active sessions, ordered descending by ``sort_by``.

        Sessions idle past the timeout are marked inactive first. ``country``
        and ``page`` are case-insensitive substring filters; the duration
        bounds are inclusive and in seconds.
        """
        now = self._clock()
        sessions = []
        for session in self._sessions.values():
            self._refresh_activity(session, now)
            if not session.is_active:
                continue
            if country and country.lower() not in session.country.lower():
                continue
            if page and not _session_mentions(session, page):
                continue
            if min_duration is not None and session.duration < min_duration:
                continue
            if max_duration is not None and session.duration > max_duration:
                continue
            sessions.append(session.model_copy(deep=True))

        sessions.sort(key=_SESSION_SORT_KEYS[SessionSort(sort_by)], reverse=True)
        return sessions

    def sessions(self) -> list[Session]:
        """Copies of every known session, active or not."""
        now = self._clock()
        result = []
        for session in self._sessions.values():
            self._refresh_activity(session, now)
            result.append(session.model_copy(deep=True))
        return result

    def get_session(self, session_id: str) -> Session | None:
        """A copy of one session, or None when the id is unknown."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        self._refresh_activity(session, self._clock())
        return session.model_copy(deep=True)

    def time_series(
        self,
        metric: ChartMetric | str,
        window_minutes: int,
        country: str | None = None,
        page: str | None = None,
    ) -> list[TimeBucket]:
        """
        Per-minute counts over the last ``window_minutes`` minutes.

        Args:
            metric: visitors (distinct sessions), events, pageviews, or
                sessions (sessions whose start falls in the bucket)
            window_minutes: Window length; ``window_minutes + 1`` buckets
            country: Only count events/sessions from this country
            page: Only count events on this page (sessions: visited it)

        Returns:
            One bucket per minute, oldest first, including empty ones
        """
        metric = ChartMetric(metric)
        starts = bucket_starts(self._clock(), window_minutes)

        if metric is ChartMetric.SESSIONS:
            counts = [0] * len(starts)
            for session in self._sessions.values():
                if country and session.country != country:
                    continue
                if page and page not in session.journey:
                    continue
                index = bucket_index(starts, session.start_time)
                if index is not None:
                    counts[index] += 1
            return [TimeBucket(time=start, value=count) for start, count in zip(starts, counts)]

        counts = [0] * len(starts)
        visitors: dict[int, set[str]] = defaultdict(set)
        for event in self._events:
            if country and event.country != country:
                continue
            if page and event.page != page:
                continue
            if metric is ChartMetric.PAGEVIEWS and event.type != EventType.PAGEVIEW:
                continue
            index = bucket_index(starts, event.timestamp)
            if index is None:
                continue
            counts[index] += 1
            visitors[index].add(event.session_id)

        if metric is ChartMetric.VISITORS:
            counts = [len(visitors[index]) for index in range(len(starts))]
        return [TimeBucket(time=start, value=count) for start, count in zip(starts, counts)]

    def summary(self) -> StatsSummary:
        """Snapshot of the daily stats plus the most recent events."""
        now = self._clock()
        self._roll_day(now)
        self._refresh_totals(now)
        return StatsSummary(
            total_today=self._stats.total_today,
            total_active=self._stats.total_active,
            pages_visited=dict(self._stats.pages_visited),
            last_reset=self._stats.last_reset,
            recent_events=self.query()[: self._recent_events],
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Drop every event, session and statistic in a single step."""
        events: deque[VisitorEvent] = deque(maxlen=self._max_events)
        stats = DailyStats(last_reset=local_day(self._clock()))
        self._events, self._sessions, self._ended, self._stats = events, {}, set(), stats
        logger.info("Event store reset")
