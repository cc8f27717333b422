# ==============================================================================
# Analytics Views
# ==============================================================================
"""
Derived analytics built from EventStore queries.

These are read-only views shared by the HTTP routes and the dashboard socket
handlers: enhanced summaries, paginated listings with distributions, chart
summaries, per-session details and rolling activity windows. Every function
returns JSON-ready dicts with camelCase keys.
"""

import logging
import math
from collections import Counter
from collections.abc import Sequence
from datetime import timedelta
from typing import Any, TypeVar

from livestats.core.event_store import EventStore
from livestats.core.models import (
    ChartMetric,
    EventQuery,
    EventType,
    SessionSort,
    TimeBucket,
    VisitorEvent,
)
from livestats.core.time_buckets import local_day

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Chart types accepted from dashboards that are not metrics of their own
CHART_TYPE_ALIASES = {"hourly": ChartMetric.VISITORS}

ACTIVITY_WINDOWS = {
    "lastMinute": timedelta(minutes=1),
    "last5Minutes": timedelta(minutes=5),
    "last15Minutes": timedelta(minutes=15),
}


# ==============================================================================
# Helpers
# ==============================================================================


def paginate(items: Sequence[T], page_number: int, limit: int) -> tuple[list[T], int]:
    """
    Slice one page out of ``items``.

    Returns:
        (page items, total page count)
    """
    page_number = max(page_number, 1)
    limit = max(limit, 1)
    start = (page_number - 1) * limit
    return list(items[start : start + limit]), math.ceil(len(items) / limit)


def resolve_chart_metric(chart_type: str | None) -> ChartMetric:
    """Map a dashboard chart type to a metric, falling back to visitors."""
    if not chart_type:
        return ChartMetric.VISITORS
    if chart_type in CHART_TYPE_ALIASES:
        return CHART_TYPE_ALIASES[chart_type]
    try:
        return ChartMetric(chart_type)
    except ValueError:
        logger.warning("Unknown chart type: %s, defaulting to visitors", chart_type)
        return ChartMetric.VISITORS


def _distribution(counter: Counter, key: str, top: int | None = None) -> list[dict[str, Any]]:
    return [{key: name, "count": count} for name, count in counter.most_common(top)]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def chart_summary(points: Sequence[TimeBucket]) -> dict[str, Any]:
    """Total, peak, average and first-to-last trend (percent) of a series."""
    values = [p.value for p in points]
    trend = 0.0
    if len(values) > 1:
        trend = (values[-1] - values[0]) / max(values[0], 1) * 100
    return {
        "total": sum(values),
        "peak": max(values, default=0),
        "average": round(_mean(values), 2),
        "trend": round(trend, 2),
        "dataPoints": len(values),
    }


# ==============================================================================
# Views
# ==============================================================================


def enhanced_summary(store: EventStore) -> dict[str, Any]:
    """Summary stats plus session metrics, top countries and recent chart data."""
    now = store.now()
    summary = store.summary()
    events = store.query()
    active = store.active_sessions()
    all_sessions = store.sessions()

    bounced = sum(1 for s in all_sessions if len(s.journey) == 1)
    today = local_day(now)
    hour_ago = now - timedelta(hours=1)

    payload = summary.to_payload()
    payload.update(
        {
            "metrics": {
                "avgSessionDuration": round(_mean([s.duration for s in active])),
                "bounceRate": round(bounced / len(all_sessions) * 100) if all_sessions else 0,
                "eventsLastHour": sum(1 for e in events if e.timestamp > hour_ago),
                "uniqueVisitorsToday": len(
                    {e.session_id for e in events if local_day(e.timestamp) == today}
                ),
            },
            "topCountries": _distribution(
                Counter(e.country for e in events if e.country), "country", 5
            ),
            "chartData": [
                p.to_payload() for p in store.time_series(ChartMetric.VISITORS, 10)[-10:]
            ],
            "activeSessions": [s.to_payload() for s in active[:10]],
        }
    )
    return payload


def list_sessions(
    store: EventStore,
    *,
    country: str | None = None,
    page: str | None = None,
    min_duration: int | None = None,
    max_duration: int | None = None,
    sort_by: SessionSort = SessionSort.LAST_ACTIVITY,
    page_number: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    """Paginated active sessions with aggregate stats over the full match."""
    sessions = store.active_sessions(
        sort_by=sort_by,
        country=country,
        page=page,
        min_duration=min_duration,
        max_duration=max_duration,
    )
    page_items, total_pages = paginate(sessions, page_number, limit)

    return {
        "count": len(sessions),
        "totalPages": total_pages,
        "currentPage": page_number,
        "sessions": [s.to_payload() for s in page_items],
        "filters": {
            "country": country,
            "page": page,
            "minDuration": min_duration,
            "maxDuration": max_duration,
            "sortBy": SessionSort(sort_by).value,
        },
        "stats": {
            "avgDuration": round(_mean([s.duration for s in sessions])),
            "avgJourneyLength": round(_mean([len(s.journey) for s in sessions]), 1),
            "countries": sorted({s.country for s in sessions}),
            "pages": sorted({p for s in sessions for p in s.journey}),
        },
    }


def list_events(
    store: EventStore,
    query: EventQuery,
    page_number: int = 1,
    limit: int = 50,
) -> dict[str, Any]:
    """Paginated events with type, page, country and hourly distributions."""
    events = store.query(query)
    page_items, total_pages = paginate(events, page_number, limit)

    hours = Counter(e.timestamp.astimezone().hour for e in events)
    return {
        "count": len(events),
        "totalPages": total_pages,
        "currentPage": page_number,
        "events": [e.to_payload() for e in page_items],
        "filters": query.to_payload(),
        "analytics": {
            "typeDistribution": _distribution(Counter(e.type.value for e in events), "type"),
            "pageDistribution": _distribution(Counter(e.page for e in events), "page", 10),
            "countryDistribution": _distribution(
                Counter(e.country for e in events if e.country), "country", 10
            ),
            "hourlyDistribution": [
                {"hour": hour, "count": hours[hour]} for hour in sorted(hours)
            ],
        },
    }


def session_details(store: EventStore, session_id: str) -> dict[str, Any] | None:
    """
    One session with its events, time on each page and an engagement score.

    Returns:
        Details dict, or None when the session is unknown
    """
    session = store.get_session(session_id)
    if session is None:
        return None

    events = store.query(EventQuery(session_id=session_id))
    chronological = list(reversed(events))
    pageviews = [e for e in chronological if e.type == EventType.PAGEVIEW]
    clicks = [e for e in chronological if e.type == EventType.CLICK]

    # Time on a page runs until the next pageview in the same session
    time_on_pages: dict[str, int] = {}
    for current, following in zip(pageviews, pageviews[1:]):
        spent = int((following.timestamp - current.timestamp).total_seconds())
        time_on_pages[current.page] = time_on_pages.get(current.page, 0) + spent

    engagement = min(
        100, len(clicks) * 10 + len(session.journey) * 5 + min(session.duration / 10, 50)
    )

    details = session.to_payload()
    details.update(
        {
            "totalEvents": len(events),
            "pageViews": len(pageviews),
            "clicks": len(clicks),
            "timeOnPages": time_on_pages,
        }
    )
    return {
        "session": details,
        "events": [e.to_payload() for e in events],
        "analytics": {
            "avgTimePerPage": round(_mean(list(time_on_pages.values()))),
            "bounced": len(session.journey) == 1,
            "engagementScore": engagement,
        },
    }


def _window_activity(events: Sequence[VisitorEvent]) -> dict[str, int]:
    return {
        "events": len(events),
        "uniqueVisitors": len({e.session_id for e in events}),
        "pageviews": sum(1 for e in events if e.type == EventType.PAGEVIEW),
        "clicks": sum(1 for e in events if e.type == EventType.CLICK),
    }


def realtime_activity(store: EventStore, connected_dashboards: int) -> dict[str, Any]:
    """Activity over the last 1, 5 and 15 minutes plus the top pages."""
    now = store.now()
    events = store.query()

    activity = {}
    for name, window in ACTIVITY_WINDOWS.items():
        cutoff = now - window
        activity[name] = _window_activity([e for e in events if e.timestamp > cutoff])

    cutoff = now - ACTIVITY_WINDOWS["last15Minutes"]
    top_pages = Counter(
        e.page for e in events if e.timestamp > cutoff and e.type == EventType.PAGEVIEW
    )

    return {
        "timestamp": now.isoformat(),
        "activeSessions": len(store.active_sessions()),
        "connectedDashboards": connected_dashboards,
        "activity": activity,
        "topPages": [{"page": page, "views": views} for page, views in top_pages.most_common(5)],
        "recentEvents": [e.to_payload() for e in events[:10]],
    }
