# ==============================================================================
# REST Routes
# ==============================================================================
"""
HTTP endpoints for event ingestion and analytics queries.

Every endpoint is a thin layer over the core: validate, call the EventStore,
hand updates to the BroadcastRouter, shape the response.
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse

from livestats.api.validation import validate_event
from livestats.core import analytics
from livestats.core.models import AlertLevel, EventQuery, EventType, SessionSort
from livestats.exceptions import EventValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

MAX_BULK_EVENTS = 100
MAX_CHART_MINUTES = 1440


def get_services(request: Request):
    """Dependency returning the app's Services container."""
    return request.app.state.services


# ==============================================================================
# Ingestion
# ==============================================================================


@router.post("/events", status_code=201)
async def ingest_event(payload: Any = Body(...), services=Depends(get_services)):
    """Validate, store and broadcast one visitor event."""
    event = validate_event(payload)
    new_session = services.store.get_session(event.session_id) is None
    event = services.store.ingest(event)
    logger.info("Broadcasting updates for new %s event", event.type.value)

    await services.router.on_new_event(event)
    await services.router.on_visitor_update(event)
    session = services.store.get_session(event.session_id)
    if session is not None:
        await services.router.on_session_activity(session)

    summary = services.store.summary()
    return {
        "message": "Event received successfully",
        "event": event.to_payload(),
        "stats": {
            "totalActive": summary.total_active,
            "totalToday": summary.total_today,
            "newSession": new_session,
        },
    }


@router.post("/analytics/bulk-events")
async def ingest_bulk_events(payload: Any = Body(...), services=Depends(get_services)):
    """Store up to 100 events; invalid ones are reported per index."""
    events = payload.get("events") if isinstance(payload, dict) else None
    if not isinstance(events, list):
        return JSONResponse(status_code=400, content={"error": "Events must be an array"})
    if not events:
        return JSONResponse(status_code=400, content={"error": "Events array cannot be empty"})
    if len(events) > MAX_BULK_EVENTS:
        return JSONResponse(
            status_code=400,
            content={"error": f"Cannot process more than {MAX_BULK_EVENTS} events at once"},
        )

    processed = 0
    errors = []
    for index, item in enumerate(events):
        try:
            event = validate_event(item)
        except EventValidationError as e:
            errors.append({"index": index, "event": item, "errors": e.errors})
            continue
        services.store.ingest(event)
        processed += 1

    if processed:
        await services.router.on_visitor_update({"type": "bulk_update", "count": processed})

    return JSONResponse(
        status_code=207 if errors else 201,
        content={
            "message": f"Processed {processed} events, {len(errors)} failed",
            "results": {"processed": processed, "failed": len(errors), "errors": errors},
            "summary": services.store.summary().to_payload(),
        },
    )


# ==============================================================================
# Queries
# ==============================================================================


@router.get("/analytics/summary")
async def get_summary(services=Depends(get_services)):
    return analytics.enhanced_summary(services.store)


@router.get("/analytics/sessions")
async def get_sessions(
    country: str | None = None,
    page: str | None = None,
    min_duration: int | None = Query(None, alias="minDuration"),
    max_duration: int | None = Query(None, alias="maxDuration"),
    sort_by: SessionSort = Query(SessionSort.LAST_ACTIVITY, alias="sortBy"),
    page_number: int = Query(1, alias="pageNumber", ge=1),
    limit: int = Query(20, ge=1),
    services=Depends(get_services),
):
    """Active sessions with substring filters, sorting and pagination."""
    return analytics.list_sessions(
        services.store,
        country=country,
        page=page,
        min_duration=min_duration,
        max_duration=max_duration,
        sort_by=sort_by,
        page_number=page_number,
        limit=limit,
    )


@router.get("/analytics/events")
async def get_events(
    country: str | None = None,
    page: str | None = None,
    type: EventType | None = None,
    session_id: str | None = Query(None, alias="sessionId"),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    sort_by: str = Query("timestamp", alias="sortBy"),
    order: str = "desc",
    page_number: int = Query(1, alias="pageNumber", ge=1),
    limit: int = Query(50, ge=1),
    services=Depends(get_services),
):
    """Filtered events with distributions over the full match."""
    query = EventQuery(
        country=country,
        page=page,
        type=type,
        session_id=session_id,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by if sort_by in ("country", "page", "type", "sessionId") else "timestamp",
        order="asc" if order == "asc" else "desc",
    )
    return analytics.list_events(services.store, query, page_number=page_number, limit=limit)


@router.get("/analytics/chart-data")
async def get_chart_data(
    minutes: int = 10,
    type: str = "visitors",
    country: str | None = None,
    page: str | None = None,
    services=Depends(get_services),
):
    """Per-minute time series plus total, peak, average and trend."""
    if minutes < 1 or minutes > MAX_CHART_MINUTES:
        return JSONResponse(
            status_code=400,
            content={"error": "Minutes parameter must be between 1 and 1440 (24 hours)"},
        )

    metric = analytics.resolve_chart_metric(type)
    points = services.store.time_series(metric, minutes, country=country, page=page)
    return {
        "type": metric.value,
        "timeRange": f"{minutes} minutes",
        "data": [p.to_payload() for p in points],
        "summary": analytics.chart_summary(points),
        "filters": {"country": country, "page": page},
    }


@router.get("/analytics/session/{session_id}")
async def get_session_details(session_id: str, services=Depends(get_services)):
    details = analytics.session_details(services.store, session_id)
    if details is None:
        return JSONResponse(
            status_code=404, content={"error": "Session not found", "sessionId": session_id}
        )
    return details


@router.get("/analytics/realtime")
async def get_realtime(services=Depends(get_services)):
    return analytics.realtime_activity(services.store, services.registry.count)


@router.get("/dashboards")
async def get_dashboards(services=Depends(get_services)):
    """Connected dashboards, connection metrics and delivery counters."""
    return {
        "connections": services.registry.connections_info(),
        "metrics": services.registry.performance_metrics(),
        "delivery": services.router.delivery_stats,
    }


# ==============================================================================
# Maintenance
# ==============================================================================


@router.delete("/analytics/reset")
async def reset_analytics(services=Depends(get_services)):
    """Clear events, sessions and stats. Dashboards stay connected."""
    services.store.reset()
    reset_at = services.store.now()
    await services.router.broadcast_alert(
        AlertLevel.INFO, "Analytics data has been reset", {"resetAt": reset_at.isoformat()}
    )
    return {"message": "Analytics data cleared successfully", "timestamp": reset_at.isoformat()}
