# ==============================================================================
# Dashboard WebSocket Endpoint
# ==============================================================================
"""
WebSocket endpoint for live dashboards.

Each accepted socket is registered, welcomed with a ``connection_established``
snapshot, then every inbound frame goes through the MessageDispatcher until
the client disconnects or the transport fails.
"""

import logging

from fastapi import APIRouter, WebSocket

from livestats.infrastructure.websocket import StarletteDashboardSocket

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def dashboard_socket(websocket: WebSocket):
    services = websocket.app.state.services

    await websocket.accept()
    connection = services.registry.register(StarletteDashboardSocket(websocket))
    connection_id = connection.connection_id
    await services.router.announce_connection(connection)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info("WebSocket disconnected: %s", connection_id)
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await services.dispatcher.dispatch(connection_id, raw)
    except Exception:
        logger.exception("WebSocket error for %s", connection_id)
    finally:
        await services.router.announce_disconnect(connection_id)
