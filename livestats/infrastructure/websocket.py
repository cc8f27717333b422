# ==============================================================================
# WebSocket Transport
# ==============================================================================
"""
Starlette/FastAPI WebSocket implementation of the DashboardSocket interface.
"""

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from livestats.base import DashboardSocket


class StarletteDashboardSocket(DashboardSocket):
    """Wraps an accepted FastAPI ``WebSocket``."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    @property
    def websocket(self) -> WebSocket:
        return self._websocket

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, text: str) -> None:
        await self._websocket.send_text(text)

    async def close(self, code: int = 1000) -> None:
        await self._websocket.close(code=code)
