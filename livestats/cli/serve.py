# ==============================================================================
# Serve Command
# ==============================================================================
"""
Run the livestats HTTP and WebSocket server under uvicorn.
"""

import logging
from typing import Annotated, Optional

import typer
import uvicorn

from livestats.utils.config import get_settings


def serve(
    host: Annotated[
        Optional[str], typer.Option("--host", help="Bind address (default: SERVER_HOST)")
    ] = None,
    port: Annotated[
        Optional[int], typer.Option("--port", "-p", help="Listen port (default: SERVER_PORT)")
    ] = None,
    reload: Annotated[
        bool, typer.Option("--reload", help="Restart on code changes (development)")
    ] = False,
) -> None:
    """Start the API and dashboard WebSocket server.

    Examples:
        livestats serve
        livestats serve --port 8080
    """
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "livestats.api.server:create_app",
        factory=True,
        host=host or settings.server.host,
        port=port or settings.server.port,
        reload=reload,
        log_level=settings.log_level.lower(),
        ws_ping_interval=settings.server.ws_ping_interval,
        ws_ping_timeout=settings.server.ws_ping_timeout,
    )
