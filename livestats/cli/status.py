# ==============================================================================
# Status Command
# ==============================================================================
"""
Status command for the livestats CLI.

Queries a running server for its realtime activity and renders it as a table
or JSON. Uses light retry (3 attempts, ~7 seconds) on connection errors.
"""

import json as json_module
from typing import Annotated, Any, Optional

import requests
import typer
from rich.console import Console
from rich.table import Table

from livestats.cli.shared import C, I, api_get, print_unreachable, resolve_base_url

_WINDOW_LABELS = {
    "lastMinute": "Last minute",
    "last5Minutes": "Last 5 minutes",
    "last15Minutes": "Last 15 minutes",
}


def _activity_table(activity: dict[str, Any]) -> Table:
    table = Table(title="Visitor Activity", show_header=True, header_style="bold")
    table.add_column("Window")
    table.add_column("Events", justify="right")
    table.add_column("Visitors", justify="right")
    table.add_column("Pageviews", justify="right")
    table.add_column("Clicks", justify="right")

    for key, label in _WINDOW_LABELS.items():
        window = activity.get(key, {})
        table.add_row(
            label,
            f"{window.get('events', 0):,}",
            f"{window.get('uniqueVisitors', 0):,}",
            f"{window.get('pageviews', 0):,}",
            f"{window.get('clicks', 0):,}",
        )
    return table


def show_status(
    url: Annotated[
        Optional[str], typer.Option("--url", "-u", help="Server URL (default: from settings)")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show live activity of a running livestats server.

    Examples:
        livestats status
        livestats status --url http://localhost:3000 --json
    """
    base_url = resolve_base_url(url)

    try:
        data = api_get(base_url, "/api/analytics/realtime")
    except requests.RequestException as e:
        if json_output:
            print(json_module.dumps({"error": str(e), "url": base_url}))
        else:
            print_unreachable(base_url, e)
        raise typer.Exit(1)

    if json_output:
        print(json_module.dumps(data, indent=2))
        return

    console = Console()
    print()
    print(f"  {C.BRIGHT_GREEN}{I.CHECK} livestats is up{C.RESET} {C.DIM}({base_url}){C.RESET}")
    print(f"  {C.BOLD}Active sessions:{C.RESET}      {data['activeSessions']:,}")
    print(f"  {C.BOLD}Connected dashboards:{C.RESET} {data['connectedDashboards']:,}")
    print()
    console.print(_activity_table(data["activity"]))

    if data["topPages"]:
        pages = Table(title="Top Pages (15 min)", show_header=True, header_style="bold")
        pages.add_column("Page")
        pages.add_column("Views", justify="right")
        for entry in data["topPages"]:
            pages.add_row(entry["page"], f"{entry['views']:,}")
        console.print(pages)
    else:
        print(f"  {C.DIM}No pageviews in the last 15 minutes.{C.RESET}")
    print()
