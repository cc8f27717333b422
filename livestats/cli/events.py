# ==============================================================================
# Event Commands
# ==============================================================================
"""
Commands that post visitor events to a running server: a single hand-made
event, or a stream of synthetic traffic for demos.
"""

import json as json_module
import random
import time
import uuid
from typing import Annotated, Any, Optional

import requests
import typer

from livestats.cli.shared import C, I, api_post, print_unreachable, resolve_base_url
from livestats.core.models import EventType

SIMULATED_PAGES = ["/", "/products", "/products/42", "/pricing", "/blog", "/about", "/checkout"]
SIMULATED_COUNTRIES = ["US", "UK", "DE", "FR", "IN", "BR", "JP", "CA"]


def build_event(
    session_id: str,
    page: str,
    event_type: EventType = EventType.PAGEVIEW,
    country: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Build the JSON body of POST /api/events."""
    body: dict[str, Any] = {"type": event_type.value, "sessionId": session_id, "page": page}
    if country:
        body["country"] = country
    if metadata:
        body["metadata"] = metadata
    return body


def synthetic_event(rng: random.Random, sessions: dict[str, str]) -> dict[str, Any]:
    """
    Pick a plausible next event from a pool of simulated sessions.

    Args:
        rng: Random source
        sessions: Session id -> country; ended sessions are replaced in place

    Returns:
        An event body ready to post
    """
    session_id = rng.choice(list(sessions))
    country = sessions[session_id]

    roll = rng.random()
    if roll < 0.05:
        del sessions[session_id]
        sessions[f"sim_{uuid.uuid4().hex[:12]}"] = rng.choice(SIMULATED_COUNTRIES)
        return build_event(session_id, rng.choice(SIMULATED_PAGES), EventType.SESSION_END, country)
    if roll < 0.35:
        return build_event(
            session_id,
            rng.choice(SIMULATED_PAGES),
            EventType.CLICK,
            country,
            metadata={"element": rng.choice(["cta", "nav", "link", "buy"])},
        )
    return build_event(session_id, rng.choice(SIMULATED_PAGES), EventType.PAGEVIEW, country)


def send_event(
    session: Annotated[str, typer.Option("--session", "-s", help="Session id")],
    page: Annotated[str, typer.Option("--page", "-p", help="Page path")],
    event_type: Annotated[
        EventType, typer.Option("--type", "-t", help="Event type")
    ] = EventType.PAGEVIEW,
    country: Annotated[Optional[str], typer.Option("--country", "-c", help="Country")] = None,
    url: Annotated[
        Optional[str], typer.Option("--url", "-u", help="Server URL (default: from settings)")
    ] = None,
) -> None:
    """Post one visitor event.

    Examples:
        livestats send --session s1 --page /home
        livestats send -s s1 -p /pricing -t click -c US
    """
    base_url = resolve_base_url(url)
    try:
        body = build_event(session, page, event_type, country)
        response = api_post(base_url, "/api/events", body)
    except requests.RequestException as e:
        print_unreachable(base_url, e)
        raise typer.Exit(1)

    body = response.json()
    if response.status_code != 201:
        print(f"\n  {C.BRIGHT_RED}{I.CROSS} {body.get('error', 'Request failed')}{C.RESET}")
        for detail in body.get("details", []):
            print(f"    {C.DIM}{detail}{C.RESET}")
        print()
        raise typer.Exit(1)

    stats = body["stats"]
    print(
        f"\n  {C.BRIGHT_GREEN}{I.CHECK} Sent {event_type.value} {I.ARROW} {page}{C.RESET}"
        f"  {C.DIM}(active {stats['totalActive']}, today {stats['totalToday']}){C.RESET}\n"
    )


def simulate(
    count: Annotated[int, typer.Option("--count", "-n", min=1, help="Events to send")] = 100,
    interval: Annotated[
        float, typer.Option("--interval", "-i", min=0.0, help="Seconds between events")
    ] = 0.5,
    sessions: Annotated[
        int, typer.Option("--sessions", min=1, help="Concurrent simulated sessions")
    ] = 10,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed")] = None,
    url: Annotated[
        Optional[str], typer.Option("--url", "-u", help="Server URL (default: from settings)")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Post synthetic visitor traffic for demos.

    Examples:
        livestats simulate
        livestats simulate --count 500 --interval 0.1 --sessions 40
    """
    base_url = resolve_base_url(url)
    rng = random.Random(seed)
    pool = {
        f"sim_{uuid.uuid4().hex[:12]}": rng.choice(SIMULATED_COUNTRIES) for _ in range(sessions)
    }

    sent = failed = 0
    for n in range(count):
        try:
            response = api_post(base_url, "/api/events", synthetic_event(rng, pool))
        except requests.RequestException as e:
            print_unreachable(base_url, e)
            raise typer.Exit(1)

        if response.status_code == 201:
            sent += 1
        else:
            failed += 1
        if not json_output and (n + 1) % 50 == 0:
            print(f"  {C.DIM}{n + 1}/{count} events posted{C.RESET}")
        if interval and n + 1 < count:
            time.sleep(interval)

    if json_output:
        print(json_module.dumps({"sent": sent, "failed": failed, "url": base_url}))
        return
    print(f"\n  {C.BRIGHT_GREEN}{I.CHECK} Simulated {sent} events{C.RESET}", end="")
    print(f"  {C.BRIGHT_YELLOW}({failed} rejected){C.RESET}\n" if failed else "\n")
