# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration display command for the livestats CLI.
"""

import json
from typing import Annotated

import typer

from livestats.cli.shared import C
from livestats.utils.config import get_settings


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration."""
    settings = get_settings()

    if json_output:
        print(json.dumps(settings.model_dump(), indent=2))
        return

    sections = {
        "Server": settings.server,
        "Event Store": settings.store,
        "Realtime": settings.realtime,
        "Milestones": settings.milestones,
    }

    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()
    for title, group in sections.items():
        print(f"{C.CYAN}{title}{C.RESET}")
        for name, value in group.model_dump().items():
            label = f"{name}:"
            print(f"  {label:<28}{C.WHITE}{value}{C.RESET}")
        print()

    print(f"{C.CYAN}General{C.RESET}")
    print(f"  {'debug:':<28}{C.WHITE}{settings.debug}{C.RESET}")
    print(f"  {'log_level:':<28}{C.WHITE}{settings.log_level}{C.RESET}")
    print()
