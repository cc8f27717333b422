# ==============================================================================
# livestats CLI
# ==============================================================================
"""
Command-line interface for the livestats real-time analytics server.

Usage:
    livestats --help
    livestats serve
    livestats config show
    livestats status
    livestats send --session s1 --page /home
    livestats simulate --count 200
"""

import os

import typer

# Set consistent terminal width for help output formatting
if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="livestats",
    help="Real-time visitor analytics CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

from livestats.cli.serve import serve

app.command("serve")(serve)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

from livestats.cli.config import config_show

config_app.command("show")(config_show)

from livestats.cli.status import show_status

app.command("status")(show_status)

from livestats.cli.events import send_event, simulate

app.command("send")(send_event)
app.command("simulate")(simulate)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
