"""Shared CLI state: console, app, run status colors."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

# Rich color per run status / event type
STATUS_COLORS = {
    "started": "cyan",
    "running": "cyan",
    "completed": "green",
    "superseded": "yellow",
    "interrupted": "yellow",
    "failed": "red",
    "error": "red",
    "cancelled": "bright_black",
}
MUTED = "bright_black"
TABLE_BORDER = "grey37"

# Rich console for all output
console = Console()

app = typer.Typer(
    name="interruptible",
    help="Explore self-cancelling generator workflows.",
    epilog=(
        "Examples:\n"
        "  interruptible demo\n"
        "  interruptible demo --calls 5 --delay 0.2 --interrupt\n"
        "  interruptible demo --trace runs.jsonl\n"
        "  interruptible trace runs.jsonl"
    ),
    add_completion=False,
)


def _markup(text: str, color: str) -> str:
    """Wrap text in Rich markup with the given color, escaping special chars."""
    return f"[{color}]{escape(text)}[/{color}]"


def status_markup(status: str) -> str:
    return _markup(status, STATUS_COLORS.get(status, "default"))


def muted(text: str) -> str:
    return _markup(text, MUTED)


def fail(message: str) -> None:
    """Print a usage error and exit with status 1."""
    console.print(_markup(message, STATUS_COLORS["error"]))
    raise typer.Exit(1)
