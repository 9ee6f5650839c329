"""trace command: render a JSONL run trace."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from ..observers import read_trace
from .state import MUTED, TABLE_BORDER, app, console, fail, muted, status_markup


@app.command()
def trace(
    path: Annotated[Path, typer.Argument(help="JSONL file written with --trace")],
    run: Annotated[
        int | None,
        typer.Option("--run", "-r", help="Only show events for this run id"),
    ] = None,
) -> None:
    """Show the run events recorded in a trace file."""
    if not path.exists():
        fail(f"Trace file not found: {path}")

    events = read_trace(path)
    if run is not None:
        events = [event for event in events if event.run_id == run]
    if not events:
        console.print(muted("No events."))
        return

    table = Table(border_style=TABLE_BORDER)
    table.add_column("Time", style=MUTED)
    table.add_column("Name")
    table.add_column("Run", justify="right")
    table.add_column("Event")
    table.add_column("Detail", overflow="fold")
    for event in events:
        table.add_row(
            event.ts[11:23] if len(event.ts) >= 23 else event.ts,
            event.name,
            str(event.run_id),
            status_markup(event.type),
            event.detail or "",
        )
    console.print(table)
