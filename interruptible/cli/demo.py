"""demo command: overlapping calls to a simulated permission flow."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.table import Table

from ..config import InterruptibleOptions
from ..controller import make_interruptible
from ..events import RunEvent, RunOutcome
from ..observers import RecordingObserver
from .state import TABLE_BORDER, app, console, muted, status_markup


async def _system_call(name: str, result: Any, delay: float, calls: list[str]) -> Any:
    calls.append(name)
    await asyncio.sleep(delay)
    return result


def permission_flow(request: int, delay: float, calls: list[str]):
    """Ask for notification permission, then fetch a push token."""
    status = yield _system_call("get_permissions", "undetermined", delay, calls)
    if status != "granted":
        status = yield _system_call("request_permissions", "granted", delay, calls)
    token = yield _system_call("get_push_token", f"push-token-{request}", delay, calls)
    return {"status": status, "token": token}


async def run_demo(
    calls: int,
    delay: float,
    *,
    interrupt: bool = False,
    trace: Path | None = None,
) -> tuple[list[RunOutcome[Any]], list[RunEvent], list[str]]:
    """Fire ``calls`` overlapping requests, half a step apart.

    Returns each run's outcome, every lifecycle event, and the system calls
    that were actually issued.
    """
    recorder = RecordingObserver()
    issued: list[str] = []
    options = InterruptibleOptions(
        name="permission-flow",
        trace_path=str(trace) if trace else None,
    )
    flow = make_interruptible(permission_flow, options=options, observers=[recorder])

    handles = []
    for request in range(1, calls + 1):
        handles.append(flow.dispatch(request, delay, issued))
        if request < calls:
            await asyncio.sleep(delay / 2)
    if interrupt:
        await asyncio.sleep(delay / 2)
        flow.interrupt()

    outcomes = [await handle.wait() for handle in handles]
    return outcomes, recorder.events, issued


@app.command()
def demo(
    calls: Annotated[
        int,
        typer.Option("--calls", "-n", min=1, help="Number of overlapping requests"),
    ] = 3,
    delay: Annotated[
        float,
        typer.Option("--delay", "-d", min=0.0, help="Seconds each simulated system call takes"),
    ] = 0.1,
    interrupt: Annotated[
        bool,
        typer.Option("--interrupt", help="Interrupt the last request before it finishes"),
    ] = False,
    trace: Annotated[
        Path | None,
        typer.Option("--trace", help="Append run events to this JSONL file"),
    ] = None,
) -> None:
    """Run overlapping permission requests and show which ones win."""
    outcomes, events, issued = asyncio.run(
        run_demo(calls, delay, interrupt=interrupt, trace=trace)
    )

    table = Table(title="permission-flow runs", border_style=TABLE_BORDER)
    table.add_column("Run", justify="right")
    table.add_column("Status")
    table.add_column("Result")
    for outcome in outcomes:
        result = "" if outcome.value is None else str(outcome.value.get("token", ""))
        table.add_row(str(outcome.run_id), status_markup(outcome.status), result)
    console.print(table)

    superseded = sum(1 for outcome in outcomes if outcome.superseded)
    console.print(
        muted(
            f"{len(issued)} system calls issued, "
            f"{superseded} of {len(outcomes)} runs superseded, {len(events)} events"
        )
    )
    if trace:
        console.print(muted(f"Trace written to {trace}"))
