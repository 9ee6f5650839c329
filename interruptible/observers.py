"""Run observers for logging and trace export.

Observers implement the RunObserver protocol and are notified of every run
lifecycle event. They are side channels: a failing observer never changes
how a run settles.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .events import RunEvent

logger = logging.getLogger(__name__)

_LEVELS = {
    "started": logging.DEBUG,
    "completed": logging.DEBUG,
    "superseded": logging.INFO,
    "interrupted": logging.INFO,
    "failed": logging.WARNING,
}


class LoggingObserver:
    """Writes each run event to a logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def on_event(self, event: RunEvent) -> None:
        level = _LEVELS.get(event.type, logging.DEBUG)
        if event.detail:
            self._log.log(level, "%s run %d %s (%s)", event.name, event.run_id, event.type, event.detail)
        else:
            self._log.log(level, "%s run %d %s", event.name, event.run_id, event.type)


class RecordingObserver:
    """Keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[RunEvent] = []

    def on_event(self, event: RunEvent) -> None:
        self.events.append(event)

    def types(self, run_id: int | None = None) -> list[str]:
        """Event types seen, optionally for a single run."""
        return [e.type for e in self.events if run_id is None or e.run_id == run_id]


class TraceObserver:
    """Appends each event to a JSONL trace file as it happens."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def on_event(self, event: RunEvent) -> None:
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(event.to_dict(), default=str) + "\n")
            f.flush()


def read_trace(path: str | Path) -> list[RunEvent]:
    """Load the events written by a TraceObserver.

    Blank and corrupt lines are skipped.
    """
    events: list[RunEvent] = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        try:
            events.append(RunEvent.from_dict(json.loads(line)))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            continue
    return events
