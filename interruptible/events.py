"""Run lifecycle events, outcomes, and handles."""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")

COMPLETED = "completed"
SUPERSEDED = "superseded"


@dataclass
class RunEvent:
    """Event emitted as a controller's runs start and settle.

    Event types:
    - ``started``: a new run took the current generation.
    - ``completed``: the run finished; ``detail`` has the result's repr.
    - ``superseded``: the run noticed it was stale at a checkpoint;
      ``detail`` names the checkpoint (``advance``, ``await``, or ``result``
      when the generator finished after the run went stale).
    - ``failed``: the run raised; ``detail`` has the exception repr.
    - ``interrupted``: ``interrupt()`` invalidated the live run.
    """

    type: str
    name: str
    run_id: int
    detail: str | None = None
    ts: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunEvent:
        return cls(
            type=data["type"],
            name=data.get("name", ""),
            run_id=int(data.get("run_id", 0)),
            detail=data.get("detail"),
            ts=data.get("ts", ""),
        )


@runtime_checkable
class RunObserver(Protocol):
    """Observer notified of every run lifecycle event."""

    def on_event(self, event: RunEvent) -> None:
        """Called with each event, synchronously."""
        ...


@dataclass(frozen=True)
class RunOutcome(Generic[T]):
    """How a single run settled: completed with a value, or superseded."""

    run_id: int
    status: str  # "completed" or "superseded"
    value: T | None = None

    @property
    def superseded(self) -> bool:
        return self.status == SUPERSEDED

    @classmethod
    def completed(cls, run_id: int, value: T) -> RunOutcome[T]:
        return cls(run_id=run_id, status=COMPLETED, value=value)

    @classmethod
    def abandoned(cls, run_id: int) -> RunOutcome[T]:
        return cls(run_id=run_id, status=SUPERSEDED)


@dataclass
class RunHandle(Generic[T]):
    """Handle for a dispatched run."""

    run_id: int
    task: asyncio.Task[RunOutcome[T]]

    def done(self) -> bool:
        """Return True if the run has settled."""
        return self.task.done()

    async def wait(self) -> RunOutcome[T]:
        """Wait for the run to settle and return its outcome."""
        return await self.task

    @property
    def status(self) -> str:
        """Best-effort status for the dispatched run."""
        if not self.task.done():
            return "running"
        if self.task.cancelled():
            return "cancelled"
        if self.task.exception() is not None:
            return "error"
        return self.task.result().status
