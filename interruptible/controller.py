"""Interruptible — self-cancelling wrapper around step-generating workflows.

Wrapping a generator function produces a callable whose runs cancel each
other by supersession: calling it again while an earlier run is still in
progress makes the earlier run stale. A stale run stops advancing its
generator and settles to ``None`` instead of a result. The newest call
proceeds independently.

Staleness is detected cooperatively, at two checkpoints per step:

- before the generator is advanced (``advance`` checkpoint), and
- after it yields a pending operation but before that operation is awaited
  (``await`` checkpoint).

A pending operation that is already being awaited is never aborted; the run
finds out it is stale only once the operation settles. Side effects of steps
that ran before supersession are not rolled back.

Usage::

    @interruptible
    def refresh_token(client):
        status = yield client.get_permissions()
        if not status.granted:
            status = yield client.request_permissions()
        token = yield client.get_push_token()
        return token

    first = refresh_token(client)
    second = refresh_token(client)
    assert await first is None          # superseded by ``second``
    token = await second
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar

from .config import InterruptibleOptions
from .events import RunEvent, RunHandle, RunObserver, RunOutcome
from .observers import LoggingObserver, TraceObserver
from .steps import StepSequence, discard, settle

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PREVIEW_CHARS = 80


def _preview(value: Any) -> str:
    text = repr(value)
    if len(text) > _PREVIEW_CHARS:
        return text[: _PREVIEW_CHARS - 3] + "..."
    return text


class Interruptible(Generic[T]):
    """Supersession controller for one step-generating function.

    ``func(*args, **kwargs)`` must return a generator or async generator that
    yields pending operations (awaitables) and is resumed with their settled
    values. Its terminal result is the generator's return value, or the value
    of a yielded ``Return``.

    One controller owns one generation token. Every call installs a fresh
    token, so at most one run (the live run) holds the current token at a
    time. Token assignment and comparison never suspend, so no lock is needed
    under asyncio's single-threaded scheduling.

    The controller also works as a method decorator; each instance then gets
    its own controller, created on first access.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        *,
        name: str | None = None,
        options: InterruptibleOptions | None = None,
        observers: Iterable[RunObserver] | None = None,
    ) -> None:
        self._func = func
        self.options = options or InterruptibleOptions()
        self.name = (
            name or self.options.name or getattr(func, "__qualname__", None) or repr(func)
        )
        self._user_observers: list[RunObserver] = list(observers or [])
        self._observers: list[RunObserver] = list(self._user_observers)
        if self.options.log_events:
            self._observers.append(LoggingObserver())
        if self.options.trace_path:
            self._observers.append(TraceObserver(self.options.trace_path))

        # No run ever holds None, so it reads as "nothing live yet".
        self._token: object | None = None
        self._has_run = False
        self._run_count = 0
        self._live_run: int | None = None
        self._attr_name: str | None = None
        functools.update_wrapper(self, func, updated=())

    # --- Entry points ---

    def __call__(self, *args: Any, **kwargs: Any) -> asyncio.Task[T | None]:
        """Start a run, superseding any run in progress.

        Returns a task resolving to the terminal result, or to ``None`` if the
        run is superseded or interrupted before it finishes. Computation
        errors propagate through the task unchanged. Must be called with a
        running event loop.
        """
        loop = asyncio.get_running_loop()
        token, run_id = self._begin()
        return loop.create_task(
            self._drive_value(token, run_id, args, kwargs), name=f"{self.name}:{run_id}"
        )

    def dispatch(self, *args: Any, **kwargs: Any) -> RunHandle[T]:
        """Start a run like ``__call__`` and return a handle with a tagged outcome.

        Use this when the wrapped function may legitimately return ``None``
        and callers need to tell completion apart from supersession.
        """
        loop = asyncio.get_running_loop()
        token, run_id = self._begin()
        task = loop.create_task(
            self._drive(token, run_id, args, kwargs), name=f"{self.name}:{run_id}"
        )
        return RunHandle(run_id=run_id, task=task)

    def has_run(self) -> bool:
        """Return True if the controller has ever been called."""
        return self._has_run

    def interrupt(self) -> None:
        """Make any in-flight run stale without starting a new one (idempotent)."""
        self._token = object()
        if self._live_run is not None:
            logger.debug("%s run %d interrupted", self.name, self._live_run)
            self._emit("interrupted", self._live_run)
            self._live_run = None

    def is_running(self) -> bool:
        """Return True while the live run has not settled."""
        return self._live_run is not None

    @property
    def run_count(self) -> int:
        """Number of runs started so far."""
        return self._run_count

    def __iter__(self) -> Iterator[Callable[..., Any]]:
        """Unpack as ``call, has_run, interrupt``."""
        return iter((self, self.has_run, self.interrupt))

    # --- Observer management ---

    def add_observer(self, observer: RunObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: RunObserver) -> None:
        self._observers.remove(observer)

    # --- Method binding ---

    def __set_name__(self, owner: type, name: str) -> None:
        self._attr_name = f"__interruptible_{name}"

    def __get__(self, instance: Any, owner: type | None = None) -> Interruptible[T]:
        if instance is None:
            return self
        attr = self._attr_name or f"__interruptible_{id(self)}"
        bound = instance.__dict__.get(attr)
        if bound is None:
            bound = Interruptible(
                functools.partial(self._func, instance),
                name=self.name,
                options=self.options,
                observers=self._user_observers,
            )
            instance.__dict__[attr] = bound
        return bound

    def __repr__(self) -> str:
        return f"<Interruptible {self.name} runs={self._run_count}>"

    # --- Run protocol ---

    def _begin(self) -> tuple[object, int]:
        """Supersede the live run and claim a fresh token for a new one."""
        self._has_run = True
        token = object()
        self._token = token
        self._run_count += 1
        run_id = self._run_count
        if self._live_run is not None:
            logger.debug("%s run %d superseded by run %d", self.name, self._live_run, run_id)
        self._live_run = run_id
        self._emit("started", run_id)
        return token, run_id

    async def _drive_value(
        self, token: object, run_id: int, args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> T | None:
        outcome = await self._drive(token, run_id, args, kwargs)
        return outcome.value

    async def _drive(
        self, token: object, run_id: int, args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> RunOutcome[T]:
        sequence: StepSequence | None = None
        stage = "advance"
        # Checkpoint at which the run found itself stale.
        stopped_at: str
        try:
            resume: Any = None
            while True:
                stage = "advance"
                if token is not self._token:
                    stopped_at = stage
                    break
                if sequence is None:
                    sequence = StepSequence.start(self._func, args, kwargs)
                step = await sequence.advance(resume)
                # An async generator may have suspended while producing this step.
                if token is not self._token:
                    if not step.done:
                        discard(step.value)
                    stopped_at = "result" if step.done else "await"
                    break
                if step.done:
                    return self._complete(run_id, step.value)

                stage = "await"
                resume = await settle(step.value)
        except asyncio.CancelledError:
            await self._release(sequence)
            raise
        except Exception as exc:
            if token is self._token:
                self._emit("failed", run_id, _preview(exc))
                await self._release(sequence)
                raise
            # The run went stale while suspended; its fault is never surfaced.
            logger.debug(
                "%s run %d dropped %s after going stale", self.name, run_id, type(exc).__name__
            )
            stopped_at = stage
        finally:
            if self._live_run == run_id:
                self._live_run = None

        return await self._abandon(sequence, run_id, stopped_at)

    def _complete(self, run_id: int, value: Any) -> RunOutcome[T]:
        self._emit("completed", run_id, _preview(value))
        return RunOutcome.completed(run_id, value)

    async def _abandon(
        self, sequence: StepSequence | None, run_id: int, checkpoint: str
    ) -> RunOutcome[T]:
        logger.debug("%s run %d stopped at %s checkpoint", self.name, run_id, checkpoint)
        self._emit("superseded", run_id, checkpoint)
        try:
            await self._release(sequence)
        except Exception:
            # A stale run settles absent even when its generator's cleanup fails.
            logger.warning(
                "%s run %d raised while closing its superseded generator",
                self.name,
                run_id,
                exc_info=True,
            )
        return RunOutcome.abandoned(run_id)

    async def _release(self, sequence: StepSequence | None) -> None:
        if sequence is not None and self.options.close_superseded:
            await sequence.close()

    def _emit(self, event_type: str, run_id: int, detail: str | None = None) -> None:
        if not self._observers:
            return
        event = RunEvent(type=event_type, name=self.name, run_id=run_id, detail=detail)
        for observer in self._observers:
            try:
                observer.on_event(event)
            except Exception:
                logger.debug("Observer %r failed on %s event", observer, event_type, exc_info=True)


def make_interruptible(
    func: Callable[..., Any],
    *,
    name: str | None = None,
    options: InterruptibleOptions | None = None,
    observers: Iterable[RunObserver] | None = None,
) -> Interruptible[Any]:
    """Wrap ``func`` in a supersession controller.

    The result unpacks into the three original capabilities::

        call, has_run, interrupt = make_interruptible(flow)
    """
    return Interruptible(func, name=name, options=options, observers=observers)


def interruptible(
    func: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    options: InterruptibleOptions | None = None,
    observers: Iterable[RunObserver] | None = None,
) -> Any:
    """Decorator form of ``make_interruptible``; usable bare or with keywords."""

    def wrap(f: Callable[..., Any]) -> Interruptible[Any]:
        return Interruptible(f, name=name, options=options, observers=observers)

    if func is None:
        return wrap
    return wrap(func)
