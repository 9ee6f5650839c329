"""Step sequences — a uniform driver over sync and async generators.

A wrapped workflow is written as a generator that yields pending operations
and is resumed with their settled values::

    def request_permission(prompt):
        status = yield fetch_status()
        if status == "granted":
            return status
        answer = yield ask_user(prompt)
        return answer

Async generators cannot ``return`` a value, so either kind may instead yield
``Return(value)`` to finish. An async generator that just runs off its end
finishes with ``None``.
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncGenerator, Callable, Generator
from dataclasses import dataclass
from typing import Any

from .errors import NotAStepSequenceError


@dataclass(frozen=True)
class Return:
    """Marker a step sequence yields to finish with ``value``."""

    value: Any = None


@dataclass(frozen=True)
class Step:
    """One advance of a step sequence.

    ``done`` steps carry the terminal result in ``value``; pending steps carry
    the operation to await.
    """

    done: bool
    value: Any = None


async def settle(operation: Any) -> Any:
    """Await ``operation`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(operation):
        return await operation
    return operation


def discard(operation: Any) -> None:
    """Release a pending operation that will never be awaited.

    Bare coroutine objects are closed so they do not warn about never being
    awaited. Tasks and futures are left alone; they are already running.
    """
    if inspect.iscoroutine(operation):
        operation.close()


class StepSequence:
    """Drives one generator produced by a step factory."""

    def __init__(self, steps: Generator[Any, Any, Any] | AsyncGenerator[Any, Any]) -> None:
        self._steps = steps
        self._is_async = inspect.isasyncgen(steps)
        self._finished = False

    @classmethod
    def start(
        cls,
        factory: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> StepSequence:
        """Call ``factory`` and wrap what it returns.

        Exceptions raised by the factory propagate unchanged.
        """
        steps = factory(*args, **kwargs)
        if not (inspect.isgenerator(steps) or inspect.isasyncgen(steps)):
            discard(steps)
            name = getattr(factory, "__qualname__", None) or repr(factory)
            raise NotAStepSequenceError(name, steps)
        return cls(steps)

    @property
    def is_async(self) -> bool:
        return self._is_async

    @property
    def finished(self) -> bool:
        return self._finished

    async def advance(self, resume: Any = None) -> Step:
        """Resume the generator with ``resume`` and return its next step."""
        try:
            if self._is_async:
                produced = await self._steps.asend(resume)  # type: ignore[union-attr]
            else:
                produced = self._steps.send(resume)  # type: ignore[union-attr]
        except StopIteration as exc:
            self._finished = True
            return Step(done=True, value=exc.value)
        except StopAsyncIteration:
            self._finished = True
            return Step(done=True)
        except BaseException:
            self._finished = True
            raise

        if isinstance(produced, Return):
            await self.close()
            return Step(done=True, value=produced.value)
        return Step(done=False, value=produced)

    async def close(self) -> None:
        """Close the generator, running its ``finally`` blocks (idempotent)."""
        self._finished = True
        if self._is_async:
            await self._steps.aclose()  # type: ignore[union-attr]
        else:
            self._steps.close()  # type: ignore[union-attr]
