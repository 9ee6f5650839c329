from __future__ import annotations

import asyncio

import pytest

from interruptible.errors import NotAStepSequenceError
from interruptible.observers import RecordingObserver, TraceObserver, read_trace
from interruptible.events import RunEvent
from interruptible.steps import Return, StepSequence, discard, settle


def _countdown(start):
    total = 0
    while start:
        total += yield start
        start -= 1
    return total


@pytest.mark.asyncio
async def test_sync_sequence_feeds_resume_values() -> None:
    sequence = StepSequence.start(_countdown, (2,), {})
    assert not sequence.is_async

    step = await sequence.advance()
    assert (step.done, step.value) == (False, 2)
    step = await sequence.advance(10)
    assert (step.done, step.value) == (False, 1)
    step = await sequence.advance(5)
    assert step.done
    assert step.value == 15
    assert sequence.finished


@pytest.mark.asyncio
async def test_async_sequence_stops_on_return_marker() -> None:
    closed: list[bool] = []

    async def flow(value):
        try:
            doubled = yield value
            yield Return(doubled)
        finally:
            closed.append(True)

    sequence = StepSequence.start(flow, (), {"value": 4})
    assert sequence.is_async
    step = await sequence.advance()
    assert step.value == 4
    step = await sequence.advance(8)
    assert step.done and step.value == 8
    assert closed == [True]


def test_start_rejects_non_generators() -> None:
    with pytest.raises(NotAStepSequenceError) as excinfo:
        StepSequence.start(lambda: [1, 2], (), {})
    assert excinfo.value.returned_type == "list"


@pytest.mark.asyncio
async def test_settle_awaits_only_awaitables() -> None:
    assert await settle(3) == 3
    assert await settle(asyncio.sleep(0, result="slept")) == "slept"

    future = asyncio.get_running_loop().create_future()
    future.set_result("ready")
    assert await settle(future) == "ready"


def test_discard_closes_coroutines() -> None:
    async def pending():
        return 1

    coroutine = pending()
    discard(coroutine)
    assert coroutine.cr_frame is None
    discard("not awaitable")


def test_recording_observer_filters_by_run() -> None:
    recorder = RecordingObserver()
    recorder.on_event(RunEvent(type="started", name="f", run_id=1))
    recorder.on_event(RunEvent(type="started", name="f", run_id=2))
    recorder.on_event(RunEvent(type="superseded", name="f", run_id=1, detail="await"))

    assert recorder.types() == ["started", "started", "superseded"]
    assert recorder.types(run_id=1) == ["started", "superseded"]


def test_read_trace_skips_corrupt_lines(tmp_path) -> None:
    path = tmp_path / "trace.jsonl"
    observer = TraceObserver(path)
    observer.on_event(RunEvent(type="started", name="f", run_id=1))
    with open(path, "a", encoding="utf-8") as f:
        f.write("not json\n\n{\"missing\": \"type\"}\n")
    observer.on_event(RunEvent(type="completed", name="f", run_id=1, detail="'ok'"))

    events = read_trace(path)
    assert [e.type for e in events] == ["started", "completed"]
    assert events[1].detail == "'ok'"
