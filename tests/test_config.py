"""Tests for InterruptibleOptions defaults and YAML loading."""

from __future__ import annotations

import asyncio
import logging

import pytest
import yaml

from interruptible import InterruptibleOptions, InvalidOptionsError, make_interruptible, read_trace


def _flow(value):
    got = yield asyncio.sleep(0, result=value)
    return got


def test_defaults(monkeypatch):
    monkeypatch.delenv("INTERRUPTIBLE_CLOSE_SUPERSEDED", raising=False)
    monkeypatch.delenv("INTERRUPTIBLE_LOG_EVENTS", raising=False)
    monkeypatch.delenv("INTERRUPTIBLE_TRACE_PATH", raising=False)

    options = InterruptibleOptions()
    assert options.name == ""
    assert options.close_superseded is True
    assert options.log_events is False
    assert options.trace_path is None
    assert options.extras == {}


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("INTERRUPTIBLE_CLOSE_SUPERSEDED", "false")
    monkeypatch.setenv("INTERRUPTIBLE_LOG_EVENTS", "1")
    monkeypatch.setenv("INTERRUPTIBLE_TRACE_PATH", str(tmp_path / "trace.jsonl"))

    options = InterruptibleOptions()
    assert options.close_superseded is False
    assert options.log_events is True
    assert options.trace_path == str(tmp_path / "trace.jsonl")


def test_file_round_trip_preserves_extras(tmp_path):
    path = tmp_path / "nested" / "options.yaml"
    options = InterruptibleOptions(
        name="push-token",
        close_superseded=False,
        log_events=True,
        trace_path="runs.jsonl",
        extras={"owner": "notifications"},
    )
    options.to_file(path)

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert data["owner"] == "notifications"

    loaded = InterruptibleOptions.from_file(path)
    assert loaded.name == "push-token"
    assert loaded.close_superseded is False
    assert loaded.log_events is True
    assert loaded.trace_path == "runs.jsonl"
    assert loaded.extras == {"owner": "notifications"}


def test_empty_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("INTERRUPTIBLE_CLOSE_SUPERSEDED", raising=False)
    path = tmp_path / "options.yaml"
    path.write_text("", encoding="utf-8")

    assert InterruptibleOptions.from_file(path).close_superseded is True


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        InterruptibleOptions.from_file(tmp_path / "missing.yaml")


def test_non_mapping_file_raises(tmp_path):
    path = tmp_path / "options.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(InvalidOptionsError, match="YAML mapping"):
        InterruptibleOptions.from_file(path)


def test_non_bool_flag_raises(tmp_path):
    path = tmp_path / "options.yaml"
    path.write_text("close_superseded: sometimes\n", encoding="utf-8")

    with pytest.raises(ValueError, match="close_superseded"):
        InterruptibleOptions.from_file(path)


@pytest.mark.asyncio
async def test_trace_path_attaches_trace_observer(tmp_path) -> None:
    trace = tmp_path / "runs" / "trace.jsonl"
    call = make_interruptible(_flow, options=InterruptibleOptions(name="traced", trace_path=str(trace)))

    first = call("a")
    second = call("b")
    assert await first is None
    assert await second == "b"

    events = read_trace(trace)
    assert [(e.run_id, e.type) for e in events] == [
        (1, "started"),
        (2, "started"),
        (1, "superseded"),
        (2, "completed"),
    ]
    assert {e.name for e in events} == {"traced"}


@pytest.mark.asyncio
async def test_log_events_attaches_logging_observer(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="interruptible")
    call = make_interruptible(_flow, options=InterruptibleOptions(name="logged", log_events=True))

    first = call("a")
    await call("b")
    await first

    messages = [record.getMessage() for record in caplog.records]
    assert "logged run 1 superseded (advance)" in messages
    assert any(message.startswith("logged run 2 completed") for message in messages)
    superseded = next(r for r in caplog.records if r.getMessage() == "logged run 1 superseded (advance)")
    assert superseded.levelno == logging.INFO
