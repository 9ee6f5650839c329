"""Controller options — environment defaults with optional YAML files."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import InvalidOptionsError

_FALSE_VALUES = ("0", "false", "no", "off")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in _FALSE_VALUES


@dataclass
class InterruptibleOptions:
    """How a controller labels, reports, and cleans up its runs.

    Unknown YAML fields are preserved in ``extras``.

    Usage::

        options = InterruptibleOptions.from_file("interruptible.yaml")
        refresh = make_interruptible(refresh_token_flow, options=options)
    """

    name: str = ""
    close_superseded: bool = field(
        default_factory=lambda: _env_flag("INTERRUPTIBLE_CLOSE_SUPERSEDED", "1")
    )
    log_events: bool = field(default_factory=lambda: _env_flag("INTERRUPTIBLE_LOG_EVENTS", "0"))
    trace_path: str | None = field(default_factory=lambda: os.getenv("INTERRUPTIBLE_TRACE_PATH"))
    extras: dict[str, Any] = field(default_factory=dict)

    _KNOWN_FIELDS = frozenset({"name", "close_superseded", "log_events", "trace_path"})
    _BOOL_FIELDS = frozenset({"close_superseded", "log_events"})

    @classmethod
    def from_file(cls, path: str | Path) -> InterruptibleOptions:
        """Load options from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Options file not found: {path}")
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise InvalidOptionsError(f"{path} must contain a YAML mapping")
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> InterruptibleOptions:
        """Build options from a plain dict, preserving unknown keys in extras."""
        known: dict[str, Any] = {}
        extras: dict[str, Any] = {}
        for key, value in data.items():
            if key not in cls._KNOWN_FIELDS:
                extras[key] = value
                continue
            if key in cls._BOOL_FIELDS and not isinstance(value, bool):
                raise InvalidOptionsError(f"'{key}' must be true or false, got {value!r}")
            known[key] = value
        if known.get("trace_path") is not None:
            known["trace_path"] = str(known["trace_path"])
        known["extras"] = extras
        return cls(**known)

    def to_file(self, path: str | Path) -> None:
        """Save options to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._to_dict(), f, default_flow_style=False, sort_keys=False)

    def _to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.name:
            data["name"] = self.name
        data["close_superseded"] = self.close_superseded
        data["log_events"] = self.log_events
        if self.trace_path:
            data["trace_path"] = self.trace_path
        data.update(self.extras)
        return data
