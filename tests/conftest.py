"""
Root conftest.py — Shared Pytest fixtures and configuration.

Provides fixtures for:
- Temporary configuration directories and JSON file writers.
- A sample schema requiring a string "foo" field.
- Recording ConfigEvent notifications emitted from background threads.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import pytest

from reactive_config import Config, ConfigEvent


class EventRecorder:
    """Records the notifications of one ConfigEvent and lets tests wait for them."""

    def __init__(self, cfg: Config, event: ConfigEvent) -> None:
        self.calls: List[Tuple[Any, ...]] = []
        self._received = threading.Event()
        self.unsubscribe = cfg.on(event, self)

    def __call__(self, *args: Any) -> None:
        self.calls.append(args)
        self._received.set()

    @property
    def count(self) -> int:
        return len(self.calls)

    def wait(self, timeout: float = 5.0) -> bool:
        """Wait until at least one notification was recorded since the last reset."""
        return self._received.wait(timeout)

    def reset(self) -> None:
        self._received.clear()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for configuration files."""
    directory = tmp_path / "config"
    directory.mkdir()
    return directory


@pytest.fixture
def write_json() -> Callable[[Path, Any], Path]:
    """Return a helper writing a JSON document to a path."""

    def _write(path: Path, data: Any) -> Path:
        path.write_text(json.dumps(data, indent=4), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def foo_schema() -> Dict[str, Any]:
    """Return a schema requiring a string "foo" field."""
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "title": "FOO",
        "type": "object",
        "required": ["foo"],
        "properties": {
            "foo": {"type": "string"},
        },
        "additionalProperties": True,
    }


@pytest.fixture
def foo_config(config_dir: Path, write_json, foo_schema) -> Path:
    """Create config.json ({"foo": "world!"}) and its config.schema.json."""
    write_json(config_dir / "config.schema.json", foo_schema)
    return write_json(config_dir / "config.json", {"foo": "world!"})


@pytest.fixture
def record_event() -> Callable[[Config, ConfigEvent], EventRecorder]:
    """Return a factory attaching an EventRecorder to a Config."""
    return EventRecorder


def pytest_configure(config: pytest.Config) -> None:
    """Register custom Pytest markers."""
    config.addinivalue_line(
        "markers",
        "functional: Functional tests relying on filesystem notifications",
    )
