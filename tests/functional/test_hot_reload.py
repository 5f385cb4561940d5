"""
Functional Tests — Hot Reload.

Exercises the file watcher end to end with real filesystem notifications:
- Reloading after an external edit and notifying observers.
- Reporting failed reloads through the error event.
- Arming/releasing the watcher through read() and close().
- Debouncing and filtering of the low-level FileWatcher.
"""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path

import pytest

from reactive_config import Config, ConfigEvent, SchemaValidationError
from reactive_config.reactive.watcher import FileWatcher


@pytest.fixture
def watched(foo_config: Path):
    """Yield a read Config on foo_config with auto reload (100ms debounce)."""
    cfg = Config(foo_config, {"auto_reload": True, "reload_delay": 100})
    yield cfg
    if cfg.has_been_read:
        cfg.close()


@pytest.mark.functional
class TestHotReload:
    """Tests for watcher-driven reloads of a Config."""

    def test_read_arms_watcher(self, watched: Config, record_event) -> None:
        """Test that read() arms the watcher and emits watcherInitialized."""
        initialized = record_event(watched, ConfigEvent.WATCHER_INITIALIZED)

        watched.read()

        assert watched.auto_reload_active is True
        assert initialized.count == 1
        assert watched.setup_auto_reload() is False
        assert initialized.count == 1

    def test_external_edit_is_reloaded(self, watched: Config, record_event) -> None:
        """Test that an external edit triggers a reload and updates the payload."""
        reloaded = record_event(watched, ConfigEvent.RELOAD)
        watched.read()

        watched.config_file.write_text(json.dumps({"foo": "Hello"}), encoding="utf-8")

        assert reloaded.wait(), "reload was not emitted"
        assert watched.get("foo") == "Hello"

    def test_observers_see_reloaded_value(self, watched: Config, record_event) -> None:
        """Test that observers receive the value of the reloaded file."""
        reloaded = record_event(watched, ConfigEvent.RELOAD)
        watched.read()
        values = []
        watched.observable_of("foo").subscribe(values.append)

        watched.config_file.write_text(json.dumps({"foo": "Hello"}), encoding="utf-8")

        assert reloaded.wait()
        assert values[0] == "world!"
        assert values[-1] == "Hello"

    def test_invalid_edit_emits_error(self, watched: Config, record_event) -> None:
        """Test that a reload failing validation is reported as an error event."""
        errors = record_event(watched, ConfigEvent.ERROR)
        reloaded = record_event(watched, ConfigEvent.RELOAD)
        watched.read()

        watched.config_file.write_text(json.dumps({"foo": 10}), encoding="utf-8")

        assert errors.wait(), "error was not emitted"
        (error,) = errors.calls[0]
        assert isinstance(error, SchemaValidationError)
        assert reloaded.count == 0
        assert watched.has_been_read is True
        assert watched.get("foo") == "world!"

        # The next valid edit recovers.
        watched.config_file.write_text(json.dumps({"foo": "fixed"}), encoding="utf-8")
        assert reloaded.wait()
        assert watched.get("foo") == "fixed"

    def test_close_releases_watcher(self, watched: Config, record_event) -> None:
        """Test that no reload happens after close()."""
        reloaded = record_event(watched, ConfigEvent.RELOAD)
        watched.read()
        watched.close()

        assert watched.auto_reload_active is False
        watched.config_file.write_text(json.dumps({"foo": "late"}), encoding="utf-8")

        assert not reloaded.wait(0.5)
        assert watched.has_been_read is False

    def test_read_after_close_rearms(self, watched: Config, record_event) -> None:
        """Test that read() after close() arms a new watcher."""
        reloaded = record_event(watched, ConfigEvent.RELOAD)
        watched.read()
        watched.close()
        watched.read()

        assert watched.auto_reload_active is True
        watched.config_file.write_text(json.dumps({"foo": "again"}), encoding="utf-8")
        assert reloaded.wait()
        assert watched.get("foo") == "again"

    def test_own_write_is_not_reloaded(self, watched: Config, record_event) -> None:
        """Test that the handle's own write does not revert later unsaved sets."""
        reloaded = record_event(watched, ConfigEvent.RELOAD)
        written = record_event(watched, ConfigEvent.CONFIG_WRITTEN)
        watched.read()

        watched.set("foo", "saved")
        watched.write_on_disk()
        watched.set("foo", "unsaved")
        time.sleep(1.0)

        assert written.count == 1
        assert reloaded.count == 0
        assert watched.get("foo") == "unsaved"
        assert json.loads(watched.config_file.read_text(encoding="utf-8")) == {"foo": "saved"}

    def test_reload_callback_after_close_is_ignored(self, watched: Config, record_event) -> None:
        """Test that a reload already fired when close() runs does not revive the handle."""
        reloaded = record_event(watched, ConfigEvent.RELOAD)
        watched.read()
        callback = watched._watcher._callback
        watched.close()

        watched.config_file.write_text(json.dumps({"foo": "late"}), encoding="utf-8")
        callback()

        assert watched.has_been_read is False
        assert watched.auto_reload_active is False
        assert reloaded.count == 0

    def test_stale_callback_after_reread_is_ignored(self, watched: Config, record_event) -> None:
        """Test that the callback of a released watcher does not reload a re-read handle."""
        watched.read()
        stale = watched._watcher._callback
        watched.close()
        watched.read()
        reloaded = record_event(watched, ConfigEvent.RELOAD)
        watched.set("foo", "in memory")

        stale()

        assert reloaded.count == 0
        assert watched.get("foo") == "in memory"

    def test_manual_setup_auto_reload(self, foo_config: Path, record_event) -> None:
        """Test arming the watcher explicitly on a handle without auto_reload."""
        cfg = Config(foo_config, {"reload_delay": 50}).read()
        reloaded = record_event(cfg, ConfigEvent.RELOAD)

        assert cfg.auto_reload_active is False
        assert cfg.setup_auto_reload() is True
        foo_config.write_text(json.dumps({"foo": "manual"}), encoding="utf-8")

        assert reloaded.wait()
        assert cfg.get("foo") == "manual"
        cfg.close()


@pytest.mark.functional
class TestFileWatcher:
    """Tests for the FileWatcher class."""

    def test_debounces_bursts(self, tmp_path: Path) -> None:
        """Test that a burst of changes triggers a single callback."""
        target = tmp_path / "watched.json"
        target.write_text("{}", encoding="utf-8")
        calls = []
        fired = threading.Event()

        def on_change() -> None:
            calls.append(time.monotonic())
            fired.set()

        watcher = FileWatcher(target, 200, on_change)
        watcher.start()
        try:
            for _ in range(5):
                watcher.schedule()
                time.sleep(0.02)

            assert fired.wait(5.0)
            time.sleep(0.4)
            assert len(calls) == 1
        finally:
            watcher.stop()

    def test_ignores_other_files(self, tmp_path: Path) -> None:
        """Test that changes to sibling files are ignored."""
        target = tmp_path / "watched.json"
        target.write_text("{}", encoding="utf-8")
        fired = threading.Event()
        watcher = FileWatcher(target, 50, fired.set)
        watcher.start()
        try:
            (tmp_path / "other.json").write_text("{}", encoding="utf-8")
            assert not fired.wait(0.5)

            target.write_text('{"a": 1}', encoding="utf-8")
            assert fired.wait(5.0)
        finally:
            watcher.stop()

    def test_stop_is_idempotent(self, tmp_path: Path) -> None:
        """Test that stop() can be called repeatedly and drops pending callbacks."""
        fired = threading.Event()
        watcher = FileWatcher(tmp_path / "watched.json", 100, fired.set)
        watcher.start()
        watcher.schedule()

        watcher.stop()
        watcher.stop()

        assert watcher.running is False
        assert not fired.wait(0.3)
