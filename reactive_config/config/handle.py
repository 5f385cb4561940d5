"""
Reactive Configuration Handle Module.

Provides the Config class, a long-lived handle on one configuration file:
- Loading the file and its sibling JSON schema (creating the file if allowed).
- Schema-validated payload mutation, all-or-nothing.
- Dotted-path get/set of individual fields.
- Hot reload driven by filesystem change notifications.
- Per-field observables notified on every committed payload.
- Immediate and deferred (coalesced) persistence to disk.
"""

from __future__ import annotations

import copy
import os
import threading
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from loguru import logger

from reactive_config.config.errors import ConfigStateError
from reactive_config.config.fields import get_field, limit_depth, set_field
from reactive_config.config.loader import (
    check_extension,
    parse_document,
    read_schema,
    schema_path_for,
    write_document,
)
from reactive_config.config.options import ConfigOptions
from reactive_config.config.schema import DEFAULT_SCHEMA, CompiledSchema
from reactive_config.reactive.events import ConfigEvent, EventChannel, EventHandler
from reactive_config.reactive.observable import FieldObservable, ObserverRegistry
from reactive_config.reactive.watcher import FileWatcher


class Config:
    """
    Reactive, schema-validated configuration file.

    A Config is created once per file. ``read()`` loads the file and its
    schema; every later payload transition goes through schema validation
    and is only committed if it passes. ``close()`` flushes the payload,
    stops watching and completes all observers; the handle can then be
    read again.

    Usage::

        cfg = Config("config/app.json", {"auto_reload": True, "create_on_no_entry": True})
        cfg.on(ConfigEvent.RELOAD, lambda: print("reloaded"))
        cfg.read({"server": {"port": 8080}})

        cfg.observable_of("server.port").subscribe(print)
        cfg.set("server.port", 9090)
        cfg.close()

    Thread Safety:
        Payload transitions (validate, commit, notify) are serialised by a
        re-entrant lock. The watcher and deferred writes run on daemon
        threads and report failures through the ``error`` event.

    Attributes:
        config_file: Path of the configuration file.
        schema_file: Path of the sibling JSON schema file.
        options: Construction options.
    """

    DEFAULT_SCHEMA = DEFAULT_SCHEMA

    def __init__(
        self,
        config_file_path: Union[str, os.PathLike],
        options: Union[ConfigOptions, Mapping[str, Any], None] = None,
    ) -> None:
        """
        Create a handle (no I/O happens until ``read()``).

        Args:
            config_file_path: Path to a ``.json``, ``.yaml``, ``.yml`` or ``.toml`` file.
            options: None, a ConfigOptions, or a mapping of ConfigOptions fields.

        Raises:
            TypeError: If the path or the options have the wrong type.
            ValueError: If the file extension is not supported.
        """
        if not isinstance(config_file_path, (str, os.PathLike)):
            raise TypeError(
                f"config_file_path should be a str or path, "
                f"got {type(config_file_path).__name__}"
            )
        self.options = ConfigOptions.coerce(options)
        self.config_file = Path(config_file_path)
        check_extension(self.config_file)
        self.schema_file = schema_path_for(self.config_file)

        self._lock = threading.RLock()
        self._payload: Dict[str, Any] = {}
        self._schema: Optional[CompiledSchema] = None
        self._has_been_read = False
        self._watcher: Optional[FileWatcher] = None
        self._pending_write: Optional[threading.Timer] = None
        self._watch_generation = 0
        self._disk_snapshot: Optional[str] = None
        self._observers = ObserverRegistry()
        self._events = EventChannel()

        logger.info(
            f"Config initialized — file={self.config_file}, schema={self.schema_file}"
        )

    def __repr__(self) -> str:
        return (
            f"Config({str(self.config_file)!r}, read={self._has_been_read}, "
            f"auto_reload_active={self.auto_reload_active})"
        )

    def __enter__(self) -> Config:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._has_been_read:
            self.close()

    # ------------------------------------------------------------------
    # Options and state
    # ------------------------------------------------------------------

    @property
    def create_on_no_entry(self) -> bool:
        return self.options.create_on_no_entry

    @property
    def auto_reload(self) -> bool:
        return self.options.auto_reload

    @property
    def write_on_set(self) -> bool:
        return self.options.write_on_set

    @property
    def reload_delay(self) -> float:
        return self.options.reload_delay

    @property
    def default_schema(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self.options.default_schema)

    @property
    def has_been_read(self) -> bool:
        """True once ``read()`` succeeded, until ``close()``."""
        return self._has_been_read

    @property
    def auto_reload_active(self) -> bool:
        """True while a file watcher is armed."""
        return self._watcher is not None

    @property
    def observer_count(self) -> int:
        """Number of live field subscriptions."""
        return len(self._observers)

    def _require_read(self, action: str) -> None:
        if not self._has_been_read:
            raise ConfigStateError(
                f"Cannot {action}: the configuration {self.config_file} has not been read yet"
            )

    @staticmethod
    def _require_field_path(field_path: Any) -> None:
        if not isinstance(field_path, str):
            raise TypeError(
                f"field_path should be a str, got {type(field_path).__name__}"
            )

    # ------------------------------------------------------------------
    # Payload (validated store)
    # ------------------------------------------------------------------

    @property
    def payload(self) -> Dict[str, Any]:
        """
        Deep copy of the current payload.

        An empty mapping is returned while the configuration is not read.
        """
        with self._lock:
            if not self._has_been_read:
                return {}
            return copy.deepcopy(self._payload)

    @payload.setter
    def payload(self, new_payload: Mapping[str, Any]) -> None:
        """
        Validate and commit a new payload, then notify every observer.

        Raises:
            ConfigStateError: If the configuration has not been read.
            TypeError: If ``new_payload`` is not a mapping.
            SchemaValidationError: If the payload violates the schema; the
                current payload is kept.
        """
        with self._lock:
            if not self._has_been_read:
                raise ConfigStateError(
                    "Cannot set a new payload before the configuration has been read"
                )
            if not isinstance(new_payload, Mapping):
                raise TypeError(
                    f"payload should be a mapping, got {type(new_payload).__name__}"
                )

            candidate = copy.deepcopy(dict(new_payload))
            self._schema.validate(candidate)

            self._payload = candidate
            logger.debug(f"Payload committed — {self.config_file}")
            self._observers.publish(self._resolve_for_observer)

    def _resolve_for_observer(self, field_path: str) -> Any:
        return copy.deepcopy(get_field(self._payload, field_path))

    def get(self, field_path: str) -> Any:
        """
        Get a field of the configuration.

        Args:
            field_path: Dotted path of the field (e.g. "server.port").

        Returns:
            A copy of the field value, or None if the path does not exist.

        Raises:
            ConfigStateError: If the configuration has not been read.
            TypeError: If ``field_path`` is not a str.
        """
        self._require_read("get a field")
        self._require_field_path(field_path)
        with self._lock:
            return copy.deepcopy(get_field(self._payload, field_path))

    def set(self, field_path: str, value: Any) -> Config:
        """
        Set a field of the configuration.

        The new tree goes through the payload setter, so it is validated
        and observers are notified. With ``write_on_set`` a lazy disk write
        is scheduled after the commit.

        Args:
            field_path: Dotted path of the field.
            value: New field value.

        Returns:
            The handle itself.

        Raises:
            ConfigStateError: If the configuration has not been read.
            TypeError: If ``field_path`` is not a str.
            SchemaValidationError: If the resulting payload violates the schema.
        """
        self._require_read("set a field")
        self._require_field_path(field_path)
        with self._lock:
            self.payload = set_field(self._payload, field_path, value)

        if self.write_on_set:
            self.lazy_write_on_disk()
        return self

    # ------------------------------------------------------------------
    # Loader
    # ------------------------------------------------------------------

    def read(self, default_payload: Optional[Mapping[str, Any]] = None) -> Config:
        """
        (Re)load the configuration and its schema from disk.

        When the file is missing and ``create_on_no_entry`` is set, the
        payload becomes ``default_payload`` (or the payload already held by
        the handle) and a lazy disk write is scheduled. When the schema file
        is missing, the ``default_schema`` option or DEFAULT_SCHEMA is used.

        Args:
            default_payload: Payload to use when the file does not exist.

        Returns:
            The handle itself.

        Raises:
            TypeError: If ``default_payload`` is not a mapping.
            FileNotFoundError: If the file is missing and cannot be created.
            ConfigurationError: If a file cannot be parsed or a schema is invalid.
            SchemaValidationError: If the payload violates the schema; the
                handle keeps its previous state.
        """
        if default_payload is not None and not isinstance(default_payload, Mapping):
            raise TypeError(
                f"default_payload should be a mapping, got {type(default_payload).__name__}"
            )

        must_persist = False
        content: Optional[str] = None
        try:
            content = self.config_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            if not self.create_on_no_entry:
                raise
            with self._lock:
                source = default_payload if default_payload is not None else self._payload
                candidate = copy.deepcopy(dict(source))
            must_persist = True
            logger.warning(
                f"Configuration file not found, it will be created: {self.config_file}"
            )
        else:
            candidate = parse_document(content, self.config_file)

        try:
            schema_document = read_schema(self.schema_file)
        except FileNotFoundError:
            default_schema = self.options.default_schema
            schema_document = default_schema if default_schema is not None else DEFAULT_SCHEMA
            logger.warning(
                f"No schema file at {self.schema_file}, using "
                f"{'the default_schema option' if default_schema is not None else 'DEFAULT_SCHEMA'}"
            )
        compiled = CompiledSchema(schema_document)

        with self._lock:
            previous_schema, previously_read = self._schema, self._has_been_read
            self._schema = compiled
            self._has_been_read = True
            try:
                self.payload = candidate
            except Exception:
                self._schema = previous_schema
                self._has_been_read = previously_read
                raise
            self._disk_snapshot = content

        logger.info(f"Configuration read: {self.config_file}")

        if must_persist:
            self.lazy_write_on_disk()
        if self.auto_reload:
            self.setup_auto_reload()
        return self

    # ------------------------------------------------------------------
    # Reactive layer
    # ------------------------------------------------------------------

    def on(self, event: Union[ConfigEvent, str], handler: EventHandler) -> Callable[[], None]:
        """
        Register a handler for a ConfigEvent.

        ``error`` handlers receive the exception; the other events carry no
        arguments.

        Returns:
            A callable removing the handler.
        """
        return self._events.on(event, handler)

    def setup_auto_reload(self) -> bool:
        """
        Arm the file watcher.

        Returns:
            True if a watcher was armed, False if one was already active.

        Raises:
            ConfigStateError: If the configuration has not been read.
        """
        self._require_read("set up auto reload")
        with self._lock:
            if self._watcher is not None:
                return False
            self._watch_generation += 1
            callback = partial(self._reload_from_watcher, self._watch_generation)
            watcher = FileWatcher(self.config_file, self.reload_delay, callback)
            watcher.start()
            self._watcher = watcher

        logger.info(f"Auto reload enabled for {self.config_file}")
        self._events.emit(ConfigEvent.WATCHER_INITIALIZED)
        return True

    def _reload_from_watcher(self, generation: int) -> None:
        # A watcher released by close() must not re-read the file.
        with self._lock:
            if generation != self._watch_generation or not self._has_been_read:
                logger.debug(f"Ignoring change of {self.config_file} from a released watcher")
                return
            try:
                content = self.config_file.read_text(encoding="utf-8")
            except OSError:
                content = None
            if content is not None and content == self._disk_snapshot:
                logger.debug(f"{self.config_file} unchanged since last read or write, not reloading")
                return
            try:
                self.read()
            except Exception as e:
                error = e
            else:
                error = None

        if error is not None:
            logger.error(f"Hot reload of {self.config_file} failed: {error}")
            self._events.emit(ConfigEvent.ERROR, error)
            return
        logger.info(f"Configuration hot reloaded: {self.config_file}")
        self._events.emit(ConfigEvent.RELOAD)

    def observable_of(self, field_path: str, depth: Optional[int] = None) -> FieldObservable:
        """
        Observe a field of the configuration.

        The field value is captured now and delivered first to every
        subscriber; the field value is then pushed after every committed
        payload, whichever field changed.

        Args:
            field_path: Dotted path of the field.
            depth: If given, emit snapshots in which mappings deeper than
                ``depth`` levels are replaced by their key list.

        Returns:
            A lazy FieldObservable.

        Raises:
            ConfigStateError: If the configuration has not been read.
            TypeError: If ``field_path`` is not a str or ``depth`` not an int.
            ValueError: If ``depth`` is negative.
        """
        self._require_field_path(field_path)
        transform = None
        if depth is not None:
            if isinstance(depth, bool) or not isinstance(depth, int):
                raise TypeError(f"depth should be an int, got {type(depth).__name__}")
            if depth < 0:
                raise ValueError("depth should not be negative")
            transform = partial(limit_depth, depth=depth)

        value = self.get(field_path)
        return FieldObservable(field_path, value, self._observers, transform)

    def write_on_disk(self) -> None:
        """
        Write the current payload to the configuration file.

        Raises:
            ConfigStateError: If the configuration has not been read.
            OSError: If the file cannot be written.
        """
        self._require_read("write the configuration on disk")
        with self._lock:
            self._disk_snapshot = write_document(
                self.config_file, self._payload, indent=self.options.indent
            )

        logger.info(f"Configuration written: {self.config_file}")
        self._events.emit(ConfigEvent.CONFIG_WRITTEN)

    def lazy_write_on_disk(self) -> None:
        """
        Schedule ``write_on_disk()`` on a background thread.

        Requests made while a write is pending are coalesced into it.
        Failures are emitted as ``error`` events.

        Raises:
            ConfigStateError: If the configuration has not been read.
        """
        self._require_read("schedule a write of the configuration")
        with self._lock:
            if self._pending_write is not None:
                return
            timer = threading.Timer(0, self._deferred_write)
            timer.daemon = True
            self._pending_write = timer
        timer.start()

    def _deferred_write(self) -> None:
        with self._lock:
            if self._pending_write is not threading.current_thread():
                return
            self._pending_write = None
        try:
            self.write_on_disk()
        except Exception as e:
            logger.error(f"Deferred write of {self.config_file} failed: {e}")
            self._events.emit(ConfigEvent.ERROR, e)

    def close(self) -> None:
        """
        Flush the payload to disk and deactivate the handle.

        The file watcher is released, every observer is completed and the
        handle returns to the unread state (``read()`` may be called again).
        Teardown happens even if the final write fails; the write error is
        then raised.

        Raises:
            ConfigStateError: If the configuration has not been read.
        """
        self._require_read("close the configuration")
        with self._lock:
            pending, self._pending_write = self._pending_write, None
        if pending is not None:
            pending.cancel()

        try:
            self.write_on_disk()
        finally:
            self._teardown()

    def _teardown(self) -> None:
        with self._lock:
            watcher, self._watcher = self._watcher, None
            self._watch_generation += 1
        if watcher is not None:
            watcher.stop()
            logger.info(f"Auto reload disabled for {self.config_file}")

        completed = self._observers.complete_all()
        with self._lock:
            self._has_been_read = False
        logger.info(
            f"Configuration closed: {self.config_file} ({completed} observer(s) completed)"
        )
