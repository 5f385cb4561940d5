"""
Event Channel Module.

Named notifications emitted by a configuration handle. Consumers register
handlers with ``on()`` and keep the returned callable to unregister them.
"""

from __future__ import annotations

import itertools
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Union

from loguru import logger


class ConfigEvent(Enum):
    """Notifications emitted by a configuration handle."""

    RELOAD = "reload"
    CONFIG_WRITTEN = "configWritten"
    ERROR = "error"
    WATCHER_INITIALIZED = "watcherInitialized"


EventHandler = Callable[..., Any]


class EventChannel:
    """
    Registry of event handlers keyed by ConfigEvent.

    Handlers of one event are called in registration order. A handler that
    raises is logged and does not prevent delivery to the others.

    Usage::

        channel = EventChannel()
        unsubscribe = channel.on(ConfigEvent.ERROR, lambda exc: print(exc))
        channel.emit(ConfigEvent.ERROR, RuntimeError("boom"))
        unsubscribe()
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count()
        self._handlers: Dict[ConfigEvent, Dict[int, EventHandler]] = {
            event: {} for event in ConfigEvent
        }

    @staticmethod
    def _coerce(event: Union[ConfigEvent, str]) -> ConfigEvent:
        try:
            return ConfigEvent(event)
        except ValueError:
            raise ValueError(
                f"Unknown event '{event}'. "
                f"Known events: {[e.value for e in ConfigEvent]}"
            ) from None

    def on(self, event: Union[ConfigEvent, str], handler: EventHandler) -> Callable[[], None]:
        """
        Register ``handler`` for ``event``.

        Args:
            event: A ConfigEvent or its string value (e.g. "configWritten").
            handler: Callable receiving the event arguments.

        Returns:
            A callable that removes the handler (safe to call more than once).
        """
        if not callable(handler):
            raise TypeError("handler should be callable")
        kind = self._coerce(event)
        with self._lock:
            handler_id = next(self._ids)
            self._handlers[kind][handler_id] = handler

        def unsubscribe() -> None:
            with self._lock:
                self._handlers[kind].pop(handler_id, None)

        return unsubscribe

    def emit(self, event: Union[ConfigEvent, str], *args: Any) -> int:
        """
        Call every handler of ``event`` with ``args``.

        Returns:
            Number of handlers called.
        """
        kind = self._coerce(event)
        with self._lock:
            handlers: List[EventHandler] = list(self._handlers[kind].values())

        for handler in handlers:
            try:
                handler(*args)
            except Exception:
                logger.exception(f"Handler for event '{kind.value}' raised")
        return len(handlers)

    def listener_count(self, event: Union[ConfigEvent, str]) -> int:
        """Return the number of handlers registered for ``event``."""
        kind = self._coerce(event)
        with self._lock:
            return len(self._handlers[kind])
