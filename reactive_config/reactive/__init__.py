"""
Reactive Module.

Building blocks of the reactive layer of a configuration handle:
event notifications, per-field observables and the debounced file watcher.
"""

from reactive_config.reactive.events import ConfigEvent, EventChannel
from reactive_config.reactive.observable import (
    FieldObservable,
    ObserverRegistry,
    Subscription,
)
from reactive_config.reactive.watcher import FileWatcher

__all__ = [
    "ConfigEvent",
    "EventChannel",
    "FieldObservable",
    "FileWatcher",
    "ObserverRegistry",
    "Subscription",
]
