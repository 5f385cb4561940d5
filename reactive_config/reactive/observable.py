"""
Field Observables Module.

Push-based streams of configuration field values:
- FieldObservable: lazy stream of one field; emits the captured value on
  subscription, then every value committed afterwards.
- Subscription: handle of one subscriber, used to unsubscribe.
- ObserverRegistry: every live subscription of a handle, keyed by a stable
  identifier assigned at registration.
"""

from __future__ import annotations

import copy
import itertools
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

ValueTransform = Callable[[Any], Any]


class Subscription:
    """
    A subscriber attached to one field path.

    Attributes:
        field_path: Dotted path of the observed field.
    """

    def __init__(
        self,
        field_path: str,
        on_next: Callable[[Any], Any],
        on_complete: Optional[Callable[[], Any]] = None,
        transform: Optional[ValueTransform] = None,
    ) -> None:
        self.field_path = field_path
        self._on_next = on_next
        self._on_complete = on_complete
        self._transform = transform
        self._registry: Optional[ObserverRegistry] = None
        self._id: Optional[int] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once the subscription has been completed or unsubscribed."""
        return self._closed

    def _attach(self, registry: ObserverRegistry, subscription_id: int) -> None:
        self._registry = registry
        self._id = subscription_id

    def deliver(self, value: Any) -> None:
        """Push a value to the subscriber (no-op once closed)."""
        if self._closed:
            return
        if self._transform is not None:
            value = self._transform(value)
        try:
            self._on_next(value)
        except Exception:
            logger.exception(f"Observer of '{self.field_path}' raised on a new value")

    def complete(self) -> None:
        """Close the subscription and signal completion to the subscriber."""
        if self._closed:
            return
        self._closed = True
        if self._on_complete is not None:
            try:
                self._on_complete()
            except Exception:
                logger.exception(f"Observer of '{self.field_path}' raised on completion")

    def unsubscribe(self) -> None:
        """Complete the subscription and remove it from its registry."""
        if self._registry is not None and self._id is not None:
            self._registry.remove(self._id)
        self.complete()


class ObserverRegistry:
    """
    Live subscriptions of a configuration handle.

    Subscriptions are stored under increasing identifiers, so iteration
    follows registration order. Iteration always works on a snapshot, so
    subscriptions may be added or removed while values are published.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count()
        self._subscriptions: Dict[int, Subscription] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def register(self, subscription: Subscription) -> int:
        """Add a subscription and return its identifier."""
        with self._lock:
            subscription_id = next(self._ids)
            self._subscriptions[subscription_id] = subscription
        subscription._attach(self, subscription_id)
        logger.debug(
            f"Observer #{subscription_id} registered on '{subscription.field_path}'"
        )
        return subscription_id

    def remove(self, subscription_id: int) -> None:
        """Remove a subscription (unknown identifiers are ignored)."""
        with self._lock:
            removed = self._subscriptions.pop(subscription_id, None)
        if removed is not None:
            logger.debug(f"Observer #{subscription_id} removed")

    def snapshot(self) -> List[Tuple[int, Subscription]]:
        """Return the (identifier, subscription) pairs in registration order."""
        with self._lock:
            return sorted(self._subscriptions.items())

    def publish(self, resolve: Callable[[str], Any]) -> None:
        """Deliver ``resolve(field_path)`` to every live subscription."""
        for _, subscription in self.snapshot():
            subscription.deliver(resolve(subscription.field_path))

    def complete_all(self) -> int:
        """
        Complete every subscription and empty the registry.

        Returns:
            Number of subscriptions completed.
        """
        pairs = self.snapshot()
        for subscription_id, subscription in pairs:
            self.remove(subscription_id)
            subscription.complete()
        return len(pairs)


class FieldObservable:
    """
    Lazy stream of the values of one configuration field.

    Nothing is registered until ``subscribe()`` is called. Each subscriber
    first receives the value captured when the observable was created, then
    the field value after every successful payload commit.

    Usage::

        observable = cfg.observable_of("server.port")
        subscription = observable.subscribe(print, on_complete=lambda: print("done"))
        ...
        subscription.unsubscribe()
    """

    def __init__(
        self,
        field_path: str,
        initial_value: Any,
        registry: ObserverRegistry,
        transform: Optional[ValueTransform] = None,
    ) -> None:
        self.field_path = field_path
        self._initial_value = initial_value
        self._registry = registry
        self._transform = transform

    def subscribe(
        self,
        on_next: Callable[[Any], Any],
        on_complete: Optional[Callable[[], Any]] = None,
    ) -> Subscription:
        """
        Subscribe to the field.

        Args:
            on_next: Called with each value of the field.
            on_complete: Called once when the stream completes.

        Returns:
            The Subscription handle.
        """
        if not callable(on_next):
            raise TypeError("on_next should be callable")
        subscription = Subscription(self.field_path, on_next, on_complete, self._transform)
        subscription.deliver(copy.deepcopy(self._initial_value))
        self._registry.register(subscription)
        return subscription
