"""Callback registration channel for store change notifications.

Each store owns its own channel. Listeners are snapshotted under a lock and
invoked after it is released, so a listener may call back into the store
that emitted the event.
"""

import logging
from collections.abc import Callable
from threading import Lock
from typing import Generic
from typing import TypeVar

logger = logging.getLogger(__name__)

EventT = TypeVar("EventT")


class EventChannel(Generic[EventT]):
    """Ordered list of listeners for one kind of event."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Callable[[EventT], None]] = []
        self._lock = Lock()

    def subscribe(self, listener: Callable[[EventT], None]) -> None:
        """Register a listener. Registering the same callable twice is a no-op."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[EventT], None]) -> bool:
        with self._lock:
            if listener not in self._listeners:
                return False
            self._listeners.remove(listener)
            return True

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def emit(self, event: EventT) -> None:
        """Deliver an event to every listener.

        A failing listener is logged and does not stop delivery to the rest.
        """
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener {listener!r} on channel '{self.name}' failed")
