"""Signal bus for lookup state events.

Provides a small observer mechanism so a presentation layer can subscribe
to published lookup state without polling.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class Signal:
    """A named event that listeners can connect to.

    Listeners are called synchronously in connection order. A listener that
    raises is logged and does not prevent the remaining listeners from running.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Callable[..., Any]] = []

    def connect(self, listener: Callable[..., Any]) -> None:
        """Register a listener (ignored if already connected)."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def disconnect(self, listener: Callable[..., Any]) -> None:
        """Unregister a listener."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            logger.debug("Listener not connected to %s", self.name)

    def emit(self, *args: Any) -> None:
        """Call every connected listener with the given arguments."""
        for listener in list(self._listeners):
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener for %s failed", self.name)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class LookupSignalBus:
    """Event bus for character lookup state."""

    def __init__(self) -> None:
        self.state_changed = Signal("state_changed")  # Emits LookupState
        self.recent_searches_changed = Signal(
            "recent_searches_changed"
        )  # Emits list of RecentSearchEntry
        self.error_occurred = Signal("error_occurred")  # Emits error message
