"""Instance-scoped publish/subscribe for transport events ("logged", "error")."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class EventEmitter:
    """
    Minimal observer list keyed by event name.

    Emitting an event nobody listens to is a no-op (including "error").
    A listener that raises is logged and skipped; other listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}
        self._listeners_lock = threading.Lock()

    def on(self, event: str, listener: Listener) -> Listener:
        with self._listeners_lock:
            self._listeners.setdefault(event, []).append((listener, False))
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        with self._listeners_lock:
            self._listeners.setdefault(event, []).append((listener, True))
        return listener

    def off(self, event: str, listener: Listener) -> None:
        with self._listeners_lock:
            entries = self._listeners.get(event, [])
            self._listeners[event] = [e for e in entries if e[0] is not listener]

    def listener_count(self, event: str) -> int:
        with self._listeners_lock:
            return len(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener for event with args. Returns True if any listener was called."""
        with self._listeners_lock:
            entries = list(self._listeners.get(event, []))
            if any(once for _, once in entries):
                self._listeners[event] = [e for e in entries if not e[1]]
        for listener, _ in entries:
            try:
                listener(*args)
            except Exception as e:
                logger.warning(
                    "Listener for %r failed: %s", event, e, exc_info=True
                )
        return bool(entries)
