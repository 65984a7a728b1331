"""
ChangeStream: a small thread-safe event emitter for height notifications.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger("ledger_monitor.events")

Listener = Callable[[int], None]


class Subscription:
    """Handle returned by ChangeStream.subscribe(); dispose() detaches the listener."""

    def __init__(self, stream: ChangeStream, listener: Listener) -> None:
        self._stream = stream
        self.listener = listener

    def dispose(self) -> None:
        self._stream.unsubscribe(self.listener)


class ChangeStream:
    """
    Delivers the latest known height to every subscribed listener.

    Listeners run on the thread that fires the event (the poll cycle). A
    listener that raises is logged and skipped; the others still run.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()
        self._closed = False

    def subscribe(self, listener: Listener) -> Subscription:
        with self._lock:
            if not self._closed:
                self._listeners.append(listener)
        return Subscription(self, listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def fire(self, height: int) -> None:
        with self._lock:
            if self._closed:
                return
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(height)
            except Exception as e:
                logger.error(f"Change listener {listener!r} failed: {e}")

    def close(self) -> None:
        """Drop all listeners; later fire() calls are no-ops."""
        with self._lock:
            self._closed = True
            self._listeners.clear()

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)
