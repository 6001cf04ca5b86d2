"""Session-ended notifications for the rest of the application."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

SessionListener = Callable[[], None]
Unsubscribe = Callable[[], None]


class SessionBroadcaster:
    """Fan out a payload-less "session ended" signal to registered listeners."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: list[SessionListener] = []

    def subscribe(self, callback: SessionListener) -> Unsubscribe:
        """Register ``callback`` and return a disposer that removes it again."""
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                try:
                    self._listeners.remove(callback)
                except ValueError:
                    pass

        return unsubscribe

    def announce_session_ended(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        logger.warning("Session ended; notifying %d listener(s)", len(listeners))
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("Session-ended listener %r failed", listener)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)
