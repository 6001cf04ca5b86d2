"""Reference count of in-flight requests driving a global busy indicator."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

Hook = Callable[[], None]


class ActivityCounter:
    """Count overlapping requests and report 0->1 and 1->0 transitions.

    ``on_busy`` fires when the first request starts and ``on_idle`` when the
    last one settles. Hooks are serialised and each call re-reads the count,
    so the indicator always ends up matching the final count even when
    threads interleave their transitions.
    """

    def __init__(self, on_busy: Hook | None = None, on_idle: Hook | None = None) -> None:
        self._lock = threading.Lock()
        self._hook_lock = threading.Lock()
        self._count = 0
        self._shown = False
        self._on_busy = on_busy
        self._on_idle = on_idle

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def busy(self) -> bool:
        return self.count > 0

    @property
    def indicator_shown(self) -> bool:
        with self._hook_lock:
            return self._shown

    def begin(self) -> None:
        with self._lock:
            self._count += 1
        self._sync_indicator()

    def end(self) -> None:
        with self._lock:
            if self._count == 0:
                logger.debug("Activity counter end() without matching begin(); ignoring")
                return
            self._count -= 1
        self._sync_indicator()

    @contextmanager
    def track(self) -> Iterator[None]:
        self.begin()
        try:
            yield
        finally:
            self.end()

    def _sync_indicator(self) -> None:
        with self._hook_lock:
            busy = self.count > 0
            if busy == self._shown:
                return
            self._shown = busy
            hook = self._on_busy if busy else self._on_idle
            if hook:
                hook()
