"""Bounded single-producer/single-consumer channel for changed paths."""

from __future__ import annotations

import threading
import time
from collections import deque
from queue import Empty

CHANNEL_CAPACITY = 64


class ChangeChannel:
    """FIFO of changed paths with blocking backpressure and cancellation.

    ``put`` blocks while the channel is full and never drops an item; it
    returns ``False`` instead of enqueueing once the channel is closed, which
    also wakes any producer blocked on a full channel. ``get`` keeps returning
    buffered items after close and returns ``None`` once closed and empty.
    """

    def __init__(self, capacity: int = CHANNEL_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._items: deque[str] = deque()
        self._cond = threading.Condition()
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def put(self, item: str) -> bool:
        with self._cond:
            while len(self._items) >= self.capacity and not self._closed:
                self._cond.wait()
            if self._closed:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    def get(self, timeout: float | None = None) -> str | None:
        """Pop the oldest path; raise ``queue.Empty`` if ``timeout`` elapses."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._items and not self._closed:
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise Empty
                self._cond.wait(remaining)
            if not self._items:
                return None
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def __iter__(self):
        while True:
            item = self.get()
            if item is None:
                return
            yield item

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()


__all__ = ["CHANNEL_CAPACITY", "ChangeChannel"]
