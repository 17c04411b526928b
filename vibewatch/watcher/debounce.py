"""Quiet-period debouncer driven by a single timer thread."""

from __future__ import annotations

import enum
import logging
import threading
import time
from collections.abc import Callable

DEBOUNCE_SECONDS = 0.1


class DebounceState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"


class Debouncer:
    """Run ``callback`` once events stop arriving for ``interval`` seconds.

    State is ``IDLE`` or ``PENDING(deadline)``. ``schedule`` moves to
    ``PENDING`` and pushes the deadline out to a full interval from now, so a
    steady burst keeps extending the quiet period. Only the timer thread moves
    ``PENDING`` back to ``IDLE``, and it invokes ``callback`` without holding
    the state lock.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        interval: float = DEBOUNCE_SECONDS,
        *,
        name: str = "vibewatch-debounce",
        logger: logging.Logger | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._callback = callback
        self.interval = interval
        self._name = name
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._monotonic = monotonic
        self._cond = threading.Condition()
        self._state = DebounceState.IDLE
        self._deadline: float | None = None
        self._closed = False
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> DebounceState:
        with self._cond:
            return self._state

    @property
    def deadline(self) -> float | None:
        with self._cond:
            return self._deadline

    def schedule(self) -> None:
        """Start or reset the quiet period."""
        with self._cond:
            if self._closed:
                return
            self._state = DebounceState.PENDING
            self._deadline = self._monotonic() + self.interval
            if self._thread is None:
                self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
                self._thread.start()
            self._cond.notify_all()

    def _next_fire(self) -> bool:
        """Wait for the deadline; return ``False`` once closed."""
        with self._cond:
            while not self._closed:
                if self._state is DebounceState.IDLE or self._deadline is None:
                    self._cond.wait()
                    continue
                remaining = self._deadline - self._monotonic()
                if remaining > 0:
                    self._cond.wait(remaining)
                    continue
                self._state = DebounceState.IDLE
                self._deadline = None
                return True
            return False

    def _run(self) -> None:
        while self._next_fire():
            try:
                self._callback()
            except Exception:
                self._log.exception("debounced callback failed")

    def close(self, timeout: float | None = 1.0) -> None:
        with self._cond:
            self._closed = True
            self._state = DebounceState.IDLE
            self._deadline = None
            self._cond.notify_all()
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)


__all__ = ["DEBOUNCE_SECONDS", "DebounceState", "Debouncer"]
