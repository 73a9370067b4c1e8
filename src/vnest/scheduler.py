"""Delayed callbacks with cancellation handles."""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable

logger = logging.getLogger(__name__)


class TimerHandle:
    """A scheduled callback that can be cancelled before it fires."""

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._cancelled = False
        self._fired = False
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True

    def fire(self) -> None:
        """Run the callback once, unless cancelled."""
        with self._lock:
            if not self.pending:
                return
            self._fired = True
        try:
            self._callback()
        except Exception:
            logger.exception("Scheduled callback failed")


class Scheduler(ABC):
    """Runs callbacks after a delay in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule ``callback`` to run after ``delay`` seconds."""

    def shutdown(self) -> None:
        """Cancel everything still pending."""


class ThreadingScheduler(Scheduler):
    """Wall-clock scheduler backed by :class:`threading.Timer`."""

    def __init__(self) -> None:
        self._timers: dict[TimerHandle, threading.Timer] = {}
        self._lock = threading.Lock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)

        def run() -> None:
            with self._lock:
                self._timers.pop(handle, None)
            handle.fire()

        timer = threading.Timer(delay, run)
        timer.daemon = True
        with self._lock:
            self._timers[handle] = timer
        timer.start()
        return handle

    def shutdown(self) -> None:
        with self._lock:
            timers, self._timers = self._timers, {}
        for handle, timer in timers.items():
            handle.cancel()
            timer.cancel()


class ManualScheduler(Scheduler):
    """Virtual-clock scheduler; time only moves when :meth:`advance` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        heapq.heappush(self._queue, (self.now + delay, next(self._counter), handle))
        return handle

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in order.

        Callbacks scheduled while advancing fire too if they fall due
        before the new time. Returns the number of callbacks run.
        """
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self.now = due
            if handle.pending:
                handle.fire()
                fired += 1
        self.now = target
        return fired

    def run_pending(self) -> int:
        """Fire everything queued, jumping the clock as needed."""
        fired = 0
        while self._queue:
            fired += self.advance(self._queue[0][0] - self.now)
        return fired

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if h.pending)

    def shutdown(self) -> None:
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()
