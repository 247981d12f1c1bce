"""Cancelable timers on a real or simulated millisecond clock."""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from typing import Callable, List, Optional, Protocol, Tuple

TimerCallback = Callable[[], None]


class TimerHandle(Protocol):
    @property
    def cancelled(self) -> bool:  # pragma: no cover - protocol
        ...

    def cancel(self) -> None:  # pragma: no cover - protocol
        ...


class Scheduler(Protocol):
    """Clock plus one-shot timers. Times are milliseconds."""

    def now(self) -> float:  # pragma: no cover - protocol
        ...

    def call_later(self, delay_ms: float, callback: TimerCallback) -> TimerHandle:  # pragma: no cover - protocol
        ...


class _ThreadTimerHandle:
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        self._timer.cancel()


class ThreadingScheduler:
    """Wall-clock scheduler backed by ``time.monotonic`` and daemon ``threading.Timer``s."""

    def now(self) -> float:
        return time.monotonic() * 1000.0

    def call_later(self, delay_ms: float, callback: TimerCallback) -> _ThreadTimerHandle:
        timer = threading.Timer(max(0.0, float(delay_ms)) / 1000.0, callback)
        timer.daemon = True
        timer.name = "serialplot-timer"
        handle = _ThreadTimerHandle(timer)
        timer.start()
        return handle


class _VirtualTimerHandle:
    __slots__ = ("due", "callback", "_cancelled")

    def __init__(self, due: float, callback: TimerCallback) -> None:
        self.due = due
        self.callback = callback
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class VirtualScheduler:
    """
    Deterministic simulated clock.

    Nothing happens until :meth:`advance` or :meth:`advance_to` moves time
    forward; due callbacks then run in time order on the caller's thread.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._queue: List[Tuple[float, int, _VirtualTimerHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: TimerCallback) -> _VirtualTimerHandle:
        handle = _VirtualTimerHandle(self._now + max(0.0, float(delay_ms)), callback)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
        return handle

    def advance(self, delta_ms: float) -> None:
        if delta_ms < 0:
            raise ValueError(f"cannot move time backwards ({delta_ms} ms)")
        self.advance_to(self._now + delta_ms)

    def advance_to(self, target_ms: float) -> None:
        if target_ms < self._now:
            raise ValueError(f"cannot move time backwards to {target_ms} (now {self._now})")
        while self._queue and self._queue[0][0] <= target_ms:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = due
            handle.callback()
        self._now = float(target_ms)

    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def next_due(self) -> Optional[float]:
        live = [due for due, _, handle in self._queue if not handle.cancelled]
        return min(live) if live else None
