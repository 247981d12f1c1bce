"""Trailing-edge throttle that coalesces publish requests."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, Optional, TypeVar

from .scheduler import Scheduler, ThreadingScheduler, TimerHandle

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PUBLISH_INTERVAL_MS = 250.0

_MISSING: Any = object()


class ThrottledPublisher(Generic[T]):
    """
    Rate-limit calls to ``publish`` to at most one per ``interval_ms``.

    Every :meth:`request` replaces the pending state; only the latest one is
    published when the timer fires. The timer is armed on the trailing edge,
    one interval after the previous actual publish (or one full interval from
    now when the publisher has been idle).

    Notes
    -----
    Only the notification is throttled. Callers are expected to have already
    recorded the data before calling :meth:`request`.
    """

    def __init__(
        self,
        publish: Callable[[T], None],
        interval_ms: float = DEFAULT_PUBLISH_INTERVAL_MS,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        if interval_ms < 0:
            raise ValueError(f"interval_ms must be >= 0, got {interval_ms}")
        self._publish = publish
        self._interval_ms = float(interval_ms)
        self._scheduler: Scheduler = scheduler or ThreadingScheduler()

        self._lock = threading.Lock()
        # Held across read-state-then-publish so publishes never reorder.
        self._publish_lock = threading.RLock()
        self._timer: Optional[TimerHandle] = None
        self._pending: Any = _MISSING
        self._last_publish_ms: Optional[float] = None
        self._publish_count = 0

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    @property
    def publish_count(self) -> int:
        return self._publish_count

    @property
    def last_publish_time(self) -> Optional[float]:
        return self._last_publish_ms

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not _MISSING

    def request(self, state: T) -> None:
        with self._lock:
            self._pending = state
            if self._timer is not None:
                return

            now = self._scheduler.now()
            delay = self._interval_ms
            if self._last_publish_ms is not None:
                elapsed = now - self._last_publish_ms
                if elapsed < self._interval_ms:
                    delay = self._interval_ms - elapsed

            handle_box: list[TimerHandle] = []
            handle = self._scheduler.call_later(delay, lambda: self._on_timer(handle_box))
            handle_box.append(handle)
            self._timer = handle

    def flush(self, state: Any = _MISSING) -> bool:
        """
        Publish immediately, ignoring the throttle window.

        ``state`` overrides the pending state. Returns ``False`` when there was
        nothing to publish.
        """
        with self._publish_lock:
            with self._lock:
                self._cancel_timer()
                if state is _MISSING:
                    state = self._pending
                self._pending = _MISSING
            if state is _MISSING:
                return False
            self._emit(state)
            return True

    def cancel(self) -> None:
        """Drop the pending timer and state without publishing."""
        with self._lock:
            self._cancel_timer()
            self._pending = _MISSING

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, handle_box: list) -> None:
        with self._publish_lock:
            with self._lock:
                handle = handle_box[0]
                # A flush or cancel already replaced this timer.
                if handle is not self._timer or handle.cancelled:
                    return
                self._timer = None
                state = self._pending
                self._pending = _MISSING
            if state is _MISSING:
                return
            self._emit(state)

    def _emit(self, state: Any) -> None:
        self._last_publish_ms = self._scheduler.now()
        self._publish_count += 1
        try:
            self._publish(state)
        except Exception:
            logger.exception("Error in publish callback")
