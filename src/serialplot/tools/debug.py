"""Opt-in timing instrumentation, switched on with ``SERIALPLOT_DEBUG=1``."""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

DEBUG_ENV_VAR = "SERIALPLOT_DEBUG"
_TRUTHY = {"1", "true", "yes", "on"}


def debug_enabled() -> bool:
    """Read the environment on each call so a running session can be toggled."""
    return os.getenv(DEBUG_ENV_VAR, "").strip().lower() in _TRUTHY


@contextmanager
def time_block(label: str, *, count: Optional[int] = None) -> Iterator[None]:
    """
    Log how long the wrapped block took, at DEBUG level.

    With ``count`` (records, rows, ...) the message also carries a rate, which
    is the figure that matters when replaying long raw logs.
    """
    if not debug_enabled():
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        if count is None:
            logger.debug("%s took %.3f ms", label, elapsed_ms)
        else:
            rate = count / (elapsed_ms / 1000.0) if elapsed_ms > 0 else float("inf")
            logger.debug("%s: %d items in %.3f ms (%.0f/s)", label, count, elapsed_ms, rate)
