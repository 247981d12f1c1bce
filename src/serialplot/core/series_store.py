from __future__ import annotations

"""
Per-channel sample storage keyed by the registry's channel index.

Sample indices are global: a record that lacks a channel simply leaves a gap
in that channel's series, so series are sparse rather than padded.
"""

import threading
from collections.abc import Mapping
from typing import Any, List, Optional

from .channel_registry import ChannelRegistry, NewChannelCallback
from .models import SamplePoint, SeriesSnapshot


class ChannelSeries:
    """Append-only ``(sample_index, value)`` sequence for one channel."""

    __slots__ = ("_points",)

    def __init__(self) -> None:
        self._points: List[SamplePoint] = []

    def append(self, sample_index: int, value: Any) -> None:
        if self._points and sample_index <= self._points[-1][0]:
            raise ValueError(
                f"sample_index {sample_index} is not after {self._points[-1][0]}"
            )
        self._points.append((int(sample_index), value))

    def points(self, limit: Optional[int] = None) -> List[SamplePoint]:
        """Copy of the points, optionally restricted to ``sample_index < limit``."""
        if limit is None:
            return list(self._points)
        return [point for point in self._points if point[0] < limit]

    def latest(self) -> Optional[SamplePoint]:
        if not self._points:
            return None
        return self._points[-1]

    def __len__(self) -> int:
        return len(self._points)


class SeriesStore:
    """
    Channel registry plus one :class:`ChannelSeries` per registered channel.

    A single ingest thread appends while readers take snapshots for plotting
    or export; the RLock keeps both sides consistent.
    """

    def __init__(self, on_new_channel: Optional[NewChannelCallback] = None) -> None:
        self._registry = ChannelRegistry(on_new_channel)
        self._series: List[ChannelSeries] = []
        self._lock = threading.RLock()

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    def ensure_channel(self, name: str) -> int:
        with self._lock:
            index = self._registry.ensure(name)
            while len(self._series) <= index:
                self._series.append(ChannelSeries())
            return index

    def append(self, channel_index: int, sample_index: int, value: Any) -> None:
        with self._lock:
            self._series[channel_index].append(sample_index, value)

    def add_record(self, sample_index: int, record: Mapping[str, Any]) -> None:
        """Register every key of ``record`` in key order and append its values."""
        with self._lock:
            for name, value in record.items():
                index = self.ensure_channel(str(name))
                self._series[index].append(sample_index, value)

    def channel_names(self) -> List[str]:
        with self._lock:
            return self._registry.names()

    def series(self, channel_index: int) -> ChannelSeries:
        with self._lock:
            return self._series[channel_index]

    def snapshot(self, limit: Optional[int] = None) -> List[SeriesSnapshot]:
        """Return all series ordered by channel index."""
        with self._lock:
            return [
                SeriesSnapshot(channel_name=name, points=series.points(limit))
                for name, series in zip(self._registry.names(), self._series)
            ]

    def clear(self) -> None:
        with self._lock:
            self._registry.clear()
            self._series.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)
