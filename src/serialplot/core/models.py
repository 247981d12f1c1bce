"""Shared dataclasses for serialplot sessions, series, and statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Tuple

SamplePoint = Tuple[int, Any]


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass
class SeriesSnapshot:
    """One named series ready for a chart: ``points`` are ``(sample_index, value)``."""

    channel_name: str
    points: List[SamplePoint] = field(default_factory=list)

    def sample_indices(self) -> List[int]:
        return [idx for idx, _ in self.points]

    def values(self) -> List[Any]:
        return [value for _, value in self.points]

    def to_dict(self) -> dict:
        return {
            "channelName": self.channel_name,
            "points": [{"sampleIndex": idx, "value": value} for idx, value in self.points],
        }


@dataclass
class ChannelStatistics:
    channel_name: str
    count: int
    mean: float
    standard_deviation: float
    relative_standard_deviation_percent: float

    def to_dict(self) -> dict:
        return {
            "channelName": self.channel_name,
            "count": self.count,
            "mean": self.mean,
            "standardDeviation": self.standard_deviation,
            "relativeStandardDeviationPercent": self.relative_standard_deviation_percent,
        }
