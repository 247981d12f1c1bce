"""serialplot: live charting and export of JSON telemetry from a serial port.

A microcontroller prints one JSON object per record; serialplot reassembles
the records from raw serial chunks, tracks every key as a channel, publishes
throttled snapshots for a chart, and recomputes CSV exports and statistics
from the raw record log.
"""

from .config import SerialPlotConfig, load_config
from .core import (
    ChannelStatistics,
    ConnectionStatus,
    SeriesSnapshot,
    StreamSession,
)

__version__ = "0.1.0"

__all__ = [
    "ChannelStatistics",
    "ConnectionStatus",
    "SerialPlotConfig",
    "SeriesSnapshot",
    "StreamSession",
    "load_config",
    "__version__",
]
