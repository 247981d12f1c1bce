"""Core ingest engine: reassembly, parsing, channel bookkeeping, and outputs.

Raw chunks flow through :class:`DelimiterReassembler` into records, records
are appended verbatim to the :class:`RawRecordLog` and parsed into the
:class:`SeriesStore`, and a :class:`ThrottledPublisher` notifies the chart at
a bounded rate. :mod:`recompute` rebuilds authoritative outputs from the raw
log alone. :class:`StreamSession` wires all of it to a transport.
"""

from .channel_registry import ChannelRegistry
from .models import ChannelStatistics, ConnectionStatus, SeriesSnapshot
from .reassembler import DelimiterReassembler, iter_records
from .record_log import RawRecordLog
from .record_parser import RecordParseError, coerce_number, decode_record, parse_record
from .scheduler import Scheduler, ThreadingScheduler, VirtualScheduler
from .series_store import ChannelSeries, SeriesStore
from .throttle import ThrottledPublisher
# session must import the recompute submodule before the function of the same name shadows it
from .session import StreamSession
from .recompute import RecomputeResult, iter_csv_rows, recompute, statistics, to_csv

__all__ = [
    "ChannelRegistry",
    "ChannelSeries",
    "ChannelStatistics",
    "ConnectionStatus",
    "DelimiterReassembler",
    "RawRecordLog",
    "RecomputeResult",
    "RecordParseError",
    "Scheduler",
    "SeriesSnapshot",
    "SeriesStore",
    "StreamSession",
    "ThreadingScheduler",
    "ThrottledPublisher",
    "VirtualScheduler",
    "coerce_number",
    "decode_record",
    "iter_csv_rows",
    "iter_records",
    "parse_record",
    "recompute",
    "statistics",
    "to_csv",
]
