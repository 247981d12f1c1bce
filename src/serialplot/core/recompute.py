from __future__ import annotations

"""
Authoritative outputs rebuilt from the raw record log.

The live path may publish at a reduced rate, so exports and statistics never
trust it: every function here replays the frozen log from index 0 with a fresh
registry and store. Nothing beyond the log itself is needed.
"""

import csv
import io
import json
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, List, Optional

from ..analysis.features import summarize
from ..tools.debug import time_block
from .models import ChannelStatistics, SeriesSnapshot
from .record_parser import Record, parse_record
from .series_store import SeriesStore

CSV_INDEX_COLUMN = "sample"


@dataclass
class RecomputeResult:
    channel_names: List[str]
    snapshot: List[SeriesSnapshot]
    record_count: int
    malformed_count: int


def _replay(records: Sequence[str]) -> tuple[SeriesStore, List[Optional[Record]]]:
    store = SeriesStore()
    parsed: List[Optional[Record]] = []
    for sample_index, text in enumerate(records):
        # Live ingest already reported malformed records once.
        record = parse_record(text, log_level=logging.DEBUG)
        parsed.append(record)
        if record is not None:
            store.add_record(sample_index, record)
    return store, parsed


def recompute(records: Sequence[str]) -> RecomputeResult:
    """Replay ``records`` and return the full-resolution snapshot."""
    with time_block("recompute", count=len(records)):
        store, parsed = _replay(records)
    return RecomputeResult(
        channel_names=store.channel_names(),
        snapshot=store.snapshot(),
        record_count=len(records),
        malformed_count=sum(1 for record in parsed if record is None),
    )


def format_field(value: Any) -> str:
    """Render one CSV cell; ``None`` stays blank so it reads as absent."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def iter_csv_rows(records: Sequence[str]) -> Iterator[List[str]]:
    """
    Yield the header followed by one row per raw record.

    The column set is only known after a full pass, so records are parsed
    once up front; rows are then produced lazily.
    """
    store, parsed = _replay(records)
    names = store.channel_names()
    yield [CSV_INDEX_COLUMN, *names]
    for sample_index, record in enumerate(parsed):
        row = [str(sample_index)]
        for name in names:
            if record is None or name not in record:
                row.append("")
            else:
                row.append(format_field(record[name]))
        yield row


def to_csv(records: Sequence[str]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(iter_csv_rows(records))
    return buffer.getvalue()


def statistics(records: Sequence[str]) -> List[ChannelStatistics]:
    """Per-channel mean / population stdev / RSD over each channel's own samples."""
    result = recompute(records)
    stats: List[ChannelStatistics] = []
    for series in result.snapshot:
        summary = summarize(series.values())
        stats.append(
            ChannelStatistics(
                channel_name=series.channel_name,
                count=summary.count,
                mean=summary.mean,
                standard_deviation=summary.std,
                relative_standard_deviation_percent=summary.rsd_percent,
            )
        )
    return stats
