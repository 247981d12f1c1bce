"""Utilities for loading exported CSV files and raw record logs."""

from pathlib import Path
from typing import Any, Dict, List, Tuple, Union
import csv
import io

ChannelPoints = Dict[str, List[Tuple[int, Any]]]


def _parse_cell(text: str) -> Any:
    """Numeric text becomes a float; anything else is returned unchanged."""
    try:
        return float(text)
    except ValueError:
        return text


def _read_source(source: Union[str, Path]) -> str:
    if isinstance(source, Path):
        with source.open("r", encoding="utf-8", newline="") as f:
            return f.read()
    return source


def load_csv_export(source: Union[str, Path]) -> ChannelPoints:
    """
    Parse an exported CSV back into per-channel ``(sample_index, value)`` points.

    ``source`` is either the CSV text itself or a :class:`~pathlib.Path`.
    Blank cells are absent samples and produce no point.
    """
    reader = csv.reader(io.StringIO(_read_source(source)))
    header = next(reader, None)
    if not header:
        return {}
    names = header[1:]
    channels: ChannelPoints = {name: [] for name in names}
    for row in reader:
        if not row:
            continue
        sample_index = int(row[0])
        for name, cell in zip(names, row[1:]):
            if cell == "":
                continue
            channels[name].append((sample_index, _parse_cell(cell)))
    return channels


def load_raw_log(path: Path) -> List[str]:
    """Load a raw log written by ``write_raw_log`` (one record per line)."""
    with path.open("r", encoding="utf-8", newline="") as f:
        text = f.read()
    if not text:
        return []
    lines = text.split("\n")
    # write_raw_log terminates every record, so the final piece is empty.
    if lines[-1] == "":
        lines.pop()
    return lines
