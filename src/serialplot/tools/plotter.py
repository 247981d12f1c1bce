"""
Matplotlib rendering of series snapshots.

The chart consumer only needs a list of named series; this module turns a
snapshot (live or recomputed) into one line per channel against the sample
index. Non-numeric values are drawn as gaps.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np

from ..core.models import SeriesSnapshot
from ..core.record_parser import coerce_number


def series_arrays(series: SeriesSnapshot) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(sample_indices, values)`` with NaN for non-numeric values."""
    count = len(series.points)
    x = np.fromiter((idx for idx, _ in series.points), dtype=np.int64, count=count)
    y = np.fromiter(
        (_as_float(value) for _, value in series.points),
        dtype=np.float64,
        count=count,
    )
    return x, y


def _as_float(value: Any) -> float:
    number = coerce_number(value)
    return math.nan if number is None else number


def plot_snapshot(
    snapshot: Sequence[SeriesSnapshot],
    ax: Any = None,
    *,
    title: Optional[str] = None,
):
    """Draw every series on ``ax`` (a new figure when omitted); return (fig, ax, lines)."""
    if ax is None:
        fig, ax = plt.subplots(1, 1)
    else:
        fig = ax.figure

    lines: dict[str, Any] = {}
    for series in snapshot:
        x, y = series_arrays(series)
        (line,) = ax.plot(x, y, label=series.channel_name)
        lines[series.channel_name] = line

    ax.set_xlabel("Sample")
    ax.set_ylabel("Value")
    if title:
        ax.set_title(title)
    if lines:
        ax.legend(loc="upper right")
    fig.tight_layout()
    return fig, ax, lines


def save_snapshot_png(snapshot: Sequence[SeriesSnapshot], path: Path, *, title: Optional[str] = None) -> Path:
    """Render ``snapshot`` to an image file and close the figure."""
    fig, _ax, _lines = plot_snapshot(snapshot, title=title)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path)
    finally:
        plt.close(fig)
    return path
