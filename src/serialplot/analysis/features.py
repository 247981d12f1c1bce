"""Summary statistics for channel sample values."""

from __future__ import annotations

import math
from typing import Any, Iterable, NamedTuple, Optional

import numpy as np

from ..core.record_parser import coerce_number


class Summary(NamedTuple):
    count: int
    mean: float
    std: float
    rsd_percent: float


def numeric_values(values: Iterable[Any]) -> np.ndarray:
    """
    Convert raw channel values to a 1-D float64 array.

    Non-numeric and non-finite entries are dropped rather than poisoning the
    whole channel.
    """
    numbers = []
    for value in values:
        number = coerce_number(value)
        if number is None or not math.isfinite(number):
            continue
        numbers.append(number)
    return np.asarray(numbers, dtype=np.float64)


def relative_std_percent(mean: float, std: float) -> float:
    """Return ``std / mean * 100``, or NaN when the mean is zero or undefined."""
    if not math.isfinite(mean) or not math.isfinite(std) or mean == 0.0:
        return math.nan
    return float(std / mean * 100.0)


def summarize(values: Iterable[Any]) -> Summary:
    """
    Compute count, mean, population standard deviation and RSD.

    Parameters
    ----------
    values:
        Raw channel values; see :func:`numeric_values`.

    Returns
    -------
    Summary
        NaN fields stand in for undefined statistics (no samples, zero mean).
    """
    arr = numeric_values(values)
    if arr.size == 0:
        return Summary(count=0, mean=math.nan, std=math.nan, rsd_percent=math.nan)
    mean = float(np.mean(arr))
    std = float(np.std(arr, ddof=0))
    return Summary(
        count=int(arr.size),
        mean=mean,
        std=std,
        rsd_percent=relative_std_percent(mean, std),
    )


def format_statistic(value: Optional[float], precision: int = 4) -> str:
    if value is None or not math.isfinite(value):
        return "n/a"
    return f"{value:.{precision}g}"
