"""
Decode reassembled records into ``channel name -> value`` mappings.

Devices print one flat JSON object per record, e.g.::

    {"temp": 21.5, "humidity": 40, "state": "idle"}

Values are kept as-is; only statistics look at them through
:func:`coerce_number`, which treats anything non-numeric as absent.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class RecordParseError(ValueError):
    """Raised by :func:`decode_record` for records that are not JSON objects."""

    def __init__(self, text: str, reason: str) -> None:
        super().__init__(f"{reason}: {text!r}")
        self.text = text
        self.reason = reason


def decode_record(text: str) -> Record:
    """Strict decoder: return the record mapping or raise :class:`RecordParseError`."""
    try:
        obj = json.loads(text)
    except (ValueError, RecursionError, TypeError) as exc:
        # ValueError also covers integer literals past the int-conversion limit.
        raise RecordParseError(text, f"malformed JSON ({type(exc).__name__}: {exc})") from exc

    if not isinstance(obj, Mapping):
        raise RecordParseError(text, f"expected a JSON object, got {type(obj).__name__}")
    return {str(key): value for key, value in obj.items()}


def parse_record(text: str, *, log_level: int = logging.WARNING) -> Optional[Record]:
    """
    Decode ``text`` or return ``None``.

    A failed record produces a single diagnostic at ``log_level`` and never
    raises, so the ingest loop can move straight on to the next record.
    """
    try:
        return decode_record(text)
    except RecordParseError as exc:
        logger.log(log_level, "Skipping malformed record %r (%s)", exc.text, exc.reason)
        return None


def coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number
