"""Append-only log of raw records; the position of a record is its sample index."""

from __future__ import annotations

from typing import Iterator, List, Tuple


class RawRecordLog:
    """
    Verbatim history of every reassembled record, malformed ones included.

    This log is the single source of truth for recompute/export, so entries are
    never mutated after they are appended.
    """

    __slots__ = ("_records",)

    def __init__(self) -> None:
        self._records: List[str] = []

    def append(self, record: str) -> int:
        """Store ``record`` and return its sample index."""
        self._records.append(record)
        return len(self._records) - 1

    def snapshot(self) -> Tuple[str, ...]:
        """Return a frozen copy for readers that run outside the session lock."""
        return tuple(self._records)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> str:
        return self._records[index]

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._records))
