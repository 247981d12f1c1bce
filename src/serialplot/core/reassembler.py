from __future__ import annotations

"""
Reassemble delimited records from an unbounded stream of text chunks.

Serial reads hand us whatever bytes happened to be in the OS buffer, so a
single JSON record may be spread over several chunks and one chunk may carry
several records. :class:`DelimiterReassembler` keeps the trailing fragment
between calls and only emits complete records.
"""

from collections.abc import Iterable, Iterator
from typing import List, Optional

DEFAULT_DELIMITER = "\n"


class DelimiterReassembler:
    """
    Split incoming chunks on ``delimiter`` while buffering partial tails.

    An empty delimiter switches to immediate mode: every chunk is a record and
    nothing is buffered.
    """

    __slots__ = ("_delimiter", "_pending")

    def __init__(self, delimiter: str = DEFAULT_DELIMITER) -> None:
        if delimiter is None:
            raise ValueError("delimiter must be a string (use '' for immediate mode)")
        self._delimiter = str(delimiter)
        self._pending = ""

    @property
    def delimiter(self) -> str:
        return self._delimiter

    @property
    def immediate(self) -> bool:
        return self._delimiter == ""

    @property
    def pending(self) -> str:
        """Fragment waiting for its delimiter."""
        return self._pending

    def feed(self, chunk: str) -> List[str]:
        """Consume one chunk and return the records it completed, in order."""
        if self.immediate:
            return [chunk]
        if not chunk:
            return []

        pieces = (self._pending + chunk).split(self._delimiter)
        # The last piece is always the (possibly empty) unfinished record.
        self._pending = pieces.pop()
        return pieces

    def flush(self) -> Optional[str]:
        """
        Emit the pending fragment as a final record on explicit end of stream.

        Returns ``None`` when there is nothing buffered.
        """
        remainder = self._pending
        self._pending = ""
        return remainder or None

    def reset(self) -> None:
        self._pending = ""


def iter_records(
    chunks: Iterable[str],
    delimiter: str = DEFAULT_DELIMITER,
    *,
    flush_at_end: bool = True,
) -> Iterator[str]:
    """Lazily yield complete records from an iterable of text chunks."""
    reassembler = DelimiterReassembler(delimiter)
    for chunk in chunks:
        yield from reassembler.feed(chunk)
    if flush_at_end:
        tail = reassembler.flush()
        if tail is not None:
            yield tail
