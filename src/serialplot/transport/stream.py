"""Transport that replays text from any file-like object (files, stdin, pipes)."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, TextIO

from .base import ThreadedTransport, TransportError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 256


class TextStreamTransport(ThreadedTransport):
    """
    Deliver fixed-size chunks read from a text stream.

    Either pass ``stream`` to the constructor or give ``path`` to
    :meth:`connect`. The transport reports ``disconnected`` on its own once
    the stream is exhausted.
    """

    thread_name = "serialplot-stream-reader"

    def __init__(self, stream: Optional[TextIO] = None, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        super().__init__()
        self._initial_stream = stream
        self._stream: Optional[TextIO] = None
        self._owns_stream = False
        self.chunk_size = max(1, int(chunk_size))

    @classmethod
    def from_text(cls, text: str, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> "TextStreamTransport":
        return cls(io.StringIO(text), chunk_size=chunk_size)

    def _open(self, options: dict) -> None:
        if options.get("chunk_size"):
            self.chunk_size = max(1, int(options["chunk_size"]))
        path = options.get("path")
        if path is not None:
            encoding = str(options.get("encoding") or "utf-8")
            try:
                # newline="" keeps "\r\n" delimiters intact.
                self._stream = Path(path).open("r", encoding=encoding, errors="replace", newline="")
            except OSError as exc:
                raise TransportError(f"Failed to open {path}: {exc}") from exc
            self._owns_stream = True
            logger.info("Replaying records from %s", path)
        elif self._initial_stream is not None:
            self._stream = self._initial_stream
            self._owns_stream = False
        else:
            raise TransportError("TextStreamTransport needs a stream or a 'path' option")

    def _read_chunk(self) -> Optional[str]:
        stream = self._stream
        if stream is None:
            return None
        chunk = stream.read(self.chunk_size)
        if chunk == "":
            return None
        return chunk

    def _close(self) -> None:
        stream = self._stream
        self._stream = None
        if stream is not None and self._owns_stream:
            stream.close()
