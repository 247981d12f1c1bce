"""Sources of raw text chunks.

Every transport reduces to "a source of text chunks plus connect/disconnect
control": :class:`SerialTransport` reads a microcontroller's serial port via
pyserial, :class:`TextStreamTransport` replays captured text from a file or
stdin.
"""

from .base import ThreadedTransport, Transport, TransportError
from .serial_port import SerialTransport
from .stream import TextStreamTransport

__all__ = [
    "Transport",
    "ThreadedTransport",
    "TransportError",
    "SerialTransport",
    "TextStreamTransport",
]
