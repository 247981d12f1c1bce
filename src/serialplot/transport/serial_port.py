"""Serial-port transport built on pyserial."""

from __future__ import annotations

import codecs
import logging
from typing import Any, Callable, Optional

import serial

from .base import ThreadedTransport, TransportError

logger = logging.getLogger(__name__)

DEFAULT_BAUD_RATE = 9600
DEFAULT_READ_TIMEOUT_S = 0.1
DEFAULT_READ_SIZE = 256

SerialFactory = Callable[..., Any]


class SerialTransport(ThreadedTransport):
    """
    Read text chunks from a serial device on a background thread.

    Bytes are decoded with an incremental decoder so a multibyte character
    split across two reads is not mangled.

    Options accepted by :meth:`connect`:

    ``port`` (required), ``baud_rate``, ``timeout`` (seconds), ``encoding``
    and ``read_size``.
    """

    thread_name = "serialplot-serial-reader"

    def __init__(self, serial_factory: Optional[SerialFactory] = None) -> None:
        super().__init__()
        self._serial_factory = serial_factory or serial.Serial
        self._serial: Any = None
        self._decoder: Optional[codecs.IncrementalDecoder] = None
        self._read_size = DEFAULT_READ_SIZE
        self.port: Optional[str] = None

    def _open(self, options: dict) -> None:
        port = options.get("port")
        if not port:
            raise TransportError("A serial port is required (e.g. /dev/ttyACM0 or COM3)")
        baud_rate = int(options.get("baud_rate") or DEFAULT_BAUD_RATE)
        timeout = float(options.get("timeout", DEFAULT_READ_TIMEOUT_S))
        encoding = str(options.get("encoding") or "utf-8")
        self._read_size = max(1, int(options.get("read_size") or DEFAULT_READ_SIZE))

        logger.info("Opening serial port %s at %d baud", port, baud_rate)
        try:
            self._serial = self._serial_factory(port, baud_rate, timeout=timeout)
        except (serial.SerialException, OSError) as exc:
            raise TransportError(f"Failed to open serial port {port}: {exc}") from exc
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self.port = str(port)

    def _read_chunk(self) -> Optional[str]:
        ser = self._serial
        decoder = self._decoder
        if ser is None or decoder is None:
            return None
        waiting = int(getattr(ser, "in_waiting", 0) or 0)
        # Block for one byte (up to the port timeout) when nothing is buffered.
        size = min(waiting, self._read_size) if waiting > 0 else 1
        raw = ser.read(size)
        if not raw:
            return ""
        return decoder.decode(raw)

    def _close(self) -> None:
        ser = self._serial
        self._serial = None
        if ser is None:
            return
        logger.info("Closing serial port %s", self.port)
        try:
            ser.close()
        except (serial.SerialException, OSError) as exc:
            logger.warning("Error closing serial port %s: %s", self.port, exc)

    def write(self, text: str, encoding: str = "utf-8") -> int:
        """Send ``text`` to the connected device and return the byte count."""
        if self._serial is None:
            raise TransportError("Serial port is not open")
        return int(self._serial.write(text.encode(encoding)) or 0)
