"""Transport interface shared by serial-port and text-stream sources."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Mapping, Optional, Protocol

from ..core.models import ConnectionStatus

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], None]
StatusCallback = Callable[[ConnectionStatus], None]


class TransportError(RuntimeError):
    """Raised when a transport cannot be opened or is misused."""


class Transport(Protocol):
    """A source of text chunks plus connect/disconnect control."""

    @property
    def status(self) -> ConnectionStatus:  # pragma: no cover - protocol
        ...

    def connect(self, options: Mapping[str, Any]) -> ConnectionStatus:  # pragma: no cover - protocol
        ...

    def disconnect(self) -> ConnectionStatus:  # pragma: no cover - protocol
        ...

    def set_chunk_callback(self, callback: Optional[ChunkCallback]) -> None:  # pragma: no cover - protocol
        ...

    def set_status_callback(self, callback: Optional[StatusCallback]) -> None:  # pragma: no cover - protocol
        ...


class ThreadedTransport:
    """
    Base class for transports that pull chunks on a daemon reader thread.

    Subclasses implement :meth:`_open`, :meth:`_read_chunk` and :meth:`_close`.
    ``_read_chunk`` returns ``None`` at end of stream.
    """

    thread_name = "serialplot-reader"

    def __init__(self) -> None:
        self._status = ConnectionStatus.DISCONNECTED
        self._on_chunk: Optional[ChunkCallback] = None
        self._on_status: Optional[StatusCallback] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    def set_chunk_callback(self, callback: Optional[ChunkCallback]) -> None:
        self._on_chunk = callback

    def set_status_callback(self, callback: Optional[StatusCallback]) -> None:
        self._on_status = callback

    # ------------------------------------------------------------------ lifecycle
    def connect(self, options: Mapping[str, Any]) -> ConnectionStatus:
        with self._lock:
            if self._status is ConnectionStatus.CONNECTED:
                return self._status
            self._open(dict(options or {}))
            self._stop_event.clear()
            self._status = ConnectionStatus.CONNECTED
            thread = threading.Thread(
                target=self._reader_loop,
                name=self.thread_name,
                daemon=True,
            )
            self._thread = thread
        # Listeners hear "connected" before the reader can report a loss.
        self._notify_status(ConnectionStatus.CONNECTED)
        thread.start()
        return ConnectionStatus.CONNECTED

    def disconnect(self) -> ConnectionStatus:
        with self._lock:
            if self._status is ConnectionStatus.DISCONNECTED:
                return self._status
            self._stop_event.set()
            self._status = ConnectionStatus.DISCONNECTED
            self._close()
            thread = self._thread
            self._thread = None
        if thread is not None and thread.ident is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        return self._status

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the reader thread to finish (e.g. end of a replay file)."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    # ------------------------------------------------------------------ internals
    def _reader_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                chunk = self._read_chunk()
                if chunk is None:
                    break
                if not chunk or self._on_chunk is None:
                    continue
                try:
                    self._on_chunk(chunk)
                except Exception:
                    logger.exception("Error in chunk callback")
        except Exception as exc:
            if not self._stop_event.is_set():
                logger.warning("Transport read failed: %s", exc)
        finally:
            self._mark_lost()

    def _mark_lost(self) -> None:
        """Transition to disconnected after the reader stopped on its own."""
        with self._lock:
            if self._stop_event.is_set() or self._status is ConnectionStatus.DISCONNECTED:
                return
            self._stop_event.set()
            self._status = ConnectionStatus.DISCONNECTED
            try:
                self._close()
            except Exception:
                logger.exception("Error closing transport")
        self._notify_status(ConnectionStatus.DISCONNECTED)

    def _notify_status(self, status: ConnectionStatus) -> None:
        if self._on_status is None:
            return
        try:
            self._on_status(status)
        except Exception:
            logger.exception("Error in transport status callback")

    def _open(self, options: dict) -> None:  # pragma: no cover - abstract
        raise NotImplementedError

    def _read_chunk(self) -> Optional[str]:  # pragma: no cover - abstract
        raise NotImplementedError

    def _close(self) -> None:  # pragma: no cover - abstract
        raise NotImplementedError
