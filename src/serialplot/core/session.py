"""Session object that owns one connection's ingest state and outputs."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

from ..config.runtime import SerialPlotConfig
from ..dataio.csv_writer import write_csv_export, write_raw_log
from ..tools.debug import time_block
from ..transport.base import Transport
from . import recompute as recompute_engine
from .channel_registry import NewChannelCallback
from .models import ChannelStatistics, ConnectionStatus, SeriesSnapshot
from .reassembler import DelimiterReassembler
from .record_log import RawRecordLog
from .record_parser import parse_record
from .scheduler import Scheduler
from .series_store import SeriesStore
from .throttle import ThrottledPublisher

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[List[SeriesSnapshot]], None]
StatusCallback = Callable[[ConnectionStatus], None]


class StreamSession:
    """
    Ingest chunks from a transport and keep the live and raw views of the data.

    All state (raw log, registry, series, pending fragment, publish timer) lives
    on the instance, so several sessions can run side by side. Chunks are
    processed one at a time under the session lock; the throttled publisher is
    the only component that defers work.

    Parameters
    ----------
    transport:
        Chunk source. Optional: without one, call :meth:`feed` directly.
    config:
        Defaults for delimiter, publish interval and transport options.
    on_update:
        Receives the live snapshot at most once per publish interval, and the
        recomputed full-resolution snapshot on disconnect.
    on_new_channel:
        Called once per distinct channel name with its assigned index.
    on_status:
        Called whenever the connection status changes.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        *,
        config: Optional[SerialPlotConfig] = None,
        delimiter: Optional[str] = None,
        publish_interval_ms: Optional[float] = None,
        scheduler: Optional[Scheduler] = None,
        on_update: Optional[UpdateCallback] = None,
        on_new_channel: Optional[NewChannelCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> None:
        cfg = (config or SerialPlotConfig()).sanitized()
        self.config = cfg
        self.transport = transport
        self.on_update = on_update
        self.on_new_channel = on_new_channel
        self.on_status = on_status

        self._lock = threading.RLock()
        self._reassembler = DelimiterReassembler(cfg.delimiter if delimiter is None else delimiter)
        self._log = RawRecordLog()
        self._store = SeriesStore(on_new_channel=self._handle_new_channel)
        interval = cfg.publish_interval_ms if publish_interval_ms is None else publish_interval_ms
        self._publisher: ThrottledPublisher[Any] = ThrottledPublisher(
            self._publish_live,
            interval_ms=interval,
            scheduler=scheduler,
        )
        self._status = ConnectionStatus.DISCONNECTED
        self._malformed_count = 0

    # ------------------------------------------------------------------ properties
    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def publisher(self) -> ThrottledPublisher[Any]:
        return self._publisher

    @property
    def record_count(self) -> int:
        with self._lock:
            return len(self._log)

    @property
    def malformed_count(self) -> int:
        with self._lock:
            return self._malformed_count

    @property
    def channel_names(self) -> List[str]:
        with self._lock:
            return self._store.channel_names()

    @property
    def raw_records(self) -> Tuple[str, ...]:
        with self._lock:
            return self._log.snapshot()

    @property
    def pending_fragment(self) -> str:
        with self._lock:
            return self._reassembler.pending

    # ------------------------------------------------------------------ connection
    def connect(self, **options: Any) -> ConnectionStatus:
        """Open the transport and start receiving chunks."""
        with self._lock:
            if self._status is ConnectionStatus.CONNECTED:
                return self._status
            # Set before the transport starts its reader so an immediate
            # end-of-stream still triggers the final flush.
            self._status = ConnectionStatus.CONNECTED
        self._notify_status(ConnectionStatus.CONNECTED)

        if self.transport is not None:
            transport_options = self.config.transport_options()
            transport_options.update(options)
            self.transport.set_chunk_callback(self.feed)
            self.transport.set_status_callback(self._on_transport_status)
            try:
                self.transport.connect(transport_options)
            except Exception:
                self.transport.set_chunk_callback(None)
                self.transport.set_status_callback(None)
                with self._lock:
                    self._status = ConnectionStatus.DISCONNECTED
                self._notify_status(ConnectionStatus.DISCONNECTED)
                raise
        if self._status is ConnectionStatus.CONNECTED:
            logger.info("Session connected")
        return self._status

    def disconnect(self) -> ConnectionStatus:
        """
        Stop the transport and publish the final, recomputed state.

        The final publish bypasses the throttle window and any deferred live
        publish is cancelled so nothing arrives after teardown. An explicit
        disconnect always publishes, even when the link was already lost.
        """
        if self.transport is not None:
            self.transport.disconnect()
            self.transport.set_chunk_callback(None)
        self._finalize(explicit=True)
        return self._status

    close = disconnect

    def __enter__(self) -> "StreamSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.disconnect()

    def _on_transport_status(self, status: ConnectionStatus) -> None:
        if status is ConnectionStatus.DISCONNECTED:
            self._finalize(explicit=False)

    def _finalize(self, *, explicit: bool) -> None:
        with self._lock:
            changed = self._status is not ConnectionStatus.DISCONNECTED
            if not changed and not explicit:
                # The transport may report the same loss more than once.
                return
            if not explicit:
                logger.info("Transport reported disconnect; finalizing session")
            self._status = ConnectionStatus.DISCONNECTED
            tail = self._reassembler.flush()
            if tail is not None:
                self._ingest(tail)
            self._publisher.cancel()
            records = self._log.snapshot()

        result = recompute_engine.recompute(records)
        self._publisher.flush(result.snapshot)
        if changed:
            logger.info(
                "Session disconnected after %d records (%d malformed)",
                result.record_count,
                result.malformed_count,
            )
            self._notify_status(ConnectionStatus.DISCONNECTED)

    # ------------------------------------------------------------------ ingest
    def feed(self, chunk: str) -> int:
        """
        Process one raw text chunk; returns how many records it completed.

        This is the transport's chunk callback.
        """
        with self._lock:
            records = self._reassembler.feed(chunk)
            for record in records:
                self._ingest(record)
            if records:
                self._publisher.request(len(self._log))
            return len(records)

    def end_stream(self) -> bool:
        """Emit the buffered partial record as a final record, if any."""
        with self._lock:
            tail = self._reassembler.flush()
            if tail is None:
                return False
            self._ingest(tail)
            self._publisher.request(len(self._log))
            return True

    def _ingest(self, text: str) -> None:
        sample_index = self._log.append(text)
        record = parse_record(text)
        if record is None:
            self._malformed_count += 1
            return
        self._store.add_record(sample_index, record)

    # ------------------------------------------------------------------ state
    def clear(self) -> None:
        """
        Drop every record, channel and sample in one step.

        The reassembler's partial fragment belongs to the stream, not to the
        data, and is kept.
        """
        with self._lock:
            self._publisher.cancel()
            self._log.clear()
            self._store.clear()
            self._malformed_count = 0
        logger.info("Session data cleared")
        self._publisher.flush(0)

    def snapshot(self) -> List[SeriesSnapshot]:
        """Live view built incrementally during ingest."""
        with self._lock:
            return self._store.snapshot()

    # ------------------------------------------------------------------ recompute/export
    def recompute(self) -> recompute_engine.RecomputeResult:
        return recompute_engine.recompute(self.raw_records)

    def to_csv(self) -> str:
        return recompute_engine.to_csv(self.raw_records)

    def statistics(self) -> List[ChannelStatistics]:
        return recompute_engine.statistics(self.raw_records)

    def export_csv(self, path: str | Path) -> Path:
        target = Path(path)
        records = self.raw_records
        with time_block(f"export {target.name}", count=len(records)):
            write_csv_export(target, recompute_engine.iter_csv_rows(records))
        logger.info("Exported %d records to %s", len(records), target)
        return target

    def export_raw(self, path: str | Path) -> Path:
        target = Path(path)
        write_raw_log(target, self.raw_records)
        return target

    # ------------------------------------------------------------------ callbacks
    def _publish_live(self, payload: Any) -> None:
        if isinstance(payload, int):
            snapshot = self._store.snapshot(limit=payload)
        else:
            snapshot = list(payload)
        if self.on_update is not None:
            self.on_update(snapshot)

    def _handle_new_channel(self, name: str, index: int) -> None:
        logger.debug("New channel %r assigned index %d", name, index)
        if self.on_new_channel is not None:
            self.on_new_channel(name, index)

    def _notify_status(self, status: ConnectionStatus) -> None:
        if self.on_status is None:
            return
        try:
            self.on_status(status)
        except Exception:
            logger.exception("Error in status callback")
