from __future__ import annotations

import io
import threading
import time

import pytest
import serial

from serialplot.core.models import ConnectionStatus
from serialplot.transport import SerialTransport, TextStreamTransport, TransportError


class FakeSerial:
    """Stand-in for ``serial.Serial`` backed by an in-memory byte buffer."""

    def __init__(self, port, baudrate, timeout=None) -> None:
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.written = b""
        self.closed = False
        self.unplugged = False
        self._buffer = b""
        self._lock = threading.Lock()

    def load(self, data: bytes) -> None:
        with self._lock:
            self._buffer += data

    @property
    def in_waiting(self) -> int:
        with self._lock:
            return len(self._buffer)

    def read(self, size: int = 1) -> bytes:
        with self._lock:
            if self._buffer:
                data, self._buffer = self._buffer[:size], self._buffer[size:]
                return data
            if self.unplugged:
                raise serial.SerialException("device reports readiness to read but returned no data")
        time.sleep(0.005)
        return b""

    def write(self, data: bytes) -> int:
        self.written += data
        return len(data)

    def close(self) -> None:
        self.closed = True


class _Collector:
    def __init__(self) -> None:
        self.chunks: list[str] = []
        self.statuses: list[ConnectionStatus] = []
        self.lost = threading.Event()

    def on_chunk(self, chunk: str) -> None:
        self.chunks.append(chunk)

    def on_status(self, status: ConnectionStatus) -> None:
        self.statuses.append(status)
        if status is ConnectionStatus.DISCONNECTED:
            self.lost.set()


def _wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_text_stream_transport_delivers_all_text_then_disconnects() -> None:
    text = '{"a": 1}\n{"a": 2}\n{"a": 3}\n'
    collector = _Collector()
    transport = TextStreamTransport(io.StringIO(text), chunk_size=4)
    transport.set_chunk_callback(collector.on_chunk)
    transport.set_status_callback(collector.on_status)

    assert transport.connect({}) is ConnectionStatus.CONNECTED
    assert collector.lost.wait(5.0)
    transport.join(5.0)

    assert "".join(collector.chunks) == text
    assert all(len(chunk) <= 4 for chunk in collector.chunks)
    assert collector.statuses == [ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED]
    assert transport.status is ConnectionStatus.DISCONNECTED


def test_text_stream_transport_reads_path_option(tmp_path) -> None:
    path = tmp_path / "capture.txt"
    path.write_text('{"a": 1}\r\n{"a": 2}\r\n', encoding="utf-8", newline="")
    collector = _Collector()
    transport = TextStreamTransport()
    transport.set_chunk_callback(collector.on_chunk)
    transport.set_status_callback(collector.on_status)

    transport.connect({"path": str(path), "chunk_size": 3})
    assert collector.lost.wait(5.0)

    assert "".join(collector.chunks) == '{"a": 1}\r\n{"a": 2}\r\n'


def test_text_stream_transport_without_source_fails() -> None:
    with pytest.raises(TransportError):
        TextStreamTransport().connect({})


def test_chunk_callback_errors_do_not_stop_the_reader(caplog) -> None:
    seen: list[str] = []

    def _flaky(chunk: str) -> None:
        seen.append(chunk)
        if len(seen) == 1:
            raise RuntimeError("boom")

    collector = _Collector()
    transport = TextStreamTransport.from_text("abcdef", chunk_size=2)
    transport.set_chunk_callback(_flaky)
    transport.set_status_callback(collector.on_status)
    transport.connect({})
    assert collector.lost.wait(5.0)

    assert seen == ["ab", "cd", "ef"]
    assert "Error in chunk callback" in caplog.text


def test_serial_transport_decodes_split_multibyte_characters() -> None:
    ports: list[FakeSerial] = []

    def _factory(*args, **kwargs):
        port = FakeSerial(*args, **kwargs)
        ports.append(port)
        return port

    collector = _Collector()
    transport = SerialTransport(serial_factory=_factory)
    transport.set_chunk_callback(collector.on_chunk)
    transport.set_status_callback(collector.on_status)
    transport.connect({"port": "/dev/ttyACM0", "baud_rate": 115200, "timeout": 0.01, "read_size": 3})

    text = '{"temp": "21°C", "ok": "✓"}\n'
    ports[0].load(text.encode("utf-8"))
    assert _wait_for(lambda: "".join(collector.chunks) == text)

    assert ports[0].port == "/dev/ttyACM0"
    assert ports[0].baudrate == 115200
    assert transport.port == "/dev/ttyACM0"

    transport.disconnect()
    assert ports[0].closed
    assert transport.status is ConnectionStatus.DISCONNECTED


def test_serial_transport_reports_unplugged_device() -> None:
    ports: list[FakeSerial] = []

    def _factory(*args, **kwargs):
        port = FakeSerial(*args, **kwargs)
        ports.append(port)
        return port

    collector = _Collector()
    transport = SerialTransport(serial_factory=_factory)
    transport.set_chunk_callback(collector.on_chunk)
    transport.set_status_callback(collector.on_status)
    transport.connect({"port": "COM3", "timeout": 0.01})

    ports[0].load(b'{"a": 1}\n')
    assert _wait_for(lambda: "".join(collector.chunks) == '{"a": 1}\n')
    ports[0].unplugged = True

    assert collector.lost.wait(5.0)
    assert ports[0].closed
    assert collector.statuses[-1] is ConnectionStatus.DISCONNECTED


def test_serial_transport_requires_port() -> None:
    with pytest.raises(TransportError):
        SerialTransport(serial_factory=FakeSerial).connect({"port": None})


def test_serial_transport_wraps_open_errors() -> None:
    def _factory(*args, **kwargs):
        raise serial.SerialException("could not open port COM9")

    transport = SerialTransport(serial_factory=_factory)
    with pytest.raises(TransportError, match="COM9"):
        transport.connect({"port": "COM9"})
    assert transport.status is ConnectionStatus.DISCONNECTED


def test_serial_transport_write() -> None:
    ports: list[FakeSerial] = []

    def _factory(*args, **kwargs):
        port = FakeSerial(*args, **kwargs)
        ports.append(port)
        return port

    transport = SerialTransport(serial_factory=_factory)
    with pytest.raises(TransportError):
        transport.write("ping\n")

    transport.connect({"port": "COM3", "timeout": 0.01})
    try:
        assert transport.write("ping\n") == 5
        assert ports[0].written == b"ping\n"
    finally:
        transport.disconnect()


def test_serial_transport_read_without_decoder_reports_end_of_stream() -> None:
    transport = SerialTransport(serial_factory=FakeSerial)
    assert transport._read_chunk() is None

    transport._serial = FakeSerial("COM3", 9600)
    transport._serial.load(b"x")
    assert transport._read_chunk() is None


def test_connected_is_reported_before_immediate_end_of_stream() -> None:
    for _ in range(20):
        collector = _Collector()
        transport = TextStreamTransport.from_text("")
        transport.set_status_callback(collector.on_status)
        transport.connect({})
        assert collector.lost.wait(5.0)
        transport.join(5.0)
        assert collector.statuses == [ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED]


def test_disconnect_from_connected_callback_does_not_hang() -> None:
    transport = TextStreamTransport.from_text('{"a": 1}\n')
    statuses: list[ConnectionStatus] = []

    def _on_status(status: ConnectionStatus) -> None:
        statuses.append(status)
        if status is ConnectionStatus.CONNECTED:
            transport.disconnect()

    transport.set_status_callback(_on_status)
    transport.connect({})
    transport.join(5.0)

    assert transport.status is ConnectionStatus.DISCONNECTED
    assert statuses == [ConnectionStatus.CONNECTED]
