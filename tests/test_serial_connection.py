"""Tests for the serial transport."""

import io
import threading
import time
from unittest.mock import MagicMock, patch

import pytest
import serial

from cuddlespeak.transport.serial_connection import (
    DEFAULT_BAUDRATE,
    DEFAULT_PORT,
    SerialConnection,
)


def test_defaults():
    conn = SerialConnection()
    assert conn.port == DEFAULT_PORT
    assert not conn.connected


def test_open_configures_8n1():
    """The port is opened at 115200 8N1."""
    with patch("cuddlespeak.transport.serial_connection.serial.Serial") as mock_serial:
        conn = SerialConnection("/dev/ttyACM0")
        conn.open()
    mock_serial.assert_called_once()
    args, kwargs = mock_serial.call_args
    assert args == ("/dev/ttyACM0",)
    assert kwargs["baudrate"] == DEFAULT_BAUDRATE
    assert kwargs["bytesize"] == serial.EIGHTBITS
    assert kwargs["parity"] == serial.PARITY_NONE
    assert kwargs["stopbits"] == serial.STOPBITS_ONE


def test_open_failure_raises_connection_error():
    with patch(
        "cuddlespeak.transport.serial_connection.serial.Serial",
        side_effect=serial.SerialException("could not open port"),
    ):
        conn = SerialConnection("/dev/missing")
        with pytest.raises(ConnectionError, match="/dev/missing"):
            conn.open()
    assert not conn.connected


def test_context_manager_closes_on_error():
    """The port is released even when the body raises."""
    port = MagicMock()
    with patch("cuddlespeak.transport.serial_connection.serial.Serial", return_value=port):
        with pytest.raises(RuntimeError):
            with SerialConnection("/dev/ttyUSB0"):
                raise RuntimeError("boom")
    port.close.assert_called_once()


def test_send_writes_all_bytes(fake_port):
    conn = SerialConnection.from_port(fake_port)
    conn.send(b"\xAA\x55\x01")
    assert bytes(fake_port.written) == b"\xAA\x55\x01"


def test_send_when_closed():
    with pytest.raises(ConnectionError):
        SerialConnection().send(b"\x00")


def test_short_write_is_an_error(make_port):
    conn = SerialConnection.from_port(make_port(short_by=1))
    with pytest.raises(OSError, match="Short write"):
        conn.send(b"\x01\x02\x03")


def test_write_error_propagates(make_port):
    port = make_port()
    port.write = MagicMock(side_effect=serial.SerialTimeoutException("Write timeout"))
    conn = SerialConnection.from_port(port)
    with pytest.raises(OSError):
        conn.send(b"\x01")


def test_send_and_await_copies_reply(loop_port):
    """Bytes that arrive before the deadline go to the sink."""
    conn = SerialConnection.from_port(loop_port)
    sink = io.BytesIO()
    received = conn.send_and_await(b"pong\n", timeout=0.3, sink=sink)
    assert received == 5
    assert sink.getvalue() == b"pong\n"


def test_send_and_await_no_reply(fake_port):
    """A silent device is not an error: nothing is written to the sink."""
    conn = SerialConnection.from_port(fake_port)
    sink = io.BytesIO()
    start = time.monotonic()
    received = conn.send_and_await(b"\x01", timeout=0.2, sink=sink)
    assert received == 0
    assert sink.getvalue() == b""
    assert time.monotonic() - start >= 0.2
    assert bytes(fake_port.written) == b"\x01"


def test_send_and_await_stops_on_read_error(make_port):
    conn = SerialConnection.from_port(make_port(read_error=True))
    sink = io.BytesIO()
    assert conn.send_and_await(b"\x01", timeout=5.0, sink=sink) == 0


def test_send_and_await_cancel(fake_port):
    """A set cancel event ends the read right after the write."""
    conn = SerialConnection.from_port(fake_port)
    cancel = threading.Event()
    cancel.set()
    start = time.monotonic()
    assert conn.send_and_await(b"\x01", timeout=60.0, sink=io.BytesIO(), cancel=cancel) == 0
    assert time.monotonic() - start < 1.0
    assert bytes(fake_port.written) == b"\x01"


def test_close_is_idempotent(fake_port):
    conn = SerialConnection.from_port(fake_port)
    conn.close()
    conn.close()
    assert not conn.connected
    assert not fake_port.is_open


def test_send_and_await_stops_when_adapter_unplugged(make_port):
    """An I/O error while polling ends the read without raising."""
    port = make_port(unplugged=True)
    conn = SerialConnection.from_port(port)
    sink = io.BytesIO()
    assert conn.send_and_await(b"\x01", timeout=1.0, sink=sink) == 0
    assert sink.getvalue() == b""
    assert bytes(port.written) == b"\x01"
