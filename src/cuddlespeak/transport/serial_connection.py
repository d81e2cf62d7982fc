"""Serial connection to the actuator bus.

The bus is a plain 115200 8N1 serial line. One write is made per command;
commands that expect a reply then read until a deadline, copying every
byte received to a sink as it arrives.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import BinaryIO

import serial

logger = logging.getLogger(__name__)

DEFAULT_PORT = "/dev/ttyUSB0"
DEFAULT_BAUDRATE = 115200
READ_SLICE_S = 0.1
READ_CHUNK_SIZE = 4096


class SerialConnection:
    """Owns the serial port for one command exchange.

    Usage::

        with SerialConnection("/dev/ttyUSB0") as conn:
            conn.send(frame)
            conn.send_and_await(frame, timeout=1.0, sink=sys.stdout.buffer)
    """

    def __init__(
        self,
        port: str = DEFAULT_PORT,
        baudrate: int = DEFAULT_BAUDRATE,
    ) -> None:
        self._port_name = port
        self._baudrate = baudrate
        self._serial = None

    @classmethod
    def from_port(cls, port) -> SerialConnection:
        """Wrap an already-open pyserial port object."""
        conn = cls(getattr(port, "port", None) or "<open port>")
        conn._serial = port
        return conn

    @property
    def port(self) -> str:
        return self._port_name

    @property
    def connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> None:
        """Open the serial port at 8N1.

        Raises:
            ConnectionError: If the port cannot be opened.
        """
        if self.connected:
            return
        try:
            self._serial = serial.Serial(
                self._port_name,
                baudrate=self._baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=READ_SLICE_S,
            )
        except (serial.SerialException, ValueError) as e:
            raise ConnectionError(f"Could not open {self._port_name}: {e}") from e
        logger.debug("opened %s", self._port_name)

    def close(self) -> None:
        """Close the serial port."""
        if self._serial is None:
            return
        try:
            self._serial.close()
        finally:
            self._serial = None
            logger.debug("closed %s", self._port_name)

    def __enter__(self) -> SerialConnection:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def send(self, data: bytes) -> None:
        """Write all of ``data`` to the port.

        Raises:
            ConnectionError: If the port is not open.
            OSError: If the write fails or is short.
        """
        if not self.connected:
            raise ConnectionError("Serial port is not open")

        written = self._serial.write(data)
        if written is not None and written != len(data):
            raise OSError(f"Short write to {self._port_name}: {written} of {len(data)} bytes")
        self._serial.flush()

    def send_and_await(
        self,
        data: bytes,
        timeout: float,
        sink: BinaryIO,
        cancel: threading.Event | None = None,
    ) -> int:
        """Write ``data``, then copy the reply to ``sink`` until ``timeout``.

        Reading stops when the deadline passes, when ``cancel`` is set, or
        when the port reports an error (the adapter went away). No reply is
        not an error.

        Args:
            data: Encoded frame to send.
            timeout: Seconds to wait after the write completes.
            sink: Binary stream that receives reply bytes as they arrive.
            cancel: Optional event that ends the read early.

        Returns:
            Number of bytes copied to ``sink``.
        """
        self.send(data)
        deadline = time.monotonic() + timeout
        received = 0

        while cancel is None or not cancel.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                self._serial.timeout = min(remaining, READ_SLICE_S)
                chunk = self._serial.read(max(1, min(self._serial.in_waiting, READ_CHUNK_SIZE)))
            except OSError as e:
                logger.debug("read from %s ended: %s", self._port_name, e)
                break
            if chunk:
                sink.write(chunk)
                sink.flush()
                received += len(chunk)

        logger.debug("received %d bytes from %s", received, self._port_name)
        return received
