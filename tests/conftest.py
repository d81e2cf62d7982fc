"""Shared fixtures for the serial tests."""

from __future__ import annotations

import errno
import os
import time

import pytest
import serial


class FakePort:
    """Stand-in for a pyserial port that never replies."""

    def __init__(
        self,
        reply: bytes = b"",
        short_by: int = 0,
        read_error: bool = False,
        unplugged: bool = False,
    ):
        self.is_open = True
        self.port = "fake://"
        self.timeout = None
        self.written = bytearray()
        self._reply = bytearray(reply)
        self._short_by = short_by
        self._read_error = read_error
        self._unplugged = unplugged

    @property
    def in_waiting(self) -> int:
        if self._unplugged:
            raise OSError(errno.EIO, os.strerror(errno.EIO))
        return len(self._reply)

    def write(self, data: bytes) -> int:
        self.written += data
        return len(data) - self._short_by

    def flush(self) -> None:
        pass

    def read(self, size: int = 1) -> bytes:
        if self._read_error:
            raise serial.SerialException("device reports readiness to read but returned no data")
        if not self._reply:
            time.sleep(self.timeout or 0)
            return b""
        chunk = bytes(self._reply[:size])
        del self._reply[:size]
        return chunk

    def close(self) -> None:
        self.is_open = False


@pytest.fixture
def make_port():
    """Factory for fake ports, see ``FakePort`` for the options."""
    return FakePort


@pytest.fixture
def fake_port(make_port):
    return make_port()


@pytest.fixture
def loop_port():
    """A pyserial loopback port: everything written is read back."""
    port = serial.serial_for_url("loop://", timeout=0.05)
    yield port
    port.close()
