"""Tests for the command dispatcher and its reply policy."""

import io
from unittest.mock import MagicMock

import pytest

from cuddlespeak.dispatcher import dispatch, response_timeout
from cuddlespeak.models.actuators import Actuator
from cuddlespeak.models.commands import (
    PIDCoefficients,
    Ping,
    RequestPosition,
    RunSelfTest,
    SetPID,
    SetSetpoints,
    Setpoint,
)
from cuddlespeak.protocol.commands import encode
from cuddlespeak.transport.serial_connection import SerialConnection

SET_PID = SetPID(PIDCoefficients(40.4, 1.0, -1.0))
SET_SETPOINTS = SetSetpoints(delay=0, loop=None, setpoints=(Setpoint(1000, 26075),))


@pytest.mark.parametrize(
    "command, expected",
    [
        (SET_PID, None),
        (SET_SETPOINTS, None),
        (Ping(), 1.0),
        (RunSelfTest(), 300.0),
        (RequestPosition(), 1.0),
    ],
)
def test_response_timeout(command, expected):
    assert response_timeout(command) == expected


def test_response_timeout_unknown():
    with pytest.raises(TypeError):
        response_timeout(object())


@pytest.mark.parametrize("command", [SET_PID, SET_SETPOINTS])
def test_dispatch_fire_and_forget(command):
    """Configuration commands are written without waiting for a reply."""
    conn = MagicMock()
    sink = io.BytesIO()
    assert dispatch(conn, Actuator.RIBS, command, sink) == 0
    conn.send.assert_called_once_with(encode(Actuator.RIBS, command))
    conn.send_and_await.assert_not_called()
    assert sink.getvalue() == b""


@pytest.mark.parametrize(
    "command, timeout",
    [(Ping(), 1.0), (RunSelfTest(), 300.0), (RequestPosition(), 1.0)],
)
def test_dispatch_awaits_reply(command, timeout):
    conn = MagicMock()
    conn.send_and_await.return_value = 3
    sink = io.BytesIO()
    assert dispatch(conn, Actuator.HEAD_YAW, command, sink) == 3
    conn.send_and_await.assert_called_once_with(
        encode(Actuator.HEAD_YAW, command), timeout, sink, cancel=None
    )
    conn.send.assert_not_called()


def test_dispatch_ping_streams_reply(make_port):
    """Reply bytes reach the sink unchanged."""
    port = make_port(reply=b"pong\r\n")
    conn = SerialConnection.from_port(port)
    sink = io.BytesIO()
    assert dispatch(conn, Actuator.PURR, Ping(), sink) == 6
    assert sink.getvalue() == b"pong\r\n"
    assert bytes(port.written) == encode(Actuator.PURR, Ping())


def test_dispatch_logs_sent_message(caplog):
    caplog.set_level("DEBUG", logger="cuddlespeak.dispatcher")
    dispatch(MagicMock(), Actuator.SPINE, SET_PID, io.BytesIO())
    assert "sent setpid message to address 3" in caplog.text
