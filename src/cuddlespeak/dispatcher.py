"""Send a command to an actuator and collect its reply."""

from __future__ import annotations

import logging
import threading
from typing import BinaryIO

from .models.actuators import Actuator
from .models.commands import (
    Command,
    Ping,
    RequestPosition,
    RunSelfTest,
    SetPID,
    SetSetpoints,
)
from .protocol.commands import encode
from .transport.serial_connection import SerialConnection

logger = logging.getLogger(__name__)

PING_TIMEOUT = 1.0
VALUE_TIMEOUT = 1.0
TEST_TIMEOUT = 5 * 60.0

# Seconds to wait for a reply per command type; None means fire and forget.
RESPONSE_TIMEOUTS: dict[type, float | None] = {
    SetPID: None,
    SetSetpoints: None,
    Ping: PING_TIMEOUT,
    RunSelfTest: TEST_TIMEOUT,
    RequestPosition: VALUE_TIMEOUT,
}


def response_timeout(command: Command) -> float | None:
    """Return how long to wait for a reply to ``command``, or ``None``."""
    try:
        return RESPONSE_TIMEOUTS[type(command)]
    except KeyError:
        raise TypeError(f"Unknown command type {type(command).__name__}") from None


def dispatch(
    conn: SerialConnection,
    actuator: Actuator,
    command: Command,
    sink: BinaryIO,
    cancel: threading.Event | None = None,
) -> int:
    """Encode ``command``, send it to ``actuator`` and apply its reply policy.

    Returns:
        Number of reply bytes written to ``sink`` (always 0 for commands
        that expect no reply).
    """
    frame = encode(actuator, command)
    timeout = response_timeout(command)

    if timeout is None:
        conn.send(frame)
        received = 0
    else:
        received = conn.send_and_await(frame, timeout, sink, cancel=cancel)

    logger.debug("sent %s message to address %d", command.name, int(actuator))
    return received
