"""Message type constants and command encoders.

Each encoder turns a command value plus an actuator address into one
frame. Encoding is pure: the same inputs always give the same bytes.
"""

from __future__ import annotations

import struct
from enum import IntEnum

from ..models.actuators import Actuator
from ..models.commands import (
    MAX_LOOP_COUNT,
    UINT16_MAX,
    Command,
    Ping,
    RequestPosition,
    RunSelfTest,
    SetPID,
    SetSetpoints,
    Setpoint,
)
from .framing import build_frame

LOOP_FOREVER = 0xFFFF


class MessageType(IntEnum):
    """Message type identifiers."""

    SET_PID = 0x01
    SETPOINT = 0x02
    PING = 0x03
    RUN_TESTS = 0x04
    REQUEST_POSITION = 0x05


def _check_uint16(name: str, value: int) -> None:
    if not 0 <= value <= UINT16_MAX:
        raise ValueError(f"{name} must be 0-{UINT16_MAX}, got {value}")


def build_set_pid(address: Actuator, kp: float, ki: float, kd: float) -> bytes:
    """Build a SetPID message with float32 coefficients."""
    return build_frame(address, MessageType.SET_PID, struct.pack("<fff", kp, ki, kd))


def build_setpoint(
    address: Actuator,
    delay: int,
    loop: int | None,
    setpoints: list[Setpoint] | tuple[Setpoint, ...],
) -> bytes:
    """Build a Setpoint message.

    Args:
        address: Target actuator.
        delay: Milliseconds before the sequence starts.
        loop: Repetition count, or ``None`` to repeat forever.
        setpoints: One or more (duration, setpoint) entries.
    """
    if not setpoints:
        raise ValueError("At least one setpoint is required")
    _check_uint16("delay", delay)
    if loop is None:
        loop_value = LOOP_FOREVER
    elif 0 <= loop <= MAX_LOOP_COUNT:
        loop_value = loop
    else:
        raise ValueError(f"loop must be 0-{MAX_LOOP_COUNT}, got {loop}")
    _check_uint16("setpoint count", len(setpoints))

    payload = bytearray(struct.pack("<HHH", delay, loop_value, len(setpoints)))
    for entry in setpoints:
        _check_uint16("duration", entry.duration)
        _check_uint16("setpoint", entry.setpoint)
        payload += struct.pack("<HH", entry.duration, entry.setpoint)
    return build_frame(address, MessageType.SETPOINT, bytes(payload))


def build_ping(address: Actuator) -> bytes:
    return build_frame(address, MessageType.PING)


def build_run_tests(address: Actuator) -> bytes:
    return build_frame(address, MessageType.RUN_TESTS)


def build_request_position(address: Actuator) -> bytes:
    return build_frame(address, MessageType.REQUEST_POSITION)


def encode(address: Actuator, command: Command) -> bytes:
    """Encode ``command`` for the actuator at ``address``.

    Raises:
        TypeError: If ``command`` is not one of the command variants.
        ValueError: If a field does not fit its wire width.
    """
    encoders = {
        SetPID: lambda c: build_set_pid(
            address, c.coefficients.kp, c.coefficients.ki, c.coefficients.kd
        ),
        SetSetpoints: lambda c: build_setpoint(address, c.delay, c.loop, c.setpoints),
        Ping: lambda c: build_ping(address),
        RunSelfTest: lambda c: build_run_tests(address),
        RequestPosition: lambda c: build_request_position(address),
    }
    encoder = encoders.get(type(command))
    if encoder is None:
        raise TypeError(f"Cannot encode {type(command).__name__}")
    return encoder(command)
