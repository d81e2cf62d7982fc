"""Immutable command values sent to an actuator.

Each variant is built once per invocation, encoded by
:func:`cuddlespeak.protocol.commands.encode` and then discarded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

UINT16_MAX = 0xFFFF
# The loop field shares its width with the repeat-forever marker, so the
# largest finite count is one less than the marker.
MAX_LOOP_COUNT = UINT16_MAX - 1


@dataclass(frozen=True)
class PIDCoefficients:
    """Proportional, integral and derivative gains."""

    kp: float
    ki: float
    kd: float


@dataclass(frozen=True)
class Setpoint:
    """Move to ``setpoint`` (1/65536 of a turn) over ``duration`` ms."""

    duration: int
    setpoint: int


@dataclass(frozen=True)
class SetPID:
    coefficients: PIDCoefficients

    name = "setpid"


@dataclass(frozen=True)
class SetSetpoints:
    """A setpoint sequence started after ``delay`` ms.

    ``loop`` is the number of repetitions, or ``None`` to repeat forever.
    """

    delay: int
    loop: int | None
    setpoints: tuple[Setpoint, ...]

    name = "setpoint"

    @property
    def loops_forever(self) -> bool:
        return self.loop is None


@dataclass(frozen=True)
class Ping:
    name = "ping"


@dataclass(frozen=True)
class RunSelfTest:
    name = "test"


@dataclass(frozen=True)
class RequestPosition:
    name = "value"


Command = Union[SetPID, SetSetpoints, Ping, RunSelfTest, RequestPosition]
