"""Turn a command name and its positional arguments into a command value."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence

from ..models.actuators import UsageError
from ..models.commands import (
    MAX_LOOP_COUNT,
    UINT16_MAX,
    Command,
    PIDCoefficients,
    Ping,
    RequestPosition,
    RunSelfTest,
    SetPID,
    SetSetpoints,
    Setpoint,
)

logger = logging.getLogger(__name__)

FOREVER = "forever"
INTEGER_PATTERN = re.compile(r"-?[0-9]+")
FLOAT32_MAX = 3.4028234663852886e38

COMMAND_NAMES = ("setpid", "setpoint", "ping", "test", "value")


def parse_float(name: str, token: str) -> float:
    """Parse ``token`` as a float that fits a float32 field."""
    try:
        value = float(token)
    except ValueError:
        raise UsageError(f"{name} must be a number, got {token!r}") from None
    if math.isfinite(value) and abs(value) > FLOAT32_MAX:
        raise UsageError(f"{name} is out of range: {token}")
    return value


def parse_uint16(name: str, token: str, maximum: int = UINT16_MAX) -> int:
    """Parse ``token`` as a base-10 integer in ``0..maximum``."""
    if not INTEGER_PATTERN.fullmatch(token):
        raise UsageError(f"{name} must be an integer, got {token!r}")
    value = int(token)
    if value < 0:
        raise UsageError(f"{name} must not be negative, got {value}")
    if value > maximum:
        raise UsageError(f"{name} must be at most {maximum}, got {value}")
    return value


def parse_loop(token: str) -> int | None:
    """Parse the loop count; ``"forever"`` gives ``None``."""
    if token == FOREVER:
        return None
    return parse_uint16("loop", token, MAX_LOOP_COUNT)


def parse_set_pid(args: Sequence[str]) -> SetPID:
    if len(args) != 3:
        raise UsageError(f"setpid takes 3 arguments (kp ki kd), got {len(args)}")
    kp, ki, kd = (parse_float(name, token) for name, token in zip(("kp", "ki", "kd"), args))
    logger.debug("parsed pid kp=%f ki=%f kd=%f", kp, ki, kd)
    return SetPID(PIDCoefficients(kp=kp, ki=ki, kd=kd))


def parse_set_setpoints(args: Sequence[str]) -> SetSetpoints:
    if len(args) < 4:
        raise UsageError(
            "setpoint takes delay, loop and at least one duration/setpoint pair"
        )
    if len(args) % 2 != 0:
        raise UsageError("duration and setpoint must be given in pairs")

    delay = parse_uint16("delay", args[0])
    loop = parse_loop(args[1])

    setpoints = []
    for i in range(2, len(args), 2):
        setpoints.append(
            Setpoint(
                duration=parse_uint16("duration", args[i]),
                setpoint=parse_uint16("setpoint", args[i + 1]),
            )
        )

    logger.debug(
        "parsed setpoints delay=%d loop=%s entries=%d",
        delay,
        FOREVER if loop is None else loop,
        len(setpoints),
    )
    return SetSetpoints(delay=delay, loop=loop, setpoints=tuple(setpoints))


def _no_arguments(command: Command):
    def parse(args: Sequence[str]) -> Command:
        if args:
            raise UsageError(f"{command.name} takes no arguments, got {len(args)}")
        return command

    return parse


PARSERS = {
    "setpid": parse_set_pid,
    "setpoint": parse_set_setpoints,
    "ping": _no_arguments(Ping()),
    "test": _no_arguments(RunSelfTest()),
    "value": _no_arguments(RequestPosition()),
}


def parse_command(name: str, args: Sequence[str]) -> Command:
    """Validate ``args`` for the command called ``name``.

    Args:
        name: One of ``COMMAND_NAMES``.
        args: The positional arguments that followed the command name.

    Returns:
        The command value, ready to encode.

    Raises:
        UsageError: On an unknown command, wrong arity, malformed or
            negative numbers, or values that do not fit 16 bits.
    """
    parser = PARSERS.get(name)
    if parser is None:
        raise UsageError(f"unknown command {name!r}; expected one of {', '.join(COMMAND_NAMES)}")
    return parser(list(args))
