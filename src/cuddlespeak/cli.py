"""Command-line entry point for testing the Cuddlebot actuators.

Usage::

    cuddlespeak -ribs setpid 40.4 1.0 -1.0
    cuddlespeak -ribs setpoint 0 forever 1000 26075 1000 0
    cuddlespeak -headx ping
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import BinaryIO, Sequence

from .dispatcher import dispatch
from .models.actuators import ACTUATOR_SELECTORS, Actuator, UsageError, resolve_actuator
from .models.commands import Command
from .protocol.arguments import parse_command
from .transport.serial_connection import DEFAULT_BAUDRATE, DEFAULT_PORT, SerialConnection

logger = logging.getLogger(__name__)

DESCRIPTION = """\
Cuddlespeak is a tool for testing the Cuddlebot actuators.

Select exactly one actuator flag, then give a command and its arguments.
"""

EPILOG = """\
commands:
    setpid      set the PID coefficients
    setpoint    send setpoints
    ping        send a ping
    test        send test command
    value       read motor position

The setpid command accepts these arguments:

    kp          float: the P coefficient
    ki          float: the I coefficient
    kd          float: the D coefficient

The setpoint command accepts these arguments:

    delay       uint: milliseconds to wait before starting
    loop        uint: the number of times to repeat this group of
                setpoints or "forever" to loop indefinitely
    [duration setpoint]+
                one or more setpoints consisting of groups of two
                uints in order: duration setpoint; with duration in
                milliseconds and setpoint in (1 / 2^16) increments of
                a circle

examples:

    $ %(prog)s -ribs setpid 40.4 1.0 -1.0

    $ %(prog)s -ribs setpoint 0 forever 1000 26075 1000 0

    $ %(prog)s -ribs ping

    $ %(prog)s -ribs test
    ... test results ...

    $ %(prog)s -ribs value
    0.1
"""

SELECTOR_HELP = {
    "ribs": "send command to ribs actuator",
    "purr": "send command to purr actuator",
    "spine": "send command to spine actuator",
    "headx": "send command to head yaw actuator",
    "heady": "send command to head pitch actuator",
}


@dataclass(frozen=True)
class Config:
    """Everything one invocation needs, parsed from the command line."""

    actuator: Actuator
    command: Command
    port: str = DEFAULT_PORT
    baudrate: int = DEFAULT_BAUDRATE
    debug: bool = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cuddlespeak",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("-help", "-h", action="help", help="print help")
    for name in ACTUATOR_SELECTORS:
        parser.add_argument(f"-{name}", action="store_true", help=SELECTOR_HELP[name])
    parser.add_argument("-port", default=DEFAULT_PORT, help="the serial port name")
    parser.add_argument("-debug", action="store_true", help="print debug messages")
    parser.add_argument("command", help="one of setpid, setpoint, ping, test, value")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="command arguments")
    return parser


def build_config(args: argparse.Namespace) -> Config:
    """Resolve the actuator and validate the command.

    Raises:
        UsageError: If the actuator selection or command is invalid.
    """
    actuator = resolve_actuator({name: getattr(args, name) for name in ACTUATOR_SELECTORS})
    command = parse_command(args.command, args.args)
    return Config(actuator=actuator, command=command, port=args.port, debug=args.debug)


def run(config: Config, sink: BinaryIO) -> int:
    """Open the port, dispatch the command and return the exit status."""
    try:
        with SerialConnection(config.port, config.baudrate) as conn:
            dispatch(conn, config.actuator, config.command, sink)
    except BrokenPipeError as e:
        logger.warning("output closed before the reply ended: %s", e)
        return 1
    except ConnectionError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("I/O error on %s: %s", config.port, e)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(name)s [%(levelname)s] %(message)s",
        stream=sys.stderr,
    )

    try:
        config = build_config(args)
    except UsageError as e:
        parser.error(str(e))

    return run(config, sys.stdout.buffer)


if __name__ == "__main__":
    sys.exit(main())
