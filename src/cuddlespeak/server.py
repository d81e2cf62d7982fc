"""MCP server entry point for the Cuddlebot actuators.

Exposes the same commands as the ``cuddlespeak`` CLI as tools over the
Model Context Protocol, using the official Python MCP SDK with stdio
transport. The serial port stays open between tool calls.
"""

from __future__ import annotations

import io
import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .dispatcher import dispatch, response_timeout
from .models.actuators import UsageError, resolve_actuator
from .models.commands import (
    MAX_LOOP_COUNT,
    Command,
    PIDCoefficients,
    Ping,
    RequestPosition,
    RunSelfTest,
    SetPID,
    SetSetpoints,
    Setpoint,
)
from .protocol.arguments import parse_float, parse_loop, parse_uint16
from .transport.serial_connection import DEFAULT_PORT, SerialConnection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "cuddlespeak",
    instructions="MCP server for testing the Cuddlebot actuators over a serial bus",
)

# Global connection state
_connection: SerialConnection | None = None


def _get_connection() -> SerialConnection:
    """Get the open serial connection, raising if not connected."""
    if _connection is None or not _connection.connected:
        raise RuntimeError(
            "Not connected to the actuator bus. Use the 'connect' tool first."
        )
    return _connection


def _run(actuator: str, command: Command) -> dict[str, Any]:
    """Send ``command`` and describe the outcome."""
    try:
        address = resolve_actuator({actuator: True})
    except UsageError as e:
        return {"error": str(e)}

    conn = _get_connection()
    reply = io.BytesIO()
    try:
        received = dispatch(conn, address, command, reply)
    except (ValueError, OSError) as e:
        return {"error": str(e)}

    result: dict[str, Any] = {
        "sent": command.name,
        "address": int(address),
    }
    if response_timeout(command) is not None:
        data = reply.getvalue()
        result["received"] = received
        result["reply_hex"] = data.hex(" ")
        result["reply_text"] = data.decode("utf-8", errors="replace")
    return result


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(port: str = DEFAULT_PORT) -> dict[str, Any]:
    """Open the serial port the actuator boards are attached to.

    Args:
        port: Serial device path (default /dev/ttyUSB0).
    """
    global _connection
    if _connection is not None and _connection.connected:
        return {
            "connected": True,
            "message": "Already connected",
            "port": _connection.port,
        }

    conn = SerialConnection(port)
    try:
        conn.open()
    except ConnectionError as e:
        return {"connected": False, "error": str(e)}
    _connection = conn
    return {"connected": True, "port": port}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the serial port."""
    global _connection
    if _connection is None:
        return {"disconnected": True}
    _connection.close()
    _connection = None
    return {"disconnected": True}


# ─── ACTUATOR TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def ping(actuator: str) -> dict[str, Any]:
    """Ping an actuator and return whatever it replies within one second.

    Args:
        actuator: One of ribs, purr, spine, headx, heady.
    """
    return _run(actuator, Ping())


@mcp.tool()
def run_self_test(actuator: str) -> dict[str, Any]:
    """Run the actuator's self test and return the test report.

    Waits up to five minutes for the report.

    Args:
        actuator: One of ribs, purr, spine, headx, heady.
    """
    return _run(actuator, RunSelfTest())


@mcp.tool()
def request_position(actuator: str) -> dict[str, Any]:
    """Read the actuator's current motor position.

    Args:
        actuator: One of ribs, purr, spine, headx, heady.
    """
    return _run(actuator, RequestPosition())


@mcp.tool()
def set_pid(actuator: str, kp: float, ki: float, kd: float) -> dict[str, Any]:
    """Set the position controller's PID coefficients.

    Args:
        actuator: One of ribs, purr, spine, headx, heady.
        kp: Proportional gain.
        ki: Integral gain.
        kd: Derivative gain.
    """
    try:
        coefficients = PIDCoefficients(
            kp=parse_float("kp", str(kp)),
            ki=parse_float("ki", str(ki)),
            kd=parse_float("kd", str(kd)),
        )
    except UsageError as e:
        return {"error": str(e)}
    return _run(actuator, SetPID(coefficients))


@mcp.tool()
def set_setpoints(
    actuator: str,
    delay: int,
    loop: int | str,
    setpoints: list[list[int]],
) -> dict[str, Any]:
    """Send a sequence of timed position setpoints.

    Args:
        actuator: One of ribs, purr, spine, headx, heady.
        delay: Milliseconds to wait before starting the sequence.
        loop: Number of repetitions (0-65534) or "forever".
        setpoints: Non-empty list of [duration_ms, setpoint] pairs, with the
                   setpoint in 1/65536 increments of a full turn.
    """
    if not setpoints:
        return {"error": "At least one [duration, setpoint] pair is required"}
    try:
        entries = []
        for pair in setpoints:
            if len(pair) != 2:
                raise UsageError(f"Setpoint entries must be [duration, setpoint], got {pair}")
            entries.append(
                Setpoint(
                    duration=parse_uint16("duration", str(pair[0])),
                    setpoint=parse_uint16("setpoint", str(pair[1])),
                )
            )
        command = SetSetpoints(
            delay=parse_uint16("delay", str(delay)),
            loop=parse_loop(str(loop)),
            setpoints=tuple(entries),
        )
    except UsageError as e:
        return {"error": str(e)}
    return _run(actuator, command)


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("cuddlespeak://device/status")
def resource_device_status() -> str:
    """Connection state and serial port."""
    connected = _connection is not None and _connection.connected
    return json.dumps({
        "connected": connected,
        "port": _connection.port if connected else None,
        "max_loop_count": MAX_LOOP_COUNT,
    })


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
