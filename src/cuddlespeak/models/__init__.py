"""Data models for actuator addresses and commands."""

from .actuators import Actuator, UsageError, resolve_actuator
from .commands import (
    Command,
    PIDCoefficients,
    Ping,
    RequestPosition,
    RunSelfTest,
    SetPID,
    SetSetpoints,
    Setpoint,
)
