"""Serial transport to the actuator bus."""

from .serial_connection import SerialConnection
