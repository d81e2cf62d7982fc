"""Command-line and MCP client for the Cuddlebot actuators."""

__version__ = "0.1.0"
