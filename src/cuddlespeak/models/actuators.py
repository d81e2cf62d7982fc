"""Actuator addresses and selection."""

from __future__ import annotations

from collections.abc import Mapping
from enum import IntEnum


class UsageError(ValueError):
    """Raised when command-line input cannot be turned into a command."""


class Actuator(IntEnum):
    """Bus address of each actuator board."""

    RIBS = 0x01
    PURR = 0x02
    SPINE = 0x03
    HEAD_YAW = 0x04
    HEAD_PITCH = 0x05


# Selector names in priority order, as they appear on the command line
ACTUATOR_SELECTORS: dict[str, Actuator] = {
    "ribs": Actuator.RIBS,
    "purr": Actuator.PURR,
    "spine": Actuator.SPINE,
    "headx": Actuator.HEAD_YAW,
    "heady": Actuator.HEAD_PITCH,
}


def resolve_actuator(selected: Mapping[str, bool]) -> Actuator:
    """Return the single actuator named by a set of boolean selectors.

    Args:
        selected: Selector name (see ``ACTUATOR_SELECTORS``) to flag value.
            Missing names count as unset.

    Raises:
        UsageError: If no selector, more than one selector, or an unknown
            selector name is set.
    """
    unknown = [name for name, on in selected.items() if on and name not in ACTUATOR_SELECTORS]
    if unknown:
        raise UsageError(f"unknown actuator selector(s): {', '.join(unknown)}")

    chosen = [name for name in ACTUATOR_SELECTORS if selected.get(name)]
    if not chosen:
        raise UsageError(
            "no actuator selected; use one of "
            + ", ".join(f"-{name}" for name in ACTUATOR_SELECTORS)
        )
    if len(chosen) > 1:
        raise UsageError(
            "only one actuator may be selected, got "
            + ", ".join(f"-{name}" for name in chosen)
        )
    return ACTUATOR_SELECTORS[chosen[0]]
