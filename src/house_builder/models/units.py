"""Length unit conversion.

The document stores every length in meters. User-facing dimensions
(settings, CLI options) are usually given in millimeters and converted
at the boundary.
"""

from __future__ import annotations

from enum import Enum


class DisplayUnit(str, Enum):
    """Length units accepted at the model boundary."""

    MILLIMETERS = "mm"
    CENTIMETERS = "cm"
    METERS = "m"
    FEET = "ft"
    INCHES = "in"


_METERS_PER_UNIT = {
    DisplayUnit.MILLIMETERS: 0.001,
    DisplayUnit.CENTIMETERS: 0.01,
    DisplayUnit.METERS: 1.0,
    DisplayUnit.FEET: 0.3048,
    DisplayUnit.INCHES: 0.0254,
}


def to_internal(value: float, unit: DisplayUnit | str) -> float:
    """Convert a length in ``unit`` to internal meters."""
    return value * _METERS_PER_UNIT[DisplayUnit(unit)]


def from_internal(value: float, unit: DisplayUnit | str) -> float:
    """Convert internal meters to a length in ``unit``."""
    return value / _METERS_PER_UNIT[DisplayUnit(unit)]
