"""
Physical Unit Constants
=======================

Conversion factors used when turning raw log values into SI-style
units. Depths are reported in metres, temperatures in degrees Celsius,
and pressures in bar.

    >>> from shearwater_log.units import FEET
    >>> round(100 * FEET, 2)
    30.48
"""

from typing import Final

# Length of one foot in metres
FEET: Final[float] = 0.3048

# Pascals per psi
PSI: Final[float] = 6894.75729

# Pascals per bar
BAR: Final[float] = 100000.0

# Standard gravity in m/s²
GRAVITY: Final[float] = 9.80665


def fahrenheit_to_celsius(value: float) -> float:
    """Convert a Fahrenheit temperature to Celsius."""
    return (value - 32.0) * (5.0 / 9.0)
