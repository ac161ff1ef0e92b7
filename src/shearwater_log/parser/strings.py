"""
Descriptive Strings
===================

Human-readable facts about a dive (serial number, firmware, deco model,
battery) are published as labelled strings. This module provides the
fixed-capacity table that holds them, and the static lookup tables used
to format them.

String Table Semantics
----------------------
- At most MAXSTRINGS entries, kept in insertion order.
- First write wins: adding a label that already exists is ignored.
- Writes beyond capacity are dropped and logged at warning level.
"""

import logging
from typing import Final

from shearwater_log.parser.records import FieldString

logger = logging.getLogger(__name__)

# Capacity of the descriptive string table
MAXSTRINGS = 32


# =============================================================================
# Lookup Tables
# =============================================================================

# Aggregated transmitter battery bitmask → summary.
# Bit 0 = normal, bit 1 = critical, bit 2 = warning.
# Critical dominates warning, which dominates normal.
BATTERY_STATES: Final[tuple[str, ...]] = (
    "",          # 000 - no state bits
    "normal",    # 001
    "critical",  # 010
    "critical",  # 011
    "warning",   # 100
    "warning",   # 101
    "critical",  # 110
    "critical",  # 111
)

BATTERY_TYPES: Final[dict[int, str]] = {
    1: "1.5V Alkaline",
    2: "1.5V Lithium",
    3: "1.2V NiMH",
    4: "3.6V Saft",
    5: "3.7V Li-Ion",
}

# Deco model ids
DECO_MODEL_GF = 0
DECO_MODEL_VPMB = 1
DECO_MODEL_VPMB_GFS = 2


def battery_state(word: int) -> int:
    """
    Convert a transmitter pressure word into a battery state bit.

    The word is 0xFFF0 or above when the transmitter is off, unpaired or
    out of contact; no state is reported then. Otherwise the top four
    bits hold the battery state (0 normal, 1 critical, 2 warning).

    Returns:
        A single-bit mask (1, 2 or 4), or 0 for no state

    Example:
        >>> battery_state(0x2123)
        4
        >>> battery_state(0xFFFE)
        0
    """
    if word >= 0xFFF0:
        return 0
    state = word >> 12
    if state > 2:
        return 0
    return 1 << state


def describe_battery_state(mask: int) -> str:
    """Summarise an aggregated battery state mask (0-7)."""
    return BATTERY_STATES[mask & 0x07]


def describe_battery_type(battery_type: int) -> str:
    """Name a battery type id."""
    return BATTERY_TYPES.get(battery_type, f"unknown type {battery_type}")


def describe_deco_model(
    model_id: int,
    gf_low: int,
    gf_high: int,
    conservatism: int,
    gfs: int,
) -> str:
    """
    Format the deco model used for the dive.

    Args:
        model_id: 0 = GF, 1 = VPM-B, 2 = VPM-B/GFS
        gf_low: Gradient factor low (%)
        gf_high: Gradient factor high (%)
        conservatism: VPM-B conservatism setting
        gfs: GFS surfacing gradient factor (%)

    Example:
        >>> describe_deco_model(0, 30, 70, 0, 0)
        'GF 30/70'
        >>> describe_deco_model(2, 0, 0, 3, 90)
        'VPM-B/GFS +3 90%'
    """
    if model_id == DECO_MODEL_GF:
        return f"GF {gf_low}/{gf_high}"
    if model_id == DECO_MODEL_VPMB:
        return f"VPM-B +{conservatism}"
    if model_id == DECO_MODEL_VPMB_GFS:
        return f"VPM-B/GFS +{conservatism} {gfs}%"
    return f"Unknown model {model_id}"


# =============================================================================
# String Table
# =============================================================================

class StringTable:
    """
    Append-only, capacity-bounded list of labelled strings.

    Example:
        >>> table = StringTable()
        >>> table.add("Serial", "0000abcd")
        True
        >>> table.add("Serial", "ffffffff")
        False
        >>> table.freeze()
        (FieldString(desc='Serial', value='0000abcd'),)
    """

    def __init__(self, capacity: int = MAXSTRINGS):
        self.capacity = capacity
        self._entries: list[FieldString] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, desc: str) -> bool:
        return any(entry.desc == desc for entry in self._entries)

    def add(self, desc: str, value: str) -> bool:
        """
        Add a labelled string.

        Returns:
            True if the entry was stored, False if it was ignored
        """
        if desc in self:
            logger.debug(f"Ignoring duplicate string '{desc}'")
            return False
        if len(self._entries) >= self.capacity:
            logger.warning(f"String table full, dropping '{desc}'")
            return False
        self._entries.append(FieldString(desc, value))
        return True

    def freeze(self) -> tuple[FieldString, ...]:
        return tuple(self._entries)
