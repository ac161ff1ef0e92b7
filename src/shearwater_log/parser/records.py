"""
Shearwater Log Record Definitions
=================================

This module defines the constants, enumerations and value types shared
by the layout pass, the field accessor and the sample replay engine.

Log Formats
-----------
Shearwater dive computers store a dive in one of two physical layouts:

- **Legacy**: a 128-byte opening block, a run of fixed-size sample
  records, and one or two 128-byte closing blocks. Sample records carry
  no type byte.
- **PNF** (Petrel Native Format): every record is a fixed-size block that
  starts with a type byte. Dive metadata lives in typed opening and
  closing records instead of the big header/footer blocks.

Sample records in PNF are the legacy records shifted by one byte (the
type byte), so most sample offsets differ only by that shift.

Record Types (PNF)
------------------
    Type        Description
    ----        -----------
    0x01        Dive sample
    0x02        Freedive sample (4 packed 8-byte sub-samples)
    0x10-0x17   Opening records, classes 0-7
    0x20-0x27   Closing records, classes 0-7
    0x30        Info event
    0xFF        Final record
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, IntFlag
from typing import Optional

from shearwater_log.errors import MissingRecordError


# =============================================================================
# Structural Constants
# =============================================================================

# Legacy header/footer block size
SZ_BLOCK = 0x80

# Sample record sizes per device family
SZ_SAMPLE_PREDATOR = 0x10
SZ_SAMPLE_PETREL = 0x20

# One packed freedive sub-sample
SZ_SAMPLE_FREEDIVE = 0x08

# Number of opening/closing record classes, and how many are mandatory
NRECORDS = 8
NRECORDS_REQUIRED = 5

# Marker word of the extra legacy closing block
FINAL_BLOCK_MARKER = 0xFFFD

# Second byte of the PNF final record that stops the sample replay
FINAL_RECORD_MARKER = 0xFD

# Info event sub-type for a user tag (bookmark)
INFO_EVENT_TAG_LOG = 38

# Factory default O2 sensor calibration value
DEFAULT_CALIBRATION = 2100

# Sample flags: bookmark type lives above this bit
SAMPLE_FLAGS_TYPE_SHIFT = 5


class RecordType(IntEnum):
    """PNF record type bytes."""
    DIVE_SAMPLE = 0x01
    FREEDIVE_SAMPLE = 0x02
    OPENING_0 = 0x10
    OPENING_7 = 0x17
    CLOSING_0 = 0x20
    CLOSING_7 = 0x27
    INFO_EVENT = 0x30
    FINAL = 0xFF

    @classmethod
    def opening_class(cls, type_byte: int) -> Optional[int]:
        """Return the opening record class (0-7) for a type byte, or None."""
        if cls.OPENING_0 <= type_byte <= cls.OPENING_7:
            return type_byte - cls.OPENING_0
        return None

    @classmethod
    def closing_class(cls, type_byte: int) -> Optional[int]:
        """Return the closing record class (0-7) for a type byte, or None."""
        if cls.CLOSING_0 <= type_byte <= cls.CLOSING_7:
            return type_byte - cls.CLOSING_0
        return None


class StatusFlag(IntFlag):
    """Status byte bits of a dive sample."""
    GASSWITCH = 0x01
    PPO2_EXTERNAL = 0x02
    SETPOINT_HIGH = 0x04
    SC = 0x08
    OC = 0x10


class LogFormat(Enum):
    """Physical layout of the dive buffer."""
    LEGACY = "legacy"
    PNF = "pnf"


class Units(IntEnum):
    """Unit system the dive was logged in."""
    METRIC = 0
    IMPERIAL = 1


class DiveMode(Enum):
    """Dive mode aggregated over all sample records."""
    OC = "open-circuit"
    CCR = "closed-circuit"
    FREEDIVE = "freedive"


class WaterType(Enum):
    """Water type derived from the logged density."""
    FRESH = "fresh"
    SALT = "salt"


class FieldType(IntEnum):
    """
    Dive-level field kinds.

    Only some kinds are available from Shearwater logs; the rest are
    reported as unsupported by the field accessor.
    """
    DIVETIME = 0
    MAXDEPTH = 1
    AVGDEPTH = 2
    GASMIX_COUNT = 3
    GASMIX = 4
    SALINITY = 5
    ATMOSPHERIC = 6
    TEMPERATURE_SURFACE = 7
    TEMPERATURE_MINIMUM = 8
    TEMPERATURE_MAXIMUM = 9
    TANK_COUNT = 10
    TANK = 11
    DIVEMODE = 12
    STRING = 13


# =============================================================================
# Models and Families
# =============================================================================

class ShearwaterModel(IntEnum):
    """
    Shearwater model numbers as reported by the device layer.

    Usage:
        >>> ShearwaterModel(5)
        <ShearwaterModel.PERDIX: 5>
        >>> ShearwaterModel.PERDIX.family
        <Family.PETREL: 'petrel'>
    """
    PREDATOR = 2
    PETREL = 3
    NERD = 4
    PERDIX = 5
    PERDIX_AI = 6
    NERD2 = 7
    TERIC = 8
    PEREGRINE = 9
    PETREL3 = 10
    PERDIX2 = 11
    TERN = 12

    @property
    def family(self) -> "Family":
        """The decoder family this model belongs to."""
        return Family.for_model(self)

    @classmethod
    def from_name(cls, name: str) -> "ShearwaterModel":
        """
        Look up a model by name or number.

        Accepts "perdix", "PERDIX_AI", "perdix-ai" or "5".

        Raises:
            ValueError: If the name matches no model
        """
        key = name.strip().upper().replace("-", "_")
        if key.isdigit():
            return cls(int(key))
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown Shearwater model: {name!r}")


class Family(Enum):
    """
    Decoder family.

    The family fixes the sample record size, whether the log can be in
    PNF at all, and how CNS and setpoint are reported:

    - PREDATOR: 16-byte samples, legacy only, no CNS, setpoint read from
      one of two fixed header bytes selected by the SETPOINT_HIGH flag.
    - PETREL: 32-byte samples, legacy or PNF, CNS and setpoint stored in
      every sample record.
    """
    PREDATOR = "predator"
    PETREL = "petrel"

    @property
    def sample_size(self) -> int:
        return SZ_SAMPLE_PETREL if self is Family.PETREL else SZ_SAMPLE_PREDATOR

    @property
    def supports_pnf(self) -> bool:
        return self is Family.PETREL

    @property
    def reports_cns(self) -> bool:
        return self is Family.PETREL

    @property
    def setpoint_in_sample(self) -> bool:
        return self is Family.PETREL

    @classmethod
    def for_model(cls, model: int) -> "Family":
        """Select the family for a model number."""
        if model == ShearwaterModel.PREDATOR:
            return cls.PREDATOR
        return cls.PETREL


# =============================================================================
# Value Types
# =============================================================================

@dataclass(frozen=True)
class GasMix:
    """
    A breathing gas, stored as integer percentages.

    Attributes:
        oxygen: Oxygen percentage (0-100)
        helium: Helium percentage (0-100)
    """
    oxygen: int
    helium: int

    @property
    def oxygen_fraction(self) -> float:
        return self.oxygen / 100.0

    @property
    def helium_fraction(self) -> float:
        return self.helium / 100.0

    @property
    def nitrogen_fraction(self) -> float:
        return 1.0 - self.oxygen_fraction - self.helium_fraction

    def __str__(self) -> str:
        if self.helium:
            return f"Tx{self.oxygen}/{self.helium}"
        if self.oxygen == 21:
            return "Air"
        return f"EAN{self.oxygen}"


@dataclass(frozen=True)
class Salinity:
    """Water type and density (kg/m³)."""
    type: WaterType
    density: float


@dataclass(frozen=True)
class FieldString:
    """A labelled descriptive string."""
    desc: str
    value: str

    def __str__(self) -> str:
        return f"{self.desc}: {self.value}"


# =============================================================================
# Layout
# =============================================================================

@dataclass(frozen=True)
class Layout:
    """
    Frozen result of the layout pass over one dive buffer.

    Both the field accessor and the sample replay engine read from the
    same Layout instance, so they always agree on gas mix indices,
    calibration and dive mode.

    Attributes:
        format: Legacy or PNF
        header_size: Legacy opening block size (0 for PNF)
        footer_size: Legacy closing block(s) size (0 for PNF)
        opening: Offsets of opening records per class (None if absent)
        closing: Offsets of closing records per class (None if absent)
        final_offset: Offset of the final record/block, if present
        log_version: Log format revision
        gas_mixes: Distinct gas mixes in first-seen order
        calibration: Per-cell ppO2 scale factors
        calibration_mask: Bit i set if cell i is enabled and trusted
        dive_mode: Aggregate dive mode
        units: Unit system of the log
        atmospheric: Surface pressure in millibar
        density: Water density in kg/m³
        strings: Descriptive (label, value) pairs in insertion order
    """
    format: LogFormat
    header_size: int
    footer_size: int
    opening: tuple[Optional[int], ...]
    closing: tuple[Optional[int], ...]
    final_offset: Optional[int]
    log_version: int
    gas_mixes: tuple[GasMix, ...]
    calibration: tuple[float, float, float]
    calibration_mask: int
    dive_mode: DiveMode
    units: Units
    atmospheric: int
    density: int
    strings: tuple[FieldString, ...]

    @property
    def pnf(self) -> bool:
        return self.format is LogFormat.PNF

    @property
    def shift(self) -> int:
        """Offset of sample fields inside a record (the PNF type byte)."""
        return 1 if self.pnf else 0

    @property
    def imperial(self) -> bool:
        return self.units == Units.IMPERIAL

    def find_gasmix(self, oxygen: int, helium: int) -> Optional[int]:
        """Return the index of a registered gas mix, or None."""
        try:
            return self.gas_mixes.index(GasMix(oxygen, helium))
        except ValueError:
            return None

    def opening_offset(self, index: int) -> int:
        """
        Offset of a required opening record.

        Raises:
            MissingRecordError: If the record was not found
        """
        offset = self.opening[index]
        if offset is None:
            raise MissingRecordError("opening", index)
        return offset

    def closing_offset(self, index: int) -> int:
        """
        Offset of a required closing record.

        Raises:
            MissingRecordError: If the record was not found
        """
        offset = self.closing[index]
        if offset is None:
            raise MissingRecordError("closing", index)
        return offset
