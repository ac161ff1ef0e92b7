"""
Shearwater Dive Log Decoding
============================

This package decodes the binary dive logs downloaded from Shearwater
dive computers into dive-level fields and a time-ordered sample stream.

Overview
--------
Decoding takes two passes over the same buffer:

- **Layout pass** (layout.py): classifies the buffer as legacy or PNF,
  finds the structural records, and derives the dive-wide values
  (gas mixes, calibration, dive mode, units, descriptive strings).
- **Sample replay** (samples.py): walks the records again and decodes
  depth, temperature, ppO2, deco state, tank pressures and bookmarks.

The layout pass result is frozen and shared by both the field accessor
and the sample replay, so gas mix indices always agree.

This package provides:
- **ShearwaterParser**: the decoder for one dive
- **Layout**: frozen result of the layout pass
- **Sample types**: Sample, Deco, TankPressure, Bookmark
- **Buffer primitives**: bounds-checked big-endian reads

Quick Start
-----------
    >>> from shearwater_log.parser import ShearwaterParser, FieldType
    >>> parser = ShearwaterParser.from_file("dive.bin", model=5)
    >>> print(parser.get_field(FieldType.DIVETIME))
    >>> for sample in parser.samples():
    ...     print(sample.type.value, sample.value)

Reference
---------
- libdivecomputer: https://www.libdivecomputer.org/
"""

from shearwater_log.parser.buffer import (
    is_zero,
    s8,
    s16,
    u8,
    u16,
    u24,
    u32,
)
from shearwater_log.parser.gasmix import (
    NGASMIXES,
    GasMixTable,
)
from shearwater_log.parser.layout import (
    compute_layout,
    detect_format,
)
from shearwater_log.parser.parser import ShearwaterParser
from shearwater_log.parser.records import (
    SAMPLE_FLAGS_TYPE_SHIFT,
    SZ_BLOCK,
    DiveMode,
    Family,
    FieldString,
    FieldType,
    GasMix,
    Layout,
    LogFormat,
    RecordType,
    Salinity,
    ShearwaterModel,
    StatusFlag,
    Units,
    WaterType,
)
from shearwater_log.parser.samples import (
    Bookmark,
    Deco,
    DecoType,
    Sample,
    SampleReplay,
    SampleType,
    TankPressure,
    fold_temperature,
    replay_samples,
    sample_interval,
    tank_pressure,
)
from shearwater_log.parser.strings import (
    BATTERY_STATES,
    MAXSTRINGS,
    StringTable,
    battery_state,
    describe_battery_state,
    describe_battery_type,
    describe_deco_model,
)

__all__ = [
    # Parser
    "ShearwaterParser",
    # Layout
    "compute_layout",
    "detect_format",
    "Layout",
    "LogFormat",
    # Records and enums
    "SAMPLE_FLAGS_TYPE_SHIFT",
    "SZ_BLOCK",
    "DiveMode",
    "Family",
    "FieldString",
    "FieldType",
    "GasMix",
    "RecordType",
    "Salinity",
    "ShearwaterModel",
    "StatusFlag",
    "Units",
    "WaterType",
    # Gas mixes
    "NGASMIXES",
    "GasMixTable",
    # Strings
    "BATTERY_STATES",
    "MAXSTRINGS",
    "StringTable",
    "battery_state",
    "describe_battery_state",
    "describe_battery_type",
    "describe_deco_model",
    # Samples
    "Bookmark",
    "Deco",
    "DecoType",
    "Sample",
    "SampleReplay",
    "SampleType",
    "TankPressure",
    "fold_temperature",
    "replay_samples",
    "sample_interval",
    "tank_pressure",
    # Buffer primitives
    "is_zero",
    "s8",
    "s16",
    "u8",
    "u16",
    "u24",
    "u32",
]
