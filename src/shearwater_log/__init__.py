"""
Shearwater Log - Dive Log Decoder for Shearwater Dive Computers
===============================================================

This package decodes the binary dive logs produced by the Shearwater
family of dive computers (Predator, Petrel, Perdix, Teric, ...) into
dive-level metadata and a time-ordered stream of samples suitable for
profile plotting and safety analysis.

Two physical log layouts are supported: the legacy fixed-block layout
and the newer tagged-record Petrel Native Format (PNF).

Main Components
---------------
- **parser**: the decoding engine
    Layout pass, field accessor and sample replay

- **cli**: command-line tool (swlog)
    Inspect, dump and validate raw dive logs

- **config**: decoder defaults from the environment

Quick Start
-----------
Decode a dive:
    >>> from shearwater_log import ShearwaterParser, ShearwaterModel, FieldType
    >>> parser = ShearwaterParser.from_file("dive.bin", model=ShearwaterModel.TERIC)
    >>> parser.get_field(FieldType.DIVETIME)
    3120
    >>> parser.get_field(FieldType.DIVEMODE)
    <DiveMode.OC: 'open-circuit'>

Walk the samples:
    >>> for sample in parser.samples():
    ...     print(sample.type.value, sample.value)

Or use the command-line tool:
    $ swlog info -m perdix dive.bin
    $ swlog samples --format csv dive.bin

Reference
---------
- libdivecomputer: https://www.libdivecomputer.org/

Version History
---------------
1.0.0 - Initial release with legacy and PNF decoding
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from shearwater_log.errors import (
    ShearwaterError,
    InvalidArgumentError,
    DataFormatError,
    BufferTooShortError,
    MissingRecordError,
    SampleIntervalError,
    InvalidGasMixError,
    ResourceExhaustedError,
    GasMixLimitError,
    UnsupportedError,
)

from shearwater_log.parser import (
    ShearwaterParser,
    Layout,
    LogFormat,
    compute_layout,
    DiveMode,
    Family,
    FieldString,
    FieldType,
    GasMix,
    Salinity,
    ShearwaterModel,
    Units,
    WaterType,
    Bookmark,
    Deco,
    DecoType,
    Sample,
    SampleType,
    TankPressure,
    replay_samples,
)

from shearwater_log.config import (
    DecoderConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    # Version info
    "__version__",
    # Parser
    "ShearwaterParser",
    "Layout",
    "LogFormat",
    "compute_layout",
    "replay_samples",
    # Enums and value types
    "DiveMode",
    "Family",
    "FieldString",
    "FieldType",
    "GasMix",
    "Salinity",
    "ShearwaterModel",
    "Units",
    "WaterType",
    # Samples
    "Bookmark",
    "Deco",
    "DecoType",
    "Sample",
    "SampleType",
    "TankPressure",
    # Configuration
    "DecoderConfig",
    "get_default_config",
    "set_default_config",
    # Exception hierarchy
    "ShearwaterError",
    "InvalidArgumentError",
    "DataFormatError",
    "BufferTooShortError",
    "MissingRecordError",
    "SampleIntervalError",
    "InvalidGasMixError",
    "ResourceExhaustedError",
    "GasMixLimitError",
    "UnsupportedError",
]
