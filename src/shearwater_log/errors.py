"""
Shearwater Log Error Hierarchy
==============================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from ShearwaterError, allowing callers to catch
every decoding failure with a single except clause if desired.

Exception Hierarchy
-------------------
ShearwaterError (base)
├── InvalidArgumentError - caller passed something the API cannot accept
├── DataFormatError - the dive buffer fails a structural expectation
│   ├── BufferTooShortError - a read would run past the end of the buffer
│   ├── MissingRecordError - a required opening/closing record is absent
│   ├── SampleIntervalError - sample interval is not whole seconds
│   └── InvalidGasMixError - replay found a mix the cache never registered
├── ResourceExhaustedError - a fixed-capacity table overflowed
│   └── GasMixLimitError - more distinct gas mixes than the log supports
└── UnsupportedError - field kind or string index not available

Design Philosophy
-----------------
Errors carry the values that caused them (offsets, lengths, gas pairs)
as attributes, and build their own message from those values. This keeps
call sites short and makes failures easy to assert on in tests:

    try:
        parser.samples()
    except DataFormatError as e:
        print(f"Corrupt dive: {e}")
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class ShearwaterError(Exception):
    """
    Base exception for all Shearwater log decoding errors.

    Example:
        try:
            parser.get_field(FieldType.MAXDEPTH)
        except ShearwaterError as e:
            print(f"Error: {e}")
    """
    pass


class InvalidArgumentError(ShearwaterError):
    """
    Caller contract misuse.

    Raised when:
    - No buffer has been supplied to the parser
    - A gas mix index is out of range
    - An unknown model identifier is requested
    """
    pass


# =============================================================================
# Data Format Exceptions
# =============================================================================

class DataFormatError(ShearwaterError):
    """
    The dive buffer fails a structural or semantic expectation.

    A data format error aborts the current operation. Nothing decoded
    before the failure is published, and the layout cache stays empty,
    so a later call runs the full pass again.
    """
    pass


class BufferTooShortError(DataFormatError):
    """
    A read would run past the end of the buffer.

    Attributes:
        offset: Offset of the attempted read
        length: Number of bytes the read needed
        size: Actual buffer size
    """

    def __init__(self, offset: int, length: int, size: int, message: str = ""):
        self.offset = offset
        self.length = length
        self.size = size
        if not message:
            message = (
                f"buffer too short: need {length} byte(s) at offset {offset}, "
                f"buffer has {size}"
            )
        super().__init__(message)


class MissingRecordError(DataFormatError):
    """
    A required opening or closing record was not found.

    Attributes:
        kind: "opening" or "closing"
        index: Record class (0-7)
    """

    def __init__(self, kind: str, index: int):
        self.kind = kind
        self.index = index
        super().__init__(f"{kind} record {index} not found")


class SampleIntervalError(DataFormatError):
    """
    The logged sample interval is not a whole number of seconds.

    Attributes:
        interval_ms: The interval as stored in the log
    """

    def __init__(self, interval_ms: int):
        self.interval_ms = interval_ms
        super().__init__(f"unsupported sample interval ({interval_ms} ms)")


class InvalidGasMixError(DataFormatError):
    """
    A sample references a gas mix the layout pass never registered.

    This indicates an inconsistency between the two passes over the
    same buffer and should never happen for a buffer that was not
    modified between them.
    """

    def __init__(self, oxygen: int, helium: int, offset: Optional[int] = None):
        self.oxygen = oxygen
        self.helium = helium
        self.offset = offset
        where = f" at offset {offset}" if offset is not None else ""
        super().__init__(f"invalid gas mix {oxygen}/{helium}{where}")


# =============================================================================
# Resource Exceptions
# =============================================================================

class ResourceExhaustedError(ShearwaterError):
    """Base exception for fixed-capacity table overflows."""
    pass


class GasMixLimitError(ResourceExhaustedError):
    """
    Too many distinct gas mixes in one dive.

    The gas mix table holds at most `limit` entries. An additional
    distinct pair is an error, never a silent truncation.
    """

    def __init__(self, limit: int, oxygen: int, helium: int):
        self.limit = limit
        self.oxygen = oxygen
        self.helium = helium
        super().__init__(
            f"maximum number of gas mixes ({limit}) reached "
            f"while adding {oxygen}/{helium}"
        )


# =============================================================================
# Field Access Exceptions
# =============================================================================

class UnsupportedError(ShearwaterError):
    """
    The requested field is not available for this dive.

    Raised for unknown field kinds and for string indices that are
    out of range or were never written.
    """
    pass
