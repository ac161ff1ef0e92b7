"""
Shearwater Dive Parser
======================

ShearwaterParser is the decoder for one dive. It binds a device model
to a dive buffer, runs the layout pass lazily on first use, and serves
dive-level fields and the sample stream from the frozen layout.

Lifecycle
---------
1. Create a parser for a model (and optionally the device serial).
2. Supply the dive buffer with set_data(). Supplying a new buffer
   discards the cached layout.
3. Query fields, the start time, or the samples. The first query runs
   the layout pass; later queries reuse its result.

A failed layout pass leaves the cache empty, so the next query runs the
full pass again.

Usage Examples
--------------
    >>> from shearwater_log import ShearwaterParser, ShearwaterModel, FieldType
    >>> parser = ShearwaterParser.from_file("dive.bin", model=ShearwaterModel.PERDIX)
    >>> parser.get_field(FieldType.MAXDEPTH)
    42.3
    >>> for sample in parser.samples():
    ...     print(sample.type.value, sample.value)

Callback style, one call per decoded value:
    >>> parser.samples_foreach(lambda kind, value: print(kind, value))
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Union

from shearwater_log.errors import (
    DataFormatError,
    InvalidArgumentError,
    UnsupportedError,
)
from shearwater_log.parser.buffer import u16, u24, u32
from shearwater_log.parser.layout import compute_layout
from shearwater_log.parser.records import (
    Family,
    FieldString,
    FieldType,
    GasMix,
    Layout,
    Salinity,
    ShearwaterModel,
    WaterType,
)
from shearwater_log.parser.samples import Sample, SampleType, SampleValue, replay_samples
from shearwater_log.parser.strings import MAXSTRINGS
from shearwater_log.units import FEET

logger = logging.getLogger(__name__)

# Density of fresh water in kg/m³
FRESH_WATER_DENSITY = 1000

SampleCallback = Callable[[SampleType, SampleValue], Any]


class ShearwaterParser:
    """
    Decoder for a single Shearwater dive log.

    Attributes:
        model: Device model number
        family: Decoder family selected from the model
        serial: Device serial number
    """

    def __init__(
        self,
        model: int = ShearwaterModel.PETREL,
        serial: int = 0,
        family: Optional[Family] = None,
    ):
        """
        Create a parser bound to a device model.

        Args:
            model: Shearwater model number
            serial: Device serial number (published as the "Serial" string)
            family: Override the family derived from the model
        """
        self.model = model
        self.family = family or Family.for_model(model)
        self.serial = serial
        self._data: Optional[bytes] = None
        self._layout: Optional[Layout] = None

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        model: int = ShearwaterModel.PETREL,
        serial: int = 0,
    ) -> "ShearwaterParser":
        """Create a parser and bind it to a dive buffer."""
        parser = cls(model=model, serial=serial)
        parser.set_data(data)
        return parser

    @classmethod
    def from_file(
        cls,
        filepath: Union[str, Path],
        model: int = ShearwaterModel.PETREL,
        serial: int = 0,
    ) -> "ShearwaterParser":
        """
        Create a parser from a raw dive dump on disk.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        return cls.from_bytes(Path(filepath).read_bytes(), model=model, serial=serial)

    def __repr__(self) -> str:
        size = len(self._data) if self._data is not None else None
        return (
            f"ShearwaterParser(model={self.model!r}, family={self.family.value}, "
            f"size={size}, cached={self._layout is not None})"
        )

    # =========================================================================
    # Buffer and Layout
    # =========================================================================

    def set_data(self, data: bytes) -> None:
        """
        Bind a dive buffer, discarding any cached layout.

        The buffer is copied into an immutable bytes object, so later
        changes to a caller's bytearray cannot affect decoding.
        """
        if data is None:
            raise InvalidArgumentError("dive data must not be None")
        self._data = bytes(data)
        self._layout = None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise InvalidArgumentError("no dive data has been set")
        return self._data

    @property
    def layout(self) -> Layout:
        """
        The frozen layout of the current buffer, computed on first access.

        Raises:
            DataFormatError: If the buffer cannot be decoded
            ResourceExhaustedError: If a fixed-capacity table overflows
        """
        if self._layout is None:
            self._layout = compute_layout(
                self.data, self.family, model=self.model, serial=self.serial
            )
        return self._layout

    @property
    def is_cached(self) -> bool:
        return self._layout is not None

    # =========================================================================
    # Dive Fields
    # =========================================================================

    def get_datetime(self) -> datetime:
        """
        Dive start time.

        The log stores a unix timestamp without timezone information; it
        is returned as a naive datetime.

        Raises:
            DataFormatError: If the timestamp cannot be represented
        """
        layout = self.layout
        ticks = u32(self.data, layout.opening_offset(0) + 12)
        try:
            return datetime.fromtimestamp(ticks, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError) as e:
            logger.error(f"Invalid dive start timestamp {ticks}")
            raise DataFormatError(f"invalid dive start timestamp {ticks}") from e

    def get_field(self, field_type: FieldType, index: int = 0) -> Any:
        """
        Look up a dive-level field.

        Args:
            field_type: The field kind
            index: Gas mix or string index, for GASMIX and STRING

        Returns:
            DIVETIME: int seconds
            MAXDEPTH: float metres
            GASMIX_COUNT: int
            GASMIX: GasMix
            SALINITY: Salinity
            ATMOSPHERIC: float bar
            DIVEMODE: DiveMode
            STRING: FieldString

        Raises:
            UnsupportedError: If the field is not available for this dive
            InvalidArgumentError: If a gas mix index is out of range
        """
        layout = self.layout
        data = self.data

        if field_type == FieldType.DIVETIME:
            closing = layout.closing_offset(0)
            if layout.pnf:
                return u24(data, closing + 6)
            return u16(data, closing + 6) * 60

        if field_type == FieldType.MAXDEPTH:
            depth = float(u16(data, layout.closing_offset(0) + 4))
            if layout.imperial:
                depth *= FEET
            # PNF stores one more decimal
            if layout.pnf:
                depth /= 10.0
            return depth

        if field_type == FieldType.GASMIX_COUNT:
            return len(layout.gas_mixes)

        if field_type == FieldType.GASMIX:
            if not 0 <= index < len(layout.gas_mixes):
                raise InvalidArgumentError(
                    f"gas mix index {index} out of range "
                    f"({len(layout.gas_mixes)} mixes)"
                )
            return layout.gas_mixes[index]

        if field_type == FieldType.SALINITY:
            if layout.density == FRESH_WATER_DENSITY:
                water = WaterType.FRESH
            else:
                water = WaterType.SALT
            return Salinity(water, float(layout.density))

        if field_type == FieldType.ATMOSPHERIC:
            return layout.atmospheric / 1000.0

        if field_type == FieldType.DIVEMODE:
            return layout.dive_mode

        if field_type == FieldType.STRING:
            if 0 <= index < MAXSTRINGS and index < len(layout.strings):
                return layout.strings[index]
            raise UnsupportedError(f"no string at index {index}")

        raise UnsupportedError(f"field {field_type!r} is not supported")

    def get_strings(self) -> list[FieldString]:
        """All descriptive strings in index order."""
        return list(self.layout.strings)

    def get_gasmixes(self) -> list[GasMix]:
        """All gas mixes in index order."""
        return list(self.layout.gas_mixes)

    def get_info(self) -> dict:
        """
        Get a summary of the dive.

        Returns:
            Dictionary with the decoded dive-level values
        """
        layout = self.layout
        salinity = self.get_field(FieldType.SALINITY)
        return {
            "model": _model_name(self.model),
            "family": self.family.value,
            "format": layout.format.value,
            "log_version": layout.log_version,
            "datetime": self.get_datetime(),
            "divetime": self.get_field(FieldType.DIVETIME),
            "maxdepth": self.get_field(FieldType.MAXDEPTH),
            "divemode": layout.dive_mode,
            "gasmixes": list(layout.gas_mixes),
            "water": salinity.type,
            "density": salinity.density,
            "atmospheric": self.get_field(FieldType.ATMOSPHERIC),
            "units": layout.units.name.lower(),
        }

    # =========================================================================
    # Samples
    # =========================================================================

    def samples(self) -> list[Sample]:
        """
        Decode the complete sample stream.

        Raises:
            DataFormatError: If the buffer cannot be decoded
        """
        return replay_samples(self.data, self.layout, self.family)

    def samples_foreach(self, callback: SampleCallback) -> None:
        """
        Invoke callback(sample_type, value) for every decoded sample.

        The stream is fully decoded before the first callback, so a
        format error never leaves the callback with a partial dive.
        """
        if callback is None:
            raise InvalidArgumentError("callback must not be None")
        for sample in self.samples():
            callback(sample.type, sample.value)


def _model_name(model: int) -> str:
    try:
        return ShearwaterModel(model).name
    except ValueError:
        return f"model {model}"

