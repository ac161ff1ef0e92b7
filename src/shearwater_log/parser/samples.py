"""
Sample Replay
=============

The second pass over a dive buffer. Using the frozen Layout from the
layout pass, it walks the same records again and decodes the time
ordered sample stream.

Each decoded value is a Sample(type, value). Within one sample tick
the order is always:

    TIME, DEPTH, TEMPERATURE, PPO2 (0-3), SETPOINT, CNS, GASMIX (0-1),
    DECO, PRESSURE (0-2), RBT (0-1)

Bookmarks (PNF info events) appear as EVENT samples between ticks.
Freedive records emit TIME, DEPTH, TEMPERATURE for each packed
sub-sample.

Dive Sample Layout
------------------
Offsets are relative to the record start plus one byte under PNF:

    Offset  Size    Description
    ------  ----    -----------
    0       2       Depth (1/10 m or ft)
    2       2       Deco stop depth (m or ft, 0 = NDL)
    6       1       Voted ppO2 (1/100 bar)
    7       1       Oxygen %
    8       1       Helium %
    9       1       Deco time / NDL (minutes)
    11      1       Status flags
    12      1       Cell 1 reading
    13      1       Temperature (signed, folded)
    14      1       Cell 2 reading
    15      1       Cell 3 reading
    18      1       Setpoint (1/100 bar, Petrel family)
    19      2       T2 transmitter word
    21      1       Remaining gas time (minutes)
    22      1       CNS (%)
    27      2       T1 transmitter word

Decoding is all-or-nothing: the stream is built in full before it is
returned, so a format error part-way through publishes nothing.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from shearwater_log.errors import DataFormatError, InvalidGasMixError, SampleIntervalError
from shearwater_log.parser.buffer import is_zero, s8, s16, u8, u16, u32
from shearwater_log.parser.records import (
    FINAL_RECORD_MARKER,
    INFO_EVENT_TAG_LOG,
    SAMPLE_FLAGS_TYPE_SHIFT,
    SZ_SAMPLE_FREEDIVE,
    Family,
    Layout,
    RecordType,
    StatusFlag,
)
from shearwater_log.units import BAR, FEET, GRAVITY, PSI, fahrenheit_to_celsius

logger = logging.getLogger(__name__)

# Sample interval when the log does not store one
DEFAULT_INTERVAL = 10

# Transmitter words at or above this value are status codes
#   0xFFFF AI is off
#   0xFFFE no comms for 90 seconds+
#   0xFFFD no comms for 30 seconds
#   0xFFFC transmitter not paired
PRESSURE_UNAVAILABLE = 0xFFF0

# Remaining gas time bytes at or above this value are status codes
#   0xFF not paired, 0xFE no comms, 0xFD not available in current mode,
#   0xFC not available because of deco, 0xFB tank not set up
RBT_UNAVAILABLE = 0xF0

# Packed freedive sub-samples per record
FREEDIVE_SUBSAMPLES = 4

# Bookmark tags are only valid within these ranges
MAX_TAG_HEADING = 360
MAX_TAG_TYPE = 5


# =============================================================================
# Sample Types
# =============================================================================

class SampleType(Enum):
    """Kind of a decoded sample value."""
    TIME = "time"
    DEPTH = "depth"
    TEMPERATURE = "temperature"
    PPO2 = "ppo2"
    SETPOINT = "setpoint"
    CNS = "cns"
    GASMIX = "gasmix"
    DECO = "deco"
    PRESSURE = "pressure"
    RBT = "rbt"
    EVENT = "event"


class DecoType(Enum):
    NDL = "ndl"
    DECOSTOP = "decostop"


@dataclass(frozen=True)
class Deco:
    """Decompression state: stop depth (m) and time (s)."""
    type: DecoType
    depth: float
    time: int


@dataclass(frozen=True)
class TankPressure:
    """Transmitter pressure in bar. Tank 0 is T1, tank 1 is T2."""
    tank: int
    value: float


@dataclass(frozen=True)
class Bookmark:
    """
    A user tag placed during the dive.

    Attributes:
        time: Seconds since the dive started
        flags: Tag type + 1, shifted by SAMPLE_FLAGS_TYPE_SHIFT
        value: Compass heading in degrees
    """
    time: int
    flags: int
    value: int

    @property
    def tag_type(self) -> int:
        """Tag type (0-5) encoded in the flags."""
        return (self.flags >> SAMPLE_FLAGS_TYPE_SHIFT) - 1


SampleValue = Union[int, float, Deco, TankPressure, Bookmark]


@dataclass(frozen=True)
class Sample:
    type: SampleType
    value: SampleValue


# =============================================================================
# Value Transforms
# =============================================================================

def fold_temperature(raw: int) -> int:
    """
    Undo the wraparound encoding of negative sample temperatures.

    Negative readings are stored offset by -102. They are folded back
    and clamped so the result is never above zero.

    Args:
        raw: The temperature byte read as a signed value (-128..127)

    Example:
        >>> fold_temperature(-1)
        0
        >>> fold_temperature(-110)
        -8
        >>> fold_temperature(25)
        25
    """
    if raw < 0:
        raw += 102
        if raw > 0:
            raw = 0
    return raw


def tank_pressure(word: int) -> Optional[float]:
    """
    Decode a transmitter word into a tank pressure in bar.

    The top four bits are the battery state; the low 12 bits are the
    pressure in units of 2 psi. Words of 0xFFF0 and above are status
    codes and carry no pressure.

    Returns:
        Pressure in bar, or None if unavailable
    """
    if word >= PRESSURE_UNAVAILABLE:
        return None
    return (word & 0x0FFF) * 2 * PSI / BAR


def sample_interval(data: bytes, layout: Layout) -> int:
    """
    Sample interval in seconds.

    PNF logs from version 9 store the interval in milliseconds in
    opening record 5; everything else uses 10 seconds.

    Raises:
        SampleIntervalError: If the stored interval is not whole seconds
    """
    if layout.pnf and layout.log_version >= 9:
        interval_ms = u16(data, layout.opening_offset(5) + 23)
        if interval_ms % 1000 != 0:
            logger.error(f"Unsupported sample interval ({interval_ms} ms)")
            raise SampleIntervalError(interval_ms)
        return interval_ms // 1000
    return DEFAULT_INTERVAL


# =============================================================================
# Replay Engine
# =============================================================================

class SampleReplay:
    """
    Decoder for the sample stream of one dive buffer.

    Example:
        >>> replay = SampleReplay(data, layout, Family.PETREL)
        >>> for sample in replay.run():
        ...     print(sample.type, sample.value)
    """

    def __init__(self, data: bytes, layout: Layout, family: Family):
        self.data = data
        self.layout = layout
        self.family = family
        self.samples: list[Sample] = []
        self.time = 0
        self.interval = DEFAULT_INTERVAL
        self.previous_mix = (0, 0)

    def run(self) -> list[Sample]:
        """
        Decode every sample record.

        Returns:
            The complete sample stream

        Raises:
            DataFormatError: If a record cannot be decoded
        """
        self.samples = []
        self.time = 0
        self.previous_mix = (0, 0)
        self.interval = sample_interval(self.data, self.layout)

        data = self.data
        pnf = self.layout.pnf
        sample_size = self.family.sample_size
        offset = self.layout.header_size
        end = len(data) - self.layout.footer_size

        while offset + sample_size <= end:
            record_type = data[offset] if pnf else RecordType.DIVE_SAMPLE

            if pnf:
                if record_type == RecordType.FINAL and u8(data, offset + 1) == FINAL_RECORD_MARKER:
                    logger.debug(f"Final record at offset {offset}")
                    break
                if record_type == RecordType.INFO_EVENT:
                    self._info_event(offset)
                    offset += sample_size
                    continue
                if record_type not in (RecordType.DIVE_SAMPLE, RecordType.FREEDIVE_SAMPLE):
                    offset += sample_size
                    continue

            if is_zero(data, offset, sample_size):
                offset += sample_size
                continue

            if record_type == RecordType.DIVE_SAMPLE:
                self._dive_sample(offset)
            else:
                self._freedive_sample(offset)

            offset += sample_size

        return self.samples

    def _emit(self, sample_type: SampleType, value: SampleValue) -> None:
        self.samples.append(Sample(sample_type, value))

    def _dive_sample(self, offset: int) -> None:
        """Decode one dive sample record."""
        data = self.data
        layout = self.layout
        base = offset + layout.shift

        self.time += self.interval
        self._emit(SampleType.TIME, self.time)

        depth = u16(data, base)
        if layout.imperial:
            self._emit(SampleType.DEPTH, depth * FEET / 10.0)
        else:
            self._emit(SampleType.DEPTH, depth / 10.0)

        temperature = fold_temperature(s8(data, base + 13))
        if layout.imperial:
            self._emit(SampleType.TEMPERATURE, fahrenheit_to_celsius(temperature))
        else:
            self._emit(SampleType.TEMPERATURE, float(temperature))

        status = u8(data, base + 11)
        if not status & StatusFlag.OC:
            if not status & StatusFlag.PPO2_EXTERNAL:
                if not layout.calibration_mask:
                    self._emit(SampleType.PPO2, u8(data, base + 6) / 100.0)
                else:
                    for cell, position in enumerate((12, 14, 15)):
                        if layout.calibration_mask & (1 << cell):
                            reading = u8(data, base + position)
                            self._emit(SampleType.PPO2, reading * layout.calibration[cell])

            if self.family.setpoint_in_sample:
                setpoint = u8(data, base + 18)
            else:
                # Predator: fixed header bytes, never PNF
                setpoint = u8(data, 18 if status & StatusFlag.SETPOINT_HIGH else 17)
            self._emit(SampleType.SETPOINT, setpoint / 100.0)

        if self.family.reports_cns:
            self._emit(SampleType.CNS, u8(data, base + 22) / 100.0)

        mix = (u8(data, base + 7), u8(data, base + 8))
        if mix != self.previous_mix:
            index = layout.find_gasmix(*mix)
            if index is None:
                logger.error(f"Invalid gas mix {mix[0]}/{mix[1]} at offset {offset}")
                raise InvalidGasMixError(mix[0], mix[1], offset)
            self._emit(SampleType.GASMIX, index)
            self.previous_mix = mix

        stop = u16(data, base + 2)
        deco_time = u8(data, base + 9) * 60
        if stop:
            stop_depth = stop * FEET if layout.imperial else float(stop)
            self._emit(SampleType.DECO, Deco(DecoType.DECOSTOP, stop_depth, deco_time))
        else:
            self._emit(SampleType.DECO, Deco(DecoType.NDL, 0.0, deco_time))

        # Transmitters and gas time were added with log version 7
        if layout.log_version >= 7:
            for tank, position in enumerate((27, 19)):
                pressure = tank_pressure(u16(data, base + position))
                if pressure is not None:
                    self._emit(SampleType.PRESSURE, TankPressure(tank, pressure))

            rbt = u8(data, base + 21)
            if rbt < RBT_UNAVAILABLE:
                self._emit(SampleType.RBT, rbt)

    def _freedive_sample(self, offset: int) -> None:
        """
        Decode a freedive record.

        A freedive record packs four 8-byte sub-samples. Unused trailing
        sub-samples at the end of a dive are zero padded.
        """
        data = self.data
        layout = self.layout
        if layout.density == 0:
            logger.error(f"Invalid water density 0 at offset {offset}")
            raise DataFormatError(f"invalid water density 0 at offset {offset}")

        for i in range(FREEDIVE_SUBSAMPLES):
            sub = offset + i * SZ_SAMPLE_FREEDIVE
            if is_zero(data, sub, SZ_SAMPLE_FREEDIVE):
                break

            self.time += self.interval
            self._emit(SampleType.TIME, self.time)

            # Absolute pressure in millibar
            pressure = u16(data, sub + 1)
            depth = (pressure - layout.atmospheric) * (BAR / 1000.0) / (layout.density * GRAVITY)
            self._emit(SampleType.DEPTH, depth)

            # 1/10 °C
            self._emit(SampleType.TEMPERATURE, s16(data, sub + 3) / 10.0)

    def _info_event(self, offset: int) -> None:
        """Decode a PNF info event; tags become bookmarks."""
        data = self.data
        event_id = u8(data, offset + 1)
        timestamp = u32(data, offset + 4)
        word1 = u32(data, offset + 8)
        word2 = u32(data, offset + 12)
        logger.debug(f"Info event {event_id} time {timestamp} W1 {word1} W2 {word2}")

        if event_id != INFO_EVENT_TAG_LOG:
            return

        # Tag time is a unix timestamp; make it relative to the dive start.
        start = u32(data, self.layout.opening_offset(0) + 12)
        heading, tag_type = word1, word2
        if heading <= MAX_TAG_HEADING and tag_type <= MAX_TAG_TYPE:
            flags = (tag_type + 1) << SAMPLE_FLAGS_TYPE_SHIFT
            self._emit(SampleType.EVENT, Bookmark(timestamp - start, flags, heading))


def replay_samples(data: bytes, layout: Layout, family: Family) -> list[Sample]:
    """
    Decode the complete sample stream of a dive buffer.

    Args:
        data: The dive buffer the layout was computed from
        layout: Frozen result of compute_layout()
        family: Decoder family

    Returns:
        All samples in stream order

    Raises:
        DataFormatError: On an unsupported interval or an unknown gas mix
    """
    return SampleReplay(data, layout, family).run()
