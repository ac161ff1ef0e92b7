"""
Layout Pass
===========

The first of the two passes over a dive buffer. It classifies the
buffer (legacy or PNF), locates the structural records, and derives the
dive-wide values that the field accessor and the sample replay engine
depend on:

- gas mix table (in first-seen order)
- dive mode (open-circuit, closed-circuit, freedive)
- O2 sensor calibration and which cells can be trusted
- log version, units, surface pressure and water density
- descriptive strings

The result is a frozen Layout. The pass either completes or raises;
there is no partially populated layout.

Legacy Offsets
--------------
All legacy metadata lives in the 128-byte opening block and the first
closing block. The opening/closing offsets of every record class are
set to the start of those blocks, so the same "record + offset" reads
work for both formats:

    Field               PNF                 Legacy
    -----               ---                 ------
    units               opening[0] + 8      8
    atmospheric         opening[1] + 16     47
    deco model          opening[2] + 18     67
    density             opening[3] + 3      83
    GFS                 opening[3] + 5      85
    calibration         opening[3] + 6      86
    battery type        opening[4] + 9      120
    log version         opening[4] + 16     127

Bytes 1-31 of the buffer are identical in both formats, so the gradient
factors (4, 5), end-of-dive battery voltage (9) and firmware version
(19) are read at absolute offsets.
"""

import logging
from typing import Optional

from shearwater_log.errors import BufferTooShortError, MissingRecordError
from shearwater_log.parser.buffer import is_zero, u8, u16
from shearwater_log.parser.gasmix import GasMixTable
from shearwater_log.parser.records import (
    DEFAULT_CALIBRATION,
    FINAL_BLOCK_MARKER,
    NRECORDS,
    NRECORDS_REQUIRED,
    SZ_BLOCK,
    DiveMode,
    Family,
    Layout,
    LogFormat,
    RecordType,
    ShearwaterModel,
    StatusFlag,
    Units,
)
from shearwater_log.parser.strings import (
    DECO_MODEL_GF,
    DECO_MODEL_VPMB,
    DECO_MODEL_VPMB_GFS,
    StringTable,
    battery_state,
    describe_battery_state,
    describe_battery_type,
    describe_deco_model,
)

logger = logging.getLogger(__name__)

# Predator cells read 30-70 mV in pure O2 at 1 atm; the stored
# calibration lines up with that band after this factor.
PREDATOR_CALIBRATION_SCALE = 2.2

# First word of a legacy log on a PNF-capable model
LEGACY_SIGNATURE = 0xFFFF


def detect_format(data: bytes, family: Family) -> LogFormat:
    """
    Classify a dive buffer as legacy or PNF.

    Only PNF-capable families can produce PNF logs. For those, a buffer
    that starts with 0xFFFF is legacy; anything else is PNF.

    Raises:
        BufferTooShortError: If the buffer holds fewer than 2 bytes
    """
    if len(data) < 2:
        logger.error(f"Invalid data length ({len(data)} bytes)")
        raise BufferTooShortError(0, 2, len(data))

    if family.supports_pnf and u16(data, 0) != LEGACY_SIGNATURE:
        return LogFormat.PNF
    return LogFormat.LEGACY


def compute_layout(
    data: bytes,
    family: Family,
    model: int = ShearwaterModel.PETREL,
    serial: int = 0,
) -> Layout:
    """
    Run the layout pass over a dive buffer.

    Args:
        data: The complete dive buffer
        family: Decoder family (fixes sample size and PNF eligibility)
        model: Model number (the Predator scales its calibration)
        serial: Device serial number, published as a descriptive string

    Returns:
        The frozen Layout for this buffer

    Raises:
        BufferTooShortError: If the buffer or any derived offset is too short
        MissingRecordError: If one of opening/closing records 0-4 is absent
        GasMixLimitError: If the dive uses more than 10 distinct gas mixes
    """
    size = len(data)
    log_format = detect_format(data, family)
    pnf = log_format is LogFormat.PNF
    shift = 1 if pnf else 0

    opening: list[Optional[int]] = [None] * NRECORDS
    closing: list[Optional[int]] = [None] * NRECORDS
    final_offset: Optional[int] = None
    header_size = 0
    footer_size = 0

    if not pnf:
        header_size = SZ_BLOCK
        footer_size = SZ_BLOCK
        _require_length(size, header_size + footer_size)

        # Petrel-family legacy logs always end with a final block; for the
        # Predator it is flagged by a marker word.
        if family.supports_pnf or u16(data, size - footer_size) == FINAL_BLOCK_MARKER:
            footer_size += SZ_BLOCK
            _require_length(size, header_size + footer_size)
            final_offset = size - SZ_BLOCK

        # One big opening and closing block serves every record class.
        opening = [0] * NRECORDS
        closing = [size - footer_size] * NRECORDS

    # -------------------------------------------------------------------------
    # Record sweep
    # -------------------------------------------------------------------------
    sample_size = family.sample_size
    gas_mixes = GasMixTable()
    previous_mix = (0, 0)
    closed_circuit = False
    freedive = False
    t1_battery = 0
    t2_battery = 0

    offset = header_size
    end = size - footer_size
    while offset + sample_size <= end:
        if is_zero(data, offset, sample_size):
            offset += sample_size
            continue

        record_type = data[offset] if pnf else RecordType.DIVE_SAMPLE

        if record_type == RecordType.DIVE_SAMPLE:
            status = u8(data, offset + shift + 11)
            if not status & StatusFlag.OC:
                closed_circuit = True

            mix = (u8(data, offset + shift + 7), u8(data, offset + shift + 8))
            if mix != previous_mix:
                gas_mixes.resolve(*mix)
                previous_mix = mix

            # Transmitter words: T1 at 27, T2 at 19
            t1_battery |= battery_state(u16(data, offset + shift + 27))
            t2_battery |= battery_state(u16(data, offset + shift + 19))

        elif record_type == RecordType.FREEDIVE_SAMPLE:
            freedive = True

        elif (index := RecordType.opening_class(record_type)) is not None:
            if opening[index] is None:
                opening[index] = offset
                logger.debug(f"Opening record {index} at offset {offset}")

        elif (index := RecordType.closing_class(record_type)) is not None:
            if closing[index] is None:
                closing[index] = offset
                logger.debug(f"Closing record {index} at offset {offset}")

        elif record_type == RecordType.FINAL:
            if final_offset is None:
                final_offset = offset

        offset += sample_size

    for index in range(NRECORDS_REQUIRED):
        for kind, offsets in (("opening", opening), ("closing", closing)):
            if offsets[index] is None:
                logger.error(f"{kind.capitalize()} record {index} not found")
                raise MissingRecordError(kind, index)

    if freedive:
        dive_mode = DiveMode.FREEDIVE
    elif closed_circuit:
        dive_mode = DiveMode.CCR
    else:
        dive_mode = DiveMode.OC

    strings = StringTable()

    # -------------------------------------------------------------------------
    # Log version
    # -------------------------------------------------------------------------
    # Versions before 6 were not reliably stored; 6 is the oldest assumed.
    log_version = u8(data, opening[4] + (16 if pnf else 127))
    strings.add("Logversion", f"{log_version}{'(PNF)' if pnf else ''}")

    # Transmitter battery states are only valid from version 7.
    if log_version < 7:
        t1_battery = 0
        t2_battery = 0

    # -------------------------------------------------------------------------
    # O2 sensor calibration
    # -------------------------------------------------------------------------
    base = opening[3] + (6 if pnf else 86)
    enabled = u8(data, base)
    calibration = []
    nsensors = 0
    ndefaults = 0
    for i in range(3):
        raw = u16(data, base + 1 + i * 2)
        factor = raw / 100000.0
        if model == ShearwaterModel.PREDATOR:
            factor *= PREDATOR_CALIBRATION_SCALE
            strings.add(f"O2 Sensor Calibration {i}", f"{factor * 1000:.1f} mV")
        calibration.append(factor)
        if enabled & (1 << i):
            nsensors += 1
            if raw == DEFAULT_CALIBRATION:
                ndefaults += 1

    if nsensors and nsensors == ndefaults:
        # Every enabled cell still carries the factory value, so the cells
        # were probably never calibrated. Fall back to the voted ppO2.
        logger.warning("Disabled all O2 sensors due to a default calibration value")
        calibration_mask = 0
        ppo2_source = "voted/averaged"
    else:
        calibration_mask = enabled & 0x07
        ppo2_source = "cells"
    if dive_mode is not DiveMode.OC:
        strings.add("PPO2 source", ppo2_source)

    # -------------------------------------------------------------------------
    # Environment
    # -------------------------------------------------------------------------
    units = Units.IMPERIAL if u8(data, opening[0] + 8) == Units.IMPERIAL else Units.METRIC
    atmospheric = u16(data, opening[1] + (16 if pnf else 47))
    density = u16(data, opening[3] + (3 if pnf else 83))

    # -------------------------------------------------------------------------
    # Descriptive strings
    # -------------------------------------------------------------------------
    strings.add("Serial", f"{serial:08x}")
    strings.add("FW Version", f"{u8(data, 19):2x}")
    strings.add("Deco model", _deco_model(data, opening, pnf))
    if log_version >= 7:
        battery_type = u8(data, opening[4] + 9 if pnf else 120)
        strings.add("Battery type", describe_battery_type(battery_type))
    strings.add("Battery at end", f"{u8(data, 9) / 10.0:.1f} V")
    if t1_battery:
        strings.add("T1 battery", describe_battery_state(t1_battery))
    if t2_battery:
        strings.add("T2 battery", describe_battery_state(t2_battery))

    layout = Layout(
        format=log_format,
        header_size=header_size,
        footer_size=footer_size,
        opening=tuple(opening),
        closing=tuple(closing),
        final_offset=final_offset,
        log_version=log_version,
        gas_mixes=gas_mixes.freeze(),
        calibration=(calibration[0], calibration[1], calibration[2]),
        calibration_mask=calibration_mask,
        dive_mode=dive_mode,
        units=units,
        atmospheric=atmospheric,
        density=density,
        strings=strings.freeze(),
    )
    logger.debug(
        f"Layout: {log_format.value} v{log_version}, {dive_mode.value}, "
        f"{len(layout.gas_mixes)} gas mix(es)"
    )
    return layout


def _require_length(size: int, needed: int) -> None:
    if size < needed:
        logger.error(f"Invalid data length ({size} bytes, need {needed})")
        raise BufferTooShortError(0, needed, size)


def _deco_model(data: bytes, opening: list[Optional[int]], pnf: bool) -> str:
    """Read and format the deco model settings."""
    model_offset = opening[2] + 18 if pnf else 67
    gfs_offset = opening[3] + 5 if pnf else 85

    model_id = u8(data, model_offset)
    gf_low = gf_high = conservatism = gfs = 0
    if model_id == DECO_MODEL_GF:
        gf_low = u8(data, 4)
        gf_high = u8(data, 5)
    elif model_id in (DECO_MODEL_VPMB, DECO_MODEL_VPMB_GFS):
        conservatism = u8(data, model_offset + 1)
        if model_id == DECO_MODEL_VPMB_GFS:
            gfs = u8(data, gfs_offset)
    return describe_deco_model(model_id, gf_low, gf_high, conservatism, gfs)
