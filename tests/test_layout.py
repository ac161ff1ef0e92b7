"""
Layout Pass Unit Tests
======================

Tests for format detection and the layout pass over legacy and PNF
buffers.

Test Categories
---------------
1. Detection: legacy vs PNF classification
2. Records: opening/closing offsets and missing records
3. Aggregates: gas mixes, dive mode, calibration
4. Strings: descriptive strings in insertion order
5. Failures: short buffers and table overflow
"""

import logging

import pytest

from shearwater_log.errors import (
    BufferTooShortError,
    GasMixLimitError,
    MissingRecordError,
)
from shearwater_log.parser import (
    DiveMode,
    Family,
    FieldString,
    GasMix,
    LogFormat,
    ShearwaterModel,
    Units,
    compute_layout,
    detect_format,
)

from dive_builders import (
    DEFAULT_CALIBRATION,
    LegacyDiveBuilder,
    PnfDiveBuilder,
    legacy_dive,
    pnf_dive,
)


def _strings(layout) -> dict[str, str]:
    return {entry.desc: entry.value for entry in layout.strings}


# =============================================================================
# Format Detection
# =============================================================================

class TestDetectFormat:
    """Tests for legacy/PNF classification."""

    def test_legacy_signature(self):
        assert detect_format(b"\xff\xff\x00\x00", Family.PETREL) is LogFormat.LEGACY

    @pytest.mark.parametrize("lead", [b"\x10\x00", b"\xff\xfe", b"\x00\x00", b"\xfe\xff"])
    def test_other_words_are_pnf(self, lead):
        assert detect_format(lead, Family.PETREL) is LogFormat.PNF

    def test_predator_is_always_legacy(self):
        assert detect_format(b"\x10\x00", Family.PREDATOR) is LogFormat.LEGACY

    @pytest.mark.parametrize("data", [b"", b"\x10"])
    def test_too_short(self, data):
        with pytest.raises(BufferTooShortError):
            detect_format(data, Family.PETREL)


# =============================================================================
# PNF Layout
# =============================================================================

class TestPnfLayout:
    """Tests for the layout of a PNF buffer."""

    def test_format(self, pnf_data):
        layout = compute_layout(pnf_data, Family.PETREL)
        assert layout.format is LogFormat.PNF
        assert layout.pnf
        assert layout.shift == 1
        assert layout.header_size == 0
        assert layout.footer_size == 0

    def test_record_offsets(self, pnf_data):
        layout = compute_layout(pnf_data, Family.PETREL)
        # Opening 0-5, three samples, closing 0-4, final
        assert layout.opening[:6] == (0, 32, 64, 96, 128, 160)
        assert layout.opening[6:] == (None, None)
        assert layout.closing[:5] == (288, 320, 352, 384, 416)
        assert layout.closing[5:] == (None, None, None)
        assert layout.final_offset == 448

    def test_first_sight_wins(self):
        builder = PnfDiveBuilder()
        builder.add_dive_sample()
        duplicate = bytearray(32)
        duplicate[0] = 0x13
        builder.add_raw(duplicate)
        layout = compute_layout(builder.build(), Family.PETREL)
        assert layout.opening[3] == 96

    def test_environment(self, pnf_data):
        layout = compute_layout(pnf_data, Family.PETREL)
        assert layout.log_version == 10
        assert layout.units is Units.METRIC
        assert layout.atmospheric == 1013
        assert layout.density == 1025

    def test_imperial(self):
        layout = compute_layout(pnf_dive(units=1), Family.PETREL)
        assert layout.units is Units.IMPERIAL
        assert layout.imperial

    def test_open_circuit(self, pnf_data):
        layout = compute_layout(pnf_data, Family.PETREL)
        assert layout.dive_mode is DiveMode.OC
        assert layout.gas_mixes == (GasMix(21, 0),)

    def test_closed_circuit(self):
        builder = PnfDiveBuilder()
        builder.add_dive_sample(status=0x10)
        builder.add_dive_sample(status=0x00)
        layout = compute_layout(builder.build(), Family.PETREL)
        assert layout.dive_mode is DiveMode.CCR

    def test_freedive_overrides_closed_circuit(self):
        builder = PnfDiveBuilder()
        builder.add_dive_sample(status=0x00)
        builder.add_freedive([(2013, 215)])
        layout = compute_layout(builder.build(), Family.PETREL)
        assert layout.dive_mode is DiveMode.FREEDIVE

    def test_gas_mixes_in_first_seen_order(self):
        builder = PnfDiveBuilder()
        for oxygen, helium in [(21, 0), (32, 0), (21, 0), (18, 45), (32, 0)]:
            builder.add_dive_sample(oxygen=oxygen, helium=helium)
        layout = compute_layout(builder.build(), Family.PETREL)
        assert layout.gas_mixes == (GasMix(21, 0), GasMix(32, 0), GasMix(18, 45))
        assert layout.find_gasmix(18, 45) == 2
        assert layout.find_gasmix(50, 0) is None

    def test_padding_is_skipped(self):
        builder = PnfDiveBuilder()
        builder.add_dive_sample()
        builder.add_padding(3)
        builder.add_dive_sample(oxygen=32)
        layout = compute_layout(builder.build(), Family.PETREL)
        assert len(layout.gas_mixes) == 2

    def test_idempotent(self, pnf_data):
        assert compute_layout(pnf_data, Family.PETREL) == compute_layout(pnf_data, Family.PETREL)


# =============================================================================
# Legacy Layout
# =============================================================================

class TestLegacyLayout:
    """Tests for the layout of a legacy buffer."""

    def test_petrel_legacy(self, legacy_data):
        layout = compute_layout(legacy_data, Family.PETREL)
        size = len(legacy_data)
        assert layout.format is LogFormat.LEGACY
        assert layout.shift == 0
        assert layout.header_size == 128
        # Petrel-family legacy logs always carry the final block
        assert layout.footer_size == 256
        assert layout.final_offset == size - 128
        assert layout.opening == (0,) * 8
        assert layout.closing == (size - 256,) * 8

    def test_environment(self, legacy_data):
        layout = compute_layout(legacy_data, Family.PETREL)
        assert layout.log_version == 6
        assert layout.atmospheric == 1013
        assert layout.density == 1025
        assert layout.dive_mode is DiveMode.OC
        assert layout.gas_mixes == (GasMix(21, 0),)

    def test_predator_without_final_block(self):
        builder = LegacyDiveBuilder(sample_size=16, final_block=False)
        builder.add_dive_sample()
        data = builder.build()
        layout = compute_layout(data, Family.PREDATOR, model=ShearwaterModel.PREDATOR)
        assert layout.footer_size == 128
        assert layout.final_offset is None
        assert layout.closing[0] == len(data) - 128

    def test_predator_with_final_block(self):
        builder = LegacyDiveBuilder(sample_size=16, final_block=True)
        builder.add_dive_sample()
        data = builder.build()
        layout = compute_layout(data, Family.PREDATOR, model=ShearwaterModel.PREDATOR)
        assert layout.footer_size == 256
        assert layout.final_offset == len(data) - 128

    def test_too_short_for_blocks(self):
        data = b"\xff\xff" + bytes(200)
        with pytest.raises(BufferTooShortError):
            compute_layout(data, Family.PETREL)

    def test_idempotent(self, legacy_data):
        assert compute_layout(legacy_data, Family.PETREL) == compute_layout(legacy_data, Family.PETREL)


# =============================================================================
# Calibration
# =============================================================================

class TestCalibration:
    """Tests for O2 sensor calibration handling."""

    def test_calibrated_cells(self, pnf_data):
        layout = compute_layout(pnf_data, Family.PETREL)
        assert layout.calibration_mask == 0x07
        assert layout.calibration == pytest.approx((0.0195, 0.0201, 0.0208))

    def test_partial_enable(self):
        layout = compute_layout(pnf_dive(calibration=(0x05, 1950, 2100, 2080)), Family.PETREL)
        assert layout.calibration_mask == 0x05

    def test_default_values_disable_cells(self, caplog):
        with caplog.at_level(logging.WARNING):
            layout = compute_layout(pnf_dive(calibration=DEFAULT_CALIBRATION), Family.PETREL)
        assert layout.calibration_mask == 0
        assert "Disabled all O2 sensors" in caplog.text

    def test_default_on_disabled_cell_only(self):
        # Only the enabled cells are compared against the default
        layout = compute_layout(pnf_dive(calibration=(0x03, 1950, 2010, 2100)), Family.PETREL)
        assert layout.calibration_mask == 0x03

    def test_no_enabled_cells(self):
        layout = compute_layout(pnf_dive(calibration=(0x00, 2100, 2100, 2100)), Family.PETREL)
        assert layout.calibration_mask == 0

    def test_predator_scale(self):
        builder = LegacyDiveBuilder(sample_size=16, final_block=False)
        builder.add_dive_sample()
        layout = compute_layout(builder.build(), Family.PREDATOR, model=ShearwaterModel.PREDATOR)
        assert layout.calibration == pytest.approx((0.0429, 0.04422, 0.04576))
        strings = _strings(layout)
        assert strings["O2 Sensor Calibration 0"] == "42.9 mV"
        assert strings["O2 Sensor Calibration 1"] == "44.2 mV"
        assert strings["O2 Sensor Calibration 2"] == "45.8 mV"


# =============================================================================
# Descriptive Strings
# =============================================================================

class TestStrings:
    """Tests for the descriptive strings."""

    def test_pnf_open_circuit_strings(self):
        layout = compute_layout(pnf_dive(), Family.PETREL, serial=0x12ABCD)
        assert layout.strings == (
            FieldString("Logversion", "10(PNF)"),
            FieldString("Serial", "0012abcd"),
            FieldString("FW Version", "5b"),
            FieldString("Deco model", "GF 30/70"),
            FieldString("Battery type", "1.5V Lithium"),
            FieldString("Battery at end", "1.5 V"),
        )

    def test_legacy_strings_before_version_7(self, legacy_data):
        strings = _strings(compute_layout(legacy_data, Family.PETREL))
        assert strings["Logversion"] == "6"
        assert strings["FW Version"] == "1c"
        assert strings["Battery at end"] == "3.1 V"
        assert "Battery type" not in strings

    def test_ppo2_source_for_closed_circuit(self):
        builder = PnfDiveBuilder()
        builder.add_dive_sample(status=0x00)
        assert _strings(compute_layout(builder.build(), Family.PETREL))["PPO2 source"] == "cells"

        builder = PnfDiveBuilder(calibration=DEFAULT_CALIBRATION)
        builder.add_dive_sample(status=0x00)
        strings = _strings(compute_layout(builder.build(), Family.PETREL))
        assert strings["PPO2 source"] == "voted/averaged"

    def test_vpmb_deco_model(self):
        strings = _strings(compute_layout(pnf_dive(deco_model=1, conservatism=3), Family.PETREL))
        assert strings["Deco model"] == "VPM-B +3"

    def test_vpmb_gfs_deco_model(self):
        data = pnf_dive(deco_model=2, conservatism=2, gfs=90)
        strings = _strings(compute_layout(data, Family.PETREL))
        assert strings["Deco model"] == "VPM-B/GFS +2 90%"

    def test_legacy_vpmb_gfs_deco_model(self):
        data = legacy_dive(deco_model=2, conservatism=1, gfs=85)
        strings = _strings(compute_layout(data, Family.PETREL))
        assert strings["Deco model"] == "VPM-B/GFS +1 85%"

    def test_transmitter_batteries(self):
        builder = PnfDiveBuilder()
        builder.add_dive_sample(t1=0x0123, t2=0x2100)
        builder.add_dive_sample(t1=0x1123, t2=0x2100)
        strings = _strings(compute_layout(builder.build(), Family.PETREL))
        assert strings["T1 battery"] == "critical"
        assert strings["T2 battery"] == "warning"

    def test_transmitter_batteries_ignored_before_version_7(self):
        builder = PnfDiveBuilder(log_version=6)
        builder.add_dive_sample(t1=0x0123, t2=0x2100)
        strings = _strings(compute_layout(builder.build(), Family.PETREL))
        assert "T1 battery" not in strings
        assert "T2 battery" not in strings

    def test_labels_are_unique(self):
        builder = PnfDiveBuilder()
        builder.add_dive_sample(status=0x00, t1=0x0123, t2=0x1123)
        layout = compute_layout(builder.build(), Family.PETREL)
        labels = [entry.desc for entry in layout.strings]
        assert len(labels) == len(set(labels))


# =============================================================================
# Failures
# =============================================================================

class TestFailures:
    """Tests for layout pass failures."""

    @pytest.mark.parametrize("index", range(5))
    def test_missing_opening_record(self, index):
        builder = PnfDiveBuilder()
        builder.add_dive_sample()
        builder.skip_opening = {index}
        with pytest.raises(MissingRecordError) as exc_info:
            compute_layout(builder.build(), Family.PETREL)
        assert exc_info.value.kind == "opening"
        assert exc_info.value.index == index

    def test_missing_closing_record(self):
        builder = PnfDiveBuilder()
        builder.add_dive_sample()
        builder.skip_closing = {4}
        with pytest.raises(MissingRecordError, match="closing record 4 not found"):
            compute_layout(builder.build(), Family.PETREL)

    def test_optional_records_may_be_missing(self):
        builder = PnfDiveBuilder(log_version=8)
        builder.add_dive_sample()
        builder.skip_opening = {5}
        layout = compute_layout(builder.build(), Family.PETREL)
        assert layout.opening[5] is None

    def test_eleventh_gas_mix(self):
        builder = PnfDiveBuilder()
        for oxygen in range(10, 21):
            builder.add_dive_sample(oxygen=oxygen)
        with pytest.raises(GasMixLimitError):
            compute_layout(builder.build(), Family.PETREL)

    def test_ten_gas_mixes(self):
        builder = PnfDiveBuilder()
        for oxygen in range(10, 20):
            builder.add_dive_sample(oxygen=oxygen)
        layout = compute_layout(builder.build(), Family.PETREL)
        assert len(layout.gas_mixes) == 10
