"""
Buffer Primitive Tests
======================

Tests for the bounds-checked big-endian reads and the physical unit
helpers.
"""

import pytest

from shearwater_log.errors import BufferTooShortError, DataFormatError
from shearwater_log.parser.buffer import is_zero, s8, s16, u8, u16, u24, u32
from shearwater_log.units import FEET, fahrenheit_to_celsius


DATA = bytes([0x12, 0x34, 0x56, 0x78, 0xFF, 0xFE, 0x00, 0x00])


class TestReads:
    """Tests for the integer readers."""

    def test_u8(self):
        assert u8(DATA, 0) == 0x12
        assert u8(DATA, 4) == 0xFF

    def test_s8(self):
        assert s8(DATA, 0) == 0x12
        assert s8(DATA, 4) == -1
        assert s8(bytes([0x80]), 0) == -128

    def test_u16_big_endian(self):
        assert u16(DATA, 0) == 0x1234
        assert u16(DATA, 4) == 0xFFFE

    def test_s16(self):
        assert s16(DATA, 4) == -2
        assert s16(DATA, 0) == 0x1234

    def test_u24(self):
        assert u24(DATA, 1) == 0x345678

    def test_u32(self):
        assert u32(DATA, 0) == 0x12345678
        assert u32(DATA, 4) == 0xFFFE0000


class TestBounds:
    """Every read past the end raises."""

    @pytest.mark.parametrize("reader,offset", [
        (u8, 8), (s8, 8), (u16, 7), (s16, 7), (u24, 6), (u32, 5),
    ])
    def test_read_past_end(self, reader, offset):
        with pytest.raises(BufferTooShortError):
            reader(DATA, offset)

    def test_negative_offset(self):
        with pytest.raises(BufferTooShortError):
            u8(DATA, -1)

    def test_error_carries_details(self):
        with pytest.raises(BufferTooShortError) as exc_info:
            u32(DATA, 6)
        error = exc_info.value
        assert error.offset == 6
        assert error.length == 4
        assert error.size == 8
        assert "need 4 byte(s) at offset 6" in str(error)

    def test_is_data_format_error(self):
        with pytest.raises(DataFormatError):
            u16(b"\x00", 0)


class TestIsZero:
    def test_zero_region(self):
        assert is_zero(DATA, 6, 2)

    def test_non_zero_region(self):
        assert not is_zero(DATA, 4, 4)

    def test_empty_region(self):
        assert is_zero(DATA, 8, 0)

    def test_region_past_end(self):
        with pytest.raises(BufferTooShortError):
            is_zero(DATA, 6, 4)


class TestUnits:
    def test_feet(self):
        assert 100 * FEET == pytest.approx(30.48)

    def test_fahrenheit(self):
        assert fahrenheit_to_celsius(32) == pytest.approx(0.0)
        assert fahrenheit_to_celsius(212) == pytest.approx(100.0)
        assert fahrenheit_to_celsius(68) == pytest.approx(20.0)
