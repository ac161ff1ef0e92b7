"""
Buffer Primitives
=================

Bounds-checked big-endian integer reads over an immutable dive buffer.

Every read validates that the requested bytes lie inside the buffer
and raises BufferTooShortError otherwise. Offset arithmetic elsewhere
in the decoder can therefore never read past the end silently.

Usage
-----
    >>> from shearwater_log.parser.buffer import u16, is_zero
    >>> u16(b"\\x12\\x34", 0)
    4660
    >>> is_zero(bytes(8), 0, 8)
    True
"""

from shearwater_log.errors import BufferTooShortError


def _check(data: bytes, offset: int, length: int) -> None:
    if offset < 0 or offset + length > len(data):
        raise BufferTooShortError(offset, length, len(data))


def u8(data: bytes, offset: int) -> int:
    """Read an unsigned byte."""
    _check(data, offset, 1)
    return data[offset]


def s8(data: bytes, offset: int) -> int:
    """Read a signed (two's complement) byte."""
    _check(data, offset, 1)
    return int.from_bytes(data[offset:offset + 1], "big", signed=True)


def u16(data: bytes, offset: int) -> int:
    """Read a big-endian unsigned 16-bit word."""
    _check(data, offset, 2)
    return (data[offset] << 8) | data[offset + 1]


def s16(data: bytes, offset: int) -> int:
    """Read a big-endian signed 16-bit word."""
    _check(data, offset, 2)
    return int.from_bytes(data[offset:offset + 2], "big", signed=True)


def u24(data: bytes, offset: int) -> int:
    """Read a big-endian unsigned 24-bit value."""
    _check(data, offset, 3)
    return (data[offset] << 16) | (data[offset + 1] << 8) | data[offset + 2]


def u32(data: bytes, offset: int) -> int:
    """Read a big-endian unsigned 32-bit value."""
    _check(data, offset, 4)
    return int.from_bytes(data[offset:offset + 4], "big")


def is_zero(data: bytes, offset: int, length: int) -> bool:
    """
    Check whether a region of the buffer contains only zero bytes.

    Args:
        data: The dive buffer
        offset: Start of the region
        length: Size of the region in bytes

    Returns:
        True if every byte in the region is 0x00

    Raises:
        BufferTooShortError: If the region extends past the buffer
    """
    _check(data, offset, length)
    return not any(data[offset:offset + length])
