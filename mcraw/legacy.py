"""Decoder for the legacy MotionCam raw frame compression (type 6).

Each row is padded to a multiple of 32 pixels and split into strips of 32.
A strip is stored as two blocks of 16 values, one for the even columns and
one for the odd columns.  A block starts with a 2 byte header holding the
bit depth (upper nibble) and a 12 bit reference value, followed by the
values packed most significant bit first.  Depths above 10 are stored as
16 bit big-endian values.
"""

from __future__ import annotations

from array import array

from mcraw.raw import RawDecodeError

BLOCK_SIZE = 16
ENCODING_BLOCK = BLOCK_SIZE * 2
HEADER_LENGTH = 2

_BLOCK_LENGTH = (0, 2, 4, 6, 8, 10, 12, 14, 16, 18, 20, 32, 32, 32, 32, 32, 32)


def padded_width(width: int) -> int:
    """Return ``width`` rounded up to a whole number of 32 pixel strips."""
    return ENCODING_BLOCK * ((width + ENCODING_BLOCK - 1) // ENCODING_BLOCK)


def _unpack(bits: int, chunk: bytes) -> list[int]:
    if bits == 0:
        return [0] * BLOCK_SIZE
    depth = bits if bits <= 10 else 16
    packed = int.from_bytes(chunk, "big")
    total = depth * BLOCK_SIZE
    mask = (1 << depth) - 1
    return [(packed >> (total - depth * (i + 1))) & mask for i in range(BLOCK_SIZE)]


def _decode_block(
    data: bytes, offset: int, block: list[int], reference: int
) -> tuple[list[int], int, int]:
    """Decode one block; return its values, its reference and bytes consumed.

    A block whose header or payload would reach the end of input is not
    decoded and the offset moves to the end of input.  A header that could
    be read still updates the reference.
    """
    end = len(data)
    if offset + HEADER_LENGTH >= end:
        return block, reference, end - offset

    first, second = data[offset], data[offset + 1]
    bits = (first >> 4) & 0x0F
    reference = ((first & 0x0F) << 8) | second
    length = _BLOCK_LENGTH[bits]

    if offset + HEADER_LENGTH + length >= end:
        return block, reference, end - offset

    start = offset + HEADER_LENGTH
    return _unpack(bits, data[start: start + length]), reference, HEADER_LENGTH + length


def decode_legacy(data: bytes, width: int, height: int) -> array:
    """Decode a legacy compressed frame into ``width * height`` 16-bit pixels."""
    data = bytes(data)
    if width <= 0 or height <= 0:
        raise RawDecodeError(f"invalid frame dimensions: {width}x{height}")
    if not data:
        raise RawDecodeError("empty legacy frame")

    strip_width = padded_width(width)
    even, odd = [0] * BLOCK_SIZE, [0] * BLOCK_SIZE
    even_ref = odd_ref = 0
    offset = 0
    row = [0] * strip_width
    pixels = array("H")

    for _ in range(height):
        for x in range(0, strip_width, ENCODING_BLOCK):
            even, even_ref, consumed = _decode_block(data, offset, even, even_ref)
            offset += consumed
            odd, odd_ref, consumed = _decode_block(data, offset, odd, odd_ref)
            offset += consumed

            end = x + ENCODING_BLOCK
            row[x:end:2] = [(v + even_ref) & 0xFFFF for v in even]
            row[x + 1:end:2] = [(v + odd_ref) & 0xFFFF for v in odd]
        pixels.extend(row[:width])

    return pixels