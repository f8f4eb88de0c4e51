"""Decoder for the current MotionCam raw frame compression (type 7).

A compressed frame starts with a 16 byte little-endian header holding the
encoded width, the encoded height and the offsets of two metadata sections:
the bit depth of every block and the reference value added to every block.
Pixel blocks of 64 values follow the header.  Each group of four blocks
covers a 64 pixel wide strip of four rows of the Bayer mosaic.
"""

from __future__ import annotations

import struct
from array import array
from collections.abc import Callable

ENCODING_BLOCK = 64
HEADER_LENGTH = 2
METADATA_OFFSET = 16

_BLOCK_LENGTH = (0, 8, 16, 24, 32, 40, 48, 64, 64, 80, 80, 128, 128, 128, 128, 128, 128)
_MAX_BITS = len(_BLOCK_LENGTH) - 1

_FRAME_HEADER = struct.Struct("<4I")
_COUNT = struct.Struct("<I")
_BLOCK16 = struct.Struct("<64H")

_Block = list[int]


class RawDecodeError(ValueError):
    """Raised when a compressed frame cannot be decoded."""


def read_metadata_header(data: bytes) -> tuple[int, int, int, int]:
    """Return ``(encoded_width, encoded_height, bits_offset, refs_offset)``."""
    if len(data) < _FRAME_HEADER.size:
        raise RawDecodeError(
            f"frame too short for header: {len(data)} bytes, need {_FRAME_HEADER.size}"
        )
    encoded_width, encoded_height, bits_offset, refs_offset = _FRAME_HEADER.unpack_from(data, 0)
    return encoded_width, encoded_height, bits_offset, refs_offset


def _groups(data: bytes, offset: int, count: int) -> list[bytes]:
    return [data[offset + 8 * m: offset + 8 * m + 8] for m in range(count)]


def _unpack1(data: bytes, offset: int) -> _Block:
    group = data[offset: offset + 8]
    return [(b >> k) & 0x01 for k in range(8) for b in group]


def _unpack2(data: bytes, offset: int) -> _Block:
    return [
        (b >> (2 * k)) & 0x03
        for group in _groups(data, offset, 2)
        for k in range(4)
        for b in group
    ]


def _unpack3(data: bytes, offset: int) -> _Block:
    p0, p1, p2 = _groups(data, offset, 3)
    planes = (
        [b & 0x07 for b in p0],
        [(b >> 3) & 0x07 for b in p0],
        [((a >> 6) & 0x03) | (((c >> 6) & 0x01) << 2) for a, c in zip(p0, p2)],
        [b & 0x07 for b in p1],
        [(b >> 3) & 0x07 for b in p1],
        [((a >> 6) & 0x03) | (((c >> 7) & 0x01) << 2) for a, c in zip(p1, p2)],
        [b & 0x07 for b in p2],
        [(b >> 3) & 0x07 for b in p2],
    )
    return [v for plane in planes for v in plane]


def _unpack4(data: bytes, offset: int) -> _Block:
    return [
        v
        for group in _groups(data, offset, 4)
        for v in [b & 0x0F for b in group] + [(b >> 4) & 0x0F for b in group]
    ]


def _unpack5(data: bytes, offset: int) -> _Block:
    p = _groups(data, offset, 5)
    planes = [[b & 0x1F for b in group] for group in p]
    planes.append([((a >> 5) & 0x07) | (((d >> 5) & 0x03) << 3) for a, d in zip(p[0], p[3])])
    planes.append([((a >> 5) & 0x07) | (((e >> 5) & 0x03) << 3) for a, e in zip(p[1], p[4])])
    planes.append(
        [
            ((c >> 5) & 0x07) | (((d >> 7) & 0x01) << 3) | (((e >> 7) & 0x01) << 4)
            for c, d, e in zip(p[2], p[3], p[4])
        ]
    )
    return [v for plane in planes for v in plane]


def _unpack6(data: bytes, offset: int) -> _Block:
    p = _groups(data, offset, 6)
    planes = [[b & 0x3F for b in group] for group in p]
    for a_group, b_group, c_group in (p[0:3], p[3:6]):
        planes.append(
            [
                ((a >> 6) & 0x03) | (((b >> 6) & 0x03) << 2) | (((c >> 6) & 0x03) << 4)
                for a, b, c in zip(a_group, b_group, c_group)
            ]
        )
    return [v for plane in planes for v in plane]


def _unpack8(data: bytes, offset: int) -> _Block:
    return list(data[offset: offset + ENCODING_BLOCK])


def _unpack10(data: bytes, offset: int) -> _Block:
    p = _groups(data, offset, 10)
    planes = []
    for low_groups, high in ((p[0:4], p[4]), (p[5:9], p[9])):
        for k, low in enumerate(low_groups):
            planes.append([a | (((h >> (2 * k)) & 0x03) << 8) for a, h in zip(low, high)])
    return [v for plane in planes for v in plane]


def _unpack16(data: bytes, offset: int) -> _Block:
    return list(_BLOCK16.unpack_from(data, offset))


_UNPACKERS: dict[int, Callable[[bytes, int], _Block]] = {
    1: _unpack1,
    2: _unpack2,
    3: _unpack3,
    4: _unpack4,
    5: _unpack5,
    6: _unpack6,
    7: _unpack8,
    8: _unpack8,
    9: _unpack10,
    10: _unpack10,
}


def _decode_block(bits: int, data: bytes, offset: int, previous: _Block) -> tuple[_Block, int]:
    """Decode one block; return its values and the number of bytes consumed.

    A block that would run past the end of the input is not decoded: the
    previous contents are kept and the offset is moved to the end of input.
    """
    if bits > _MAX_BITS:
        raise RawDecodeError(f"invalid block bit depth: {bits}")
    length = _BLOCK_LENGTH[bits]
    if offset + length > len(data):
        return previous, len(data) - offset
    if bits == 0:
        return [0] * ENCODING_BLOCK, 0
    return _UNPACKERS.get(bits, _unpack16)(data, offset), length


def _block_header(data: bytes, offset: int) -> tuple[int, int]:
    first, second = data[offset], data[offset + 1]
    return (first >> 4) & 0x0F, ((first & 0x0F) << 8) | second


def _decode_metadata(data: bytes, offset: int) -> list[int]:
    if offset + _COUNT.size > len(data):
        raise RawDecodeError(f"metadata section at {offset} lies outside the frame")
    (count,) = _COUNT.unpack_from(data, offset)
    offset += _COUNT.size

    zeros = [0] * ENCODING_BLOCK
    values: list[int] = []
    while len(values) < count:
        if offset + HEADER_LENGTH > len(data):
            raise RawDecodeError("truncated metadata block header")
        bits, reference = _block_header(data, offset)
        offset += HEADER_LENGTH
        block, consumed = _decode_block(bits, data, offset, zeros)
        offset += consumed
        values.extend((v + reference) & 0xFFFF for v in block)
    del values[count:]
    return values


def decode(data: bytes, width: int, height: int) -> array:
    """Decode a compressed frame into ``width * height`` unsigned 16-bit pixels.

    Rows beyond the encoded height are left at zero; encoded rows beyond
    ``height`` and columns beyond ``width`` are dropped.
    """
    data = bytes(data)
    if width <= 0 or height <= 0:
        raise RawDecodeError(f"invalid frame dimensions: {width}x{height}")

    encoded_width, encoded_height, bits_offset, refs_offset = read_metadata_header(data)
    if bits_offset > len(data) or refs_offset > len(data):
        raise RawDecodeError("metadata offsets lie outside the frame")
    if encoded_width % ENCODING_BLOCK:
        raise RawDecodeError(f"encoded width {encoded_width} is not a multiple of {ENCODING_BLOCK}")
    if encoded_width < width:
        raise RawDecodeError(f"encoded width {encoded_width} is smaller than width {width}")

    bits = _decode_metadata(data, bits_offset)
    refs = _decode_metadata(data, refs_offset)
    available = min(len(bits), len(refs))

    half = ENCODING_BLOCK // 2
    offset = METADATA_OFFSET
    previous: list[_Block] = [[0] * ENCODING_BLOCK for _ in range(4)]
    index = 0
    rows_written = 0
    pixels = array("H")

    for _ in range(0, encoded_height, 4):
        if rows_written >= height:
            break
        rows = [[0] * encoded_width for _ in range(4)]
        for x in range(0, encoded_width, ENCODING_BLOCK):
            if index + 4 > available:
                raise RawDecodeError("block metadata is shorter than the encoded frame")
            blocks = []
            for block_bits, last in zip(bits[index: index + 4], previous):
                block, consumed = _decode_block(block_bits, data, offset, last)
                offset += consumed
                blocks.append(block)
            previous = blocks

            q0, q1, q2, q3 = (
                [(v + reference) & 0xFFFF for v in block]
                for block, reference in zip(blocks, refs[index: index + 4])
            )
            end = x + ENCODING_BLOCK
            rows[0][x:end:2], rows[0][x + 1:end:2] = q0[:half], q1[:half]
            rows[1][x:end:2], rows[1][x + 1:end:2] = q2[:half], q3[:half]
            rows[2][x:end:2], rows[2][x + 1:end:2] = q0[half:], q1[half:]
            rows[3][x:end:2], rows[3][x + 1:end:2] = q2[half:], q3[half:]
            index += 4

        for row in rows[: height - rows_written]:
            pixels.extend(row[:width])
            rows_written += 1

    if not pixels:
        raise RawDecodeError("frame contains no encoded rows")
    missing = width * height - len(pixels)
    if missing > 0:
        pixels.extend(array("H", [0]) * missing)
    return pixels