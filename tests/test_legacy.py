import random

import pytest

from mcraw.legacy import decode_legacy, padded_width
from mcraw.raw import RawDecodeError


def _encode_block(values):
    reference = min(min(values), 4095)
    deltas = [v - reference for v in values]
    depth = max(deltas).bit_length()
    nibble = depth if depth <= 10 else 11
    stored = depth if depth <= 10 else 16
    header = bytes([(nibble << 4) | (reference >> 8), reference & 0xFF])
    if depth == 0:
        return header
    packed = 0
    for delta in deltas:
        packed = (packed << stored) | delta
    return header + packed.to_bytes(2 * stored, "big")


def _encode(rows, width):
    strip_width = padded_width(width)
    out = bytearray()
    for row in rows:
        padded = list(row) + [0] * (strip_width - len(row))
        for x in range(0, strip_width, 32):
            strip = padded[x: x + 32]
            out += _encode_block(strip[0::2])
            out += _encode_block(strip[1::2])
    out.append(0)
    return bytes(out)


def _rows(low, high, width, height, seed=1):
    rng = random.Random(seed)
    return [[rng.randint(low, high) for _ in range(width)] for _ in range(height)]


def _split(pixels, width):
    values = list(pixels)
    return [values[i: i + width] for i in range(0, len(values), width)]


def test_padded_width_pinned():
    assert padded_width(33) == 64


@pytest.mark.parametrize("width", range(1, 130))
def test_padded_width_invariants(width):
    padded = padded_width(width)
    assert padded % 32 == 0
    assert width <= padded < width + 32


@pytest.mark.parametrize(
    "low, high",
    [
        (7, 7),
        (0, 1),
        (10, 13),
        (100, 107),
        (0, 31),
        (300, 363),
        (0, 127),
        (1000, 1255),
        (0, 511),
        (2000, 3023),
        (0, 4095),
        (0, 65535),
    ],
)
def test_round_trip_bit_depths(low, high):
    width, height = 64, 3
    rows = _rows(low, high, width, height)
    pixels = decode_legacy(_encode(rows, width), width, height)
    assert _split(pixels, width) == rows


def test_round_trip_unpadded_width():
    width, height = 50, 4
    rows = _rows(0, 900, width, height, seed=7)
    pixels = decode_legacy(_encode(rows, width), width, height)
    assert len(pixels) == width * height
    assert _split(pixels, width) == rows


def test_missing_rows_repeat_last_decoded_row():
    width = 32
    rows = _rows(50, 400, width, 1, seed=3)
    pixels = decode_legacy(_encode(rows, width), width, 3)
    assert _split(pixels, width) == rows * 3


def test_accepts_bytearray():
    width = 32
    rows = _rows(0, 255, width, 2, seed=5)
    pixels = decode_legacy(bytearray(_encode(rows, width)), width, 2)
    assert _split(pixels, width) == rows


@pytest.mark.parametrize("width, height", [(0, 4), (32, 0), (-1, 2)])
def test_invalid_dimensions_raise(width, height):
    with pytest.raises(RawDecodeError):
        decode_legacy(b"\x00\x00\x00", width, height)


def test_empty_data_raises():
    with pytest.raises(RawDecodeError):
        decode_legacy(b"", 32, 1)