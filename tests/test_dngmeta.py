import struct
from array import array

import pytest

from mcraw.dng import DngError
from mcraw.dngmeta import (
    cfa_pattern,
    dng_image_from_metadata,
    matrix_or_identity,
    normalize_black_level,
    write_dng,
)

IDENTITY = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0)


@pytest.mark.parametrize(
    "arrangement, expected",
    [
        ("rggb", (0, 1, 1, 2)),
        ("bggr", (2, 1, 1, 0)),
        ("grbg", (1, 0, 2, 1)),
        ("gbrg", (1, 2, 0, 1)),
        ("RGGB", (0, 1, 1, 2)),
        ("BGGR", (2, 1, 1, 0)),
    ],
)
def test_cfa_pattern(arrangement, expected):
    assert cfa_pattern(arrangement) == expected


def test_cfa_pattern_rejects_unknown():
    with pytest.raises(DngError, match="sensorArrangement"):
        cfa_pattern("xyzw")


def test_black_level_empty_gives_zeros():
    assert normalize_black_level([]) == (0, 0, 0, 0)


def test_black_level_single_value_repeated():
    assert normalize_black_level([64]) == (64, 64, 64, 64)


def test_black_level_padded_with_first_value():
    assert normalize_black_level([3, 5]) == (3, 5, 3, 3)


def test_black_level_truncated():
    assert normalize_black_level([1, 2, 3, 4, 5]) == (1, 2, 3, 4)


def test_black_level_clamped_and_rounded():
    assert normalize_black_level([-5, 70000, 10.4, 10.6]) == (0, 65535, 10, 11)


def test_black_level_rejects_text():
    with pytest.raises(DngError):
        normalize_black_level(["a"])


def test_matrix_or_identity_keeps_nine_values():
    values = [2, 0, 0, 0, 3, 0, 0, 0, 4]
    assert matrix_or_identity(values) == tuple(float(v) for v in values)


@pytest.mark.parametrize("value", [None, [1, 2, 3], "matrix", {"a": 1}])
def test_matrix_or_identity_falls_back(value):
    assert matrix_or_identity(value) == IDENTITY


def test_matrix_or_identity_rejects_non_numeric():
    with pytest.raises(DngError):
        matrix_or_identity(["x"] * 9)


def test_defaults_from_empty_container():
    data = bytes(2 * 2 * 2)
    image = dng_image_from_metadata(data, {"width": 2, "height": 2}, {})
    assert image.cfa_pattern == (2, 1, 1, 0)
    assert image.white_level == 65535.0
    assert image.black_level == (0, 0, 0, 0)
    assert image.as_shot_neutral == (1.0, 1.0, 1.0)
    assert image.color_matrix1 == IDENTITY
    assert image.unique_camera_model == "MotionCam App Player Export"


def test_pixel_array_stored_little_endian():
    pixels = array("H", [1, 258, 65535, 4096])
    image = dng_image_from_metadata(pixels, {"width": 2, "height": 2}, {})
    assert image.data == struct.pack("<4H", *pixels)


def test_container_fields_are_used():
    matrix = [0.5, 0.1, 0.0, 0.0, 0.9, 0.1, 0.0, 0.2, 0.8]
    container = {
        "blackLevel": [64, 64, 64, 64],
        "whiteLevel": 1023,
        "sensorArrangment": "rggb",
        "colorMatrix1": matrix,
        "forwardMatrix2": matrix,
    }
    frame = {"width": 2, "height": 2, "asShotNeutral": [0.5, 1, 0.7]}
    image = dng_image_from_metadata(bytes(8), frame, container, camera_model="MotionCam")
    assert image.cfa_pattern == (0, 1, 1, 2)
    assert image.black_level == (64, 64, 64, 64)
    assert image.white_level == 1023.0
    assert image.color_matrix1 == tuple(matrix)
    assert image.forward_matrix2 == tuple(matrix)
    assert image.color_matrix2 == IDENTITY
    assert image.as_shot_neutral == (0.5, 1.0, 0.7)
    assert image.unique_camera_model == "MotionCam"


def test_preferred_keys_take_precedence():
    preferred = [2, 0, 0, 0, 2, 0, 0, 0, 2]
    container = {
        "sensorArrangement": "gbrg",
        "sensorArrangment": "rggb",
        "ColorMatrix": preferred,
        "colorMatrix1": [3, 0, 0, 0, 3, 0, 0, 0, 3],
    }
    image = dng_image_from_metadata(bytes(8), {"width": 2, "height": 2}, container)
    assert image.cfa_pattern == (1, 2, 0, 1)
    assert image.color_matrix1 == tuple(float(v) for v in preferred)


def test_missing_dimensions_rejected():
    with pytest.raises(DngError, match="Invalid frame dimensions"):
        dng_image_from_metadata(bytes(8), {"height": 2}, {})


def test_short_data_rejected():
    with pytest.raises(DngError, match="Insufficient image data"):
        dng_image_from_metadata(bytes(7), {"width": 2, "height": 2}, {})


def test_invalid_arrangement_rejected():
    with pytest.raises(DngError):
        dng_image_from_metadata(bytes(8), {"width": 2, "height": 2}, {"sensorArrangement": "rgbw"})


def test_write_dng_creates_file(tmp_path):
    data = bytes(range(8))
    path = write_dng(tmp_path / "out.dng", data, {"width": 2, "height": 2}, {})
    blob = path.read_bytes()
    assert blob.startswith(b"II*\x00")
    assert blob.endswith(data)