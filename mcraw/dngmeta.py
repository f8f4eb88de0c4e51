"""Building DNG images from MotionCam frame and container metadata."""

from __future__ import annotations

import math
import os
import sys
from array import array
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Union

from mcraw.dng import IDENTITY_MATRIX, DngError, DngImage

_CFA_PATTERNS = {
    "RGGB": (0, 1, 1, 2),
    "BGGR": (2, 1, 1, 0),
    "GRBG": (1, 0, 2, 1),
    "GBRG": (1, 2, 0, 1),
}

_DEFAULT_MODEL = "MotionCam App Player Export"
_IDENTITY = [1, 0, 0, 0, 1, 0, 0, 0, 1]


def cfa_pattern(arrangement: str) -> tuple[int, int, int, int]:
    """Return the DNG CFA pattern for a sensor arrangement such as ``"rggb"``."""
    if not isinstance(arrangement, str):
        raise DngError(f"Invalid sensor arrangement: {arrangement!r}")
    pattern = _CFA_PATTERNS.get(arrangement.upper())
    if pattern is None:
        raise DngError(
            f"Invalid or unsupported sensorArrangement for DNG CFA pattern: {arrangement}"
        )
    return pattern


def _number(value: object, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DngError(f"{what} must be numeric, got {value!r}")
    return float(value)


def normalize_black_level(values: Iterable[Any]) -> tuple[int, int, int, int]:
    """Turn a list of black levels into four 16-bit values.

    An empty list gives zeros, a single value is repeated, other lengths are
    cut or filled with the first value.  Values are rounded and clamped.
    """
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise DngError(f"black level must be a list of numbers, got {values!r}")
    levels = [_number(v, "black level") for v in values]
    if not levels:
        levels = [0.0] * 4
    elif len(levels) != 4:
        levels = (levels + [levels[0]] * 4)[:4]

    result = []
    for level in levels:
        if math.isnan(level) or level < 0.0:
            result.append(0)
        elif level > 65535.0:
            result.append(65535)
        else:
            result.append(int(math.floor(level + 0.5)))
    return result[0], result[1], result[2], result[3]


def matrix_or_identity(value: Any) -> tuple[float, ...]:
    """Return a 3x3 matrix of nine numbers, or the identity if ``value`` is not one."""
    if not isinstance(value, (list, tuple)) or len(value) != 9:
        return IDENTITY_MATRIX
    return tuple(_number(v, "matrix entry") for v in value)


def _dimension(metadata: Mapping[str, Any], key: str) -> int:
    value = metadata.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DngError(f"Invalid frame {key}: {value!r}")
    return int(value)


def _pixel_bytes(data: Any) -> bytes:
    if isinstance(data, array):
        if data.itemsize != 2:
            raise DngError("pixel array must hold 16-bit values")
        pixels = array(data.typecode, data)
        if sys.byteorder == "big":
            pixels.byteswap()
        return pixels.tobytes()
    try:
        return bytes(data)
    except TypeError as exc:
        raise DngError("image data must be bytes-like or a 16-bit array") from exc


def dng_image_from_metadata(
    data: Any,
    frame_metadata: Mapping[str, Any],
    container_metadata: Mapping[str, Any],
    camera_model: str = _DEFAULT_MODEL,
) -> DngImage:
    """Build a DNG image from decoded pixels and MotionCam metadata."""
    width = _dimension(frame_metadata, "width")
    height = _dimension(frame_metadata, "height")
    if width <= 0 or height <= 0:
        raise DngError("Invalid frame dimensions (width or height is zero).")

    pixels = _pixel_bytes(data)
    needed = width * height * 2
    if len(pixels) < needed:
        raise DngError(
            f"Insufficient image data for given dimensions. "
            f"Expected bytes: {needed}, Got: {len(pixels)}"
        )

    neutral = frame_metadata.get("asShotNeutral", [1.0, 1.0, 1.0])
    if isinstance(neutral, (str, bytes)) or not isinstance(neutral, Iterable):
        raise DngError(f"Invalid asShotNeutral: {neutral!r}")
    as_shot_neutral = tuple(_number(v, "asShotNeutral") for v in neutral)

    black_level = normalize_black_level(container_metadata.get("blackLevel", [0.0] * 4))
    white_level = _number(container_metadata.get("whiteLevel", 65535.0), "whiteLevel")

    arrangement = container_metadata.get(
        "sensorArrangement", container_metadata.get("sensorArrangment", "BGGR")
    )

    def pick(primary: str, fallback: str) -> tuple[float, ...]:
        value = container_metadata.get(primary, container_metadata.get(fallback, _IDENTITY))
        return matrix_or_identity(value)

    return DngImage(
        width=width,
        height=height,
        data=pixels,
        cfa_pattern=cfa_pattern(arrangement),
        black_level=black_level,
        white_level=white_level,
        color_matrix1=pick("ColorMatrix", "colorMatrix1"),
        color_matrix2=pick("ColorMatrix2", "colorMatrix2"),
        forward_matrix1=pick("ForwardMatrix1", "forwardMatrix1"),
        forward_matrix2=pick("ForwardMatrix2", "forwardMatrix2"),
        as_shot_neutral=as_shot_neutral,
        unique_camera_model=camera_model,
    )


def write_dng(
    path: Union[str, "os.PathLike[str]"],
    data: Any,
    frame_metadata: Mapping[str, Any],
    container_metadata: Mapping[str, Any],
) -> Path:
    """Write a frame as a DNG file and return its path."""
    image = dng_image_from_metadata(data, frame_metadata, container_metadata)
    return image.write(path)