"""Writing single-image, uncompressed CFA DNG files.

The writer produces a little-endian TIFF with one IFD that holds one strip
of 16-bit Bayer data and the DNG tags needed to describe the mosaic, its
black and white levels and its colour calibration.
"""

from __future__ import annotations

import math
import os
import struct
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Union

IDENTITY_MATRIX = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0)

_BYTE = 1
_ASCII = 2
_SHORT = 3
_LONG = 4
_RATIONAL = 5
_SRATIONAL = 10

_NEW_SUBFILE_TYPE = 254
_IMAGE_WIDTH = 256
_IMAGE_LENGTH = 257
_BITS_PER_SAMPLE = 258
_COMPRESSION = 259
_PHOTOMETRIC = 262
_STRIP_OFFSETS = 273
_SAMPLES_PER_PIXEL = 277
_ROWS_PER_STRIP = 278
_STRIP_BYTE_COUNTS = 279
_PLANAR_CONFIG = 284
_CFA_REPEAT_PATTERN_DIM = 33421
_CFA_PATTERN = 33422
_DNG_VERSION = 50706
_DNG_BACKWARD_VERSION = 50707
_UNIQUE_CAMERA_MODEL = 50708
_CFA_LAYOUT = 50711
_BLACK_LEVEL_REPEAT_DIM = 50713
_BLACK_LEVEL = 50714
_WHITE_LEVEL = 50717
_COLOR_MATRIX1 = 50721
_COLOR_MATRIX2 = 50722
_AS_SHOT_NEUTRAL = 50728
_CALIBRATION_ILLUMINANT1 = 50778
_CALIBRATION_ILLUMINANT2 = 50779
_ACTIVE_AREA = 50829
_FORWARD_MATRIX1 = 50964
_FORWARD_MATRIX2 = 50965

_COMPRESSION_NONE = 1
_PHOTOMETRIC_CFA = 32803
_PLANARCONFIG_CONTIG = 1
_BITS = 16

_INT32_MAX = 2**31 - 1
_UINT32_MAX = 2**32 - 1

_Entry = tuple[int, int, int, bytes]


class DngError(ValueError):
    """Raised when a DNG image cannot be built or written."""


def _floats(values: object, length: int | None, what: str) -> tuple[float, ...]:
    try:
        items = tuple(values)  # type: ignore[call-overload]
    except TypeError as exc:
        raise DngError(f"{what} must be a sequence of numbers") from exc
    if length is not None and len(items) != length:
        raise DngError(f"{what} needs {length} values, got {len(items)}")
    result = []
    for item in items:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise DngError(f"{what} holds a non-numeric value: {item!r}")
        result.append(float(item))
    return tuple(result)


def _ints(values: object, length: int, low: int, high: int, what: str) -> tuple[int, ...]:
    try:
        items = tuple(values)  # type: ignore[call-overload]
    except TypeError as exc:
        raise DngError(f"{what} must be a sequence of integers") from exc
    if len(items) != length:
        raise DngError(f"{what} needs {length} values, got {len(items)}")
    for item in items:
        if isinstance(item, bool) or not isinstance(item, int) or not low <= item <= high:
            raise DngError(f"{what} value out of range {low}..{high}: {item!r}")
    return items


def _rational(value: float, signed: bool) -> tuple[int, int]:
    if not math.isfinite(value):
        raise DngError(f"cannot store {value} as a rational")
    if not signed and value < 0:
        raise DngError(f"cannot store negative {value} as an unsigned rational")
    limit = _INT32_MAX if signed else _UINT32_MAX
    denominator_limit = max(1, min(2**30, int(limit / max(abs(value), 1.0))))
    fraction = Fraction(value).limit_denominator(denominator_limit)
    low = -_INT32_MAX - 1 if signed else 0
    if not low <= fraction.numerator <= limit:
        raise DngError(f"{value} is too large for a rational")
    return fraction.numerator, fraction.denominator


def _rationals(values: tuple[float, ...], signed: bool) -> bytes:
    code = "i" if signed else "I"
    pairs = [part for value in values for part in _rational(value, signed)]
    return struct.pack(f"<{len(pairs)}{code}", *pairs)


def _short(tag: int, *values: int) -> _Entry:
    return tag, _SHORT, len(values), struct.pack(f"<{len(values)}H", *values)


def _long(tag: int, *values: int) -> _Entry:
    return tag, _LONG, len(values), struct.pack(f"<{len(values)}I", *values)


def _byte(tag: int, values: tuple[int, ...]) -> _Entry:
    return tag, _BYTE, len(values), bytes(values)


@dataclass(frozen=True)
class DngImage:
    """A 16-bit single-plane CFA image and the DNG tags that describe it."""

    width: int
    height: int
    data: bytes
    cfa_pattern: tuple[int, ...] = (0, 1, 1, 2)
    black_level: tuple[int, ...] = (0, 0, 0, 0)
    white_level: float = 65535.0
    color_matrix1: tuple[float, ...] = IDENTITY_MATRIX
    color_matrix2: tuple[float, ...] = IDENTITY_MATRIX
    forward_matrix1: tuple[float, ...] = IDENTITY_MATRIX
    forward_matrix2: tuple[float, ...] = IDENTITY_MATRIX
    as_shot_neutral: tuple[float, ...] = (1.0, 1.0, 1.0)
    calibration_illuminant1: int = 21
    calibration_illuminant2: int = 17
    unique_camera_model: str = "MotionCam"
    dng_version: tuple[int, ...] = (1, 4, 0, 0)
    dng_backward_version: tuple[int, ...] = (1, 1, 0, 0)

    def __post_init__(self) -> None:
        def put(name: str, value: object) -> None:
            object.__setattr__(self, name, value)

        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 < value <= _UINT32_MAX:
                raise DngError(f"invalid image {name}: {value!r}")

        try:
            data = bytes(self.data)
        except TypeError as exc:
            raise DngError("image data must be bytes-like") from exc
        needed = self.width * self.height * (_BITS // 8)
        if len(data) < needed:
            raise DngError(
                f"Insufficient image data for given dimensions. "
                f"Expected bytes: {needed}, Got: {len(data)}"
            )
        put("data", data)

        put("cfa_pattern", _ints(self.cfa_pattern, 4, 0, 255, "CFA pattern"))
        put("black_level", _ints(self.black_level, 4, 0, 0xFFFF, "black level"))
        put("dng_version", _ints(self.dng_version, 4, 0, 255, "DNG version"))
        put(
            "dng_backward_version",
            _ints(self.dng_backward_version, 4, 0, 255, "DNG backward version"),
        )
        for name in ("calibration_illuminant1", "calibration_illuminant2"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFFFF:
                raise DngError(f"invalid {name}: {value!r}")

        (white,) = _floats((self.white_level,), 1, "white level")
        if not 0 <= white <= _UINT32_MAX:
            raise DngError(f"white level out of range: {white}")
        put("white_level", white)

        for name in ("color_matrix1", "color_matrix2", "forward_matrix1", "forward_matrix2"):
            put(name, _floats(getattr(self, name), 9, name.replace("_", " ")))

        neutral = _floats(self.as_shot_neutral, None, "as shot neutral")
        if not neutral:
            raise DngError("as shot neutral needs at least one value")
        put("as_shot_neutral", neutral)

        if not isinstance(self.unique_camera_model, str):
            raise DngError("unique camera model must be a string")
        try:
            self.unique_camera_model.encode("ascii")
        except UnicodeEncodeError as exc:
            raise DngError("unique camera model must be ASCII") from exc

    def _entries(self) -> list[_Entry]:
        model = self.unique_camera_model.encode("ascii") + b"\0"
        return [
            _long(_NEW_SUBFILE_TYPE, 0),
            _long(_IMAGE_WIDTH, self.width),
            _long(_IMAGE_LENGTH, self.height),
            _short(_BITS_PER_SAMPLE, _BITS),
            _short(_COMPRESSION, _COMPRESSION_NONE),
            _short(_PHOTOMETRIC, _PHOTOMETRIC_CFA),
            _short(_SAMPLES_PER_PIXEL, 1),
            _long(_ROWS_PER_STRIP, self.height),
            _long(_STRIP_BYTE_COUNTS, len(self.data)),
            _short(_PLANAR_CONFIG, _PLANARCONFIG_CONTIG),
            _short(_CFA_REPEAT_PATTERN_DIM, 2, 2),
            _byte(_CFA_PATTERN, self.cfa_pattern),
            _byte(_DNG_VERSION, self.dng_version),
            _byte(_DNG_BACKWARD_VERSION, self.dng_backward_version),
            (_UNIQUE_CAMERA_MODEL, _ASCII, len(model), model),
            _short(_CFA_LAYOUT, 1),
            _short(_BLACK_LEVEL_REPEAT_DIM, 2, 2),
            _short(_BLACK_LEVEL, *self.black_level),
            _long(_WHITE_LEVEL, int(self.white_level)),
            (_COLOR_MATRIX1, _SRATIONAL, 9, _rationals(self.color_matrix1, True)),
            (_COLOR_MATRIX2, _SRATIONAL, 9, _rationals(self.color_matrix2, True)),
            (
                _AS_SHOT_NEUTRAL,
                _RATIONAL,
                len(self.as_shot_neutral),
                _rationals(self.as_shot_neutral, False),
            ),
            _short(_CALIBRATION_ILLUMINANT1, self.calibration_illuminant1),
            _short(_CALIBRATION_ILLUMINANT2, self.calibration_illuminant2),
            _long(_ACTIVE_AREA, 0, 0, self.height, self.width),
            (_FORWARD_MATRIX1, _SRATIONAL, 9, _rationals(self.forward_matrix1, True)),
            (_FORWARD_MATRIX2, _SRATIONAL, 9, _rationals(self.forward_matrix2, True)),
            _long(_STRIP_OFFSETS, 0),
        ]

    def to_bytes(self) -> bytes:
        """Return the complete DNG file contents."""
        entries = sorted(self._entries(), key=lambda entry: entry[0])
        ifd_offset = 8
        data_start = ifd_offset + 2 + 12 * len(entries) + 4

        extra = bytearray()
        positions: dict[int, int] = {}
        for tag, _, _, payload in entries:
            if len(payload) > 4:
                positions[tag] = data_start + len(extra)
                extra += payload
                if len(extra) % 2:
                    extra += b"\0"
        image_offset = data_start + len(extra)
        if image_offset + len(self.data) > _UINT32_MAX:
            raise DngError("image too large for a TIFF file")

        ifd = bytearray(struct.pack("<H", len(entries)))
        for tag, type_code, count, payload in entries:
            if tag == _STRIP_OFFSETS:
                payload = struct.pack("<I", image_offset)
            if tag in positions:
                field = struct.pack("<I", positions[tag])
            else:
                field = payload.ljust(4, b"\0")
            ifd += struct.pack("<HHI", tag, type_code, count) + field
        ifd += struct.pack("<I", 0)

        header = b"II*\x00" + struct.pack("<I", ifd_offset)
        return header + bytes(ifd) + bytes(extra) + self.data

    def write(self, path: Union[str, "os.PathLike[str]"]) -> Path:
        """Write the DNG file to ``path`` and return the path."""
        target = Path(path)
        contents = self.to_bytes()
        try:
            target.write_bytes(contents)
        except OSError as exc:
            raise DngError(f"cannot write {target}: {exc}") from exc
        return target