"""Audio chunk handling and 16-bit PCM WAV output."""

from __future__ import annotations

import os
import sys
import wave
from array import array
from collections.abc import Iterable, Sequence


def interleave_chunks(
    chunks: Iterable[tuple[int, Sequence[int]]], num_channels: int
) -> list[list[int]]:
    """Split the interleaved samples of ``(timestamp, samples)`` chunks per channel.

    Mono and stereo are supported; for any other channel count every channel
    is left empty.  A trailing unpaired stereo sample is dropped.
    """
    if num_channels < 0:
        raise ValueError(f"invalid channel count: {num_channels}")
    channels: list[list[int]] = [[] for _ in range(num_channels)]

    if num_channels == 1:
        for _, samples in chunks:
            channels[0].extend(samples)
    elif num_channels == 2:
        left, right = channels
        for _, samples in chunks:
            samples = list(samples)
            paired = len(samples) - len(samples) % 2
            left.extend(samples[0:paired:2])
            right.extend(samples[1:paired:2])

    return channels


def write_wav(
    path: str | os.PathLike[str],
    sample_rate_hz: int,
    num_channels: int,
    chunks: Iterable[tuple[int, Sequence[int]]],
) -> int:
    """Write audio chunks to a 16-bit PCM WAV file; return the frame count."""
    if num_channels < 1:
        raise ValueError(f"invalid channel count: {num_channels}")
    if sample_rate_hz <= 0:
        raise ValueError(f"invalid sample rate: {sample_rate_hz}")

    channels = interleave_chunks(chunks, num_channels)
    frames = list(zip(*channels))
    samples = array("h", (sample for frame in frames for sample in frame))
    if sys.byteorder == "big":
        samples.byteswap()

    with wave.open(os.fspath(path), "wb") as out:
        out.setnchannels(num_channels)
        out.setsampwidth(2)
        out.setframerate(sample_rate_hz)
        out.writeframes(samples.tobytes())

    return len(frames)