"""Building and navigating the list of containers in a folder."""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path
from typing import Optional, Union

MCRAW_SUFFIX = ".mcraw"

_PathLike = Union[str, "os.PathLike[str]"]


def scan_playlist(folder: _PathLike) -> list[Path]:
    """Return the ``.mcraw`` files directly inside ``folder``, sorted by path."""
    directory = Path(folder)
    if not directory.is_dir():
        raise NotADirectoryError(f"not a folder: {directory}")
    return sorted(
        (entry for entry in directory.iterdir() if entry.is_file() and entry.suffix == MCRAW_SUFFIX),
        key=str,
    )


def anchor_index(files: Sequence[_PathLike], anchor: _PathLike) -> int:
    """Return the position of ``anchor`` in ``files``, or 0 when it is not listed.

    Paths are compared in absolute form.  An empty list raises ``ValueError``.
    """
    target = os.path.abspath(os.fspath(anchor))
    for index, candidate in enumerate(files):
        if os.path.abspath(os.fspath(candidate)) == target:
            return index
    if not files:
        raise ValueError("playlist is empty")
    return 0


def index_after_removal(count: int, index: int) -> Optional[int]:
    """Return the index to show after a file was removed from the playlist.

    ``count`` is the number of files left and ``index`` the position of the
    removed file.  ``None`` means nothing is left to show.
    """
    if count < 0:
        raise ValueError(f"invalid playlist size: {count}")
    if count == 0:
        return None
    if index < 0:
        return 0
    return min(index, count - 1)