"""Moving files aside into a per-folder trash directory instead of deleting them."""

from __future__ import annotations

import os
from itertools import count
from pathlib import Path
from typing import Union

DELETED_FOLDER_NAME = "_deleted_mcraw_files_"

_PathLike = Union[str, "os.PathLike[str]"]


def deleted_folder(path: _PathLike) -> Path:
    """Return the trash folder for a file: a sibling folder of ``path``."""
    return Path(path).parent / DELETED_FOLDER_NAME


def unique_destination(folder: _PathLike, name: str) -> Path:
    """Return ``folder / name``, or ``stem_(n)ext`` with the first free ``n``."""
    folder = Path(folder)
    target = folder / name
    if not target.exists():
        return target
    base = Path(name)
    for n in count(1):
        candidate = folder / f"{base.stem}_({n}){base.suffix}"
        if not candidate.exists():
            return candidate
    raise AssertionError("unreachable")


def soft_delete(path: _PathLike) -> Path:
    """Move ``path`` into its trash folder and return the new location."""
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"no such file: {source}")
    folder = deleted_folder(source)
    folder.mkdir(exist_ok=True)
    destination = unique_destination(folder, source.name)
    source.rename(destination)
    return destination