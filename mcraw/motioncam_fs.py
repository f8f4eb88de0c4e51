"""Handing containers to the external motioncam-fs program."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Optional, Union

EXECUTABLE_NAME = "motioncam-fs.exe" if os.name == "nt" else "motioncam-fs"

_PathLike = Union[str, "os.PathLike[str]"]


def find_motioncam_fs(executable_dir: Optional[_PathLike] = None) -> Path:
    """Locate motioncam-fs next to the running program or, off Windows, on PATH."""
    if executable_dir is None:
        executable_dir = Path(sys.argv[0] or ".").resolve().parent
    beside = Path(executable_dir) / EXECUTABLE_NAME
    if beside.exists():
        return beside
    if os.name != "nt":
        found = shutil.which(EXECUTABLE_NAME)
        if found:
            return Path(found)
    raise FileNotFoundError(
        f"motioncam-fs not found at expected location or in system PATH. Tried: {beside}"
    )


def build_command(executable: _PathLike, path: _PathLike) -> list[str]:
    """Return the argument list that hands ``path`` to motioncam-fs."""
    return [os.fspath(executable), "-f", os.fspath(path)]


def _check_executable(executable: _PathLike) -> None:
    name = os.fspath(executable)
    if Path(name).exists():
        return
    if os.sep not in name and (os.altsep is None or os.altsep not in name) and shutil.which(name):
        return
    raise FileNotFoundError(f"motioncam-fs not found: {name}")


def _launch(command: list[str]) -> None:
    options: dict[str, object] = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
    }
    if os.name == "nt":
        options["creationflags"] = (
            subprocess.CREATE_NO_WINDOW | subprocess.CREATE_NEW_PROCESS_GROUP  # type: ignore[attr-defined]
        )
    else:
        options["start_new_session"] = True
    subprocess.Popen(command, **options)  # noqa: S603


def send_to_motioncam_fs(
    paths: Iterable[_PathLike], executable: Optional[_PathLike] = None
) -> tuple[int, int]:
    """Start motioncam-fs in the background for every path.

    Returns the number of programs started and the number that failed to start.
    """
    if executable is None:
        executable = find_motioncam_fs()
    else:
        _check_executable(executable)

    started = failed = 0
    for path in paths:
        try:
            _launch(build_command(executable, path))
        except (OSError, ValueError):
            failed += 1
        else:
            started += 1
    return started, failed