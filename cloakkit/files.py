"""Whole-file binary reading and writing."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


def read_file(path: PathLike) -> bytes:
    """Return the file's contents, or empty bytes if it cannot be opened."""
    try:
        return Path(path).read_bytes()
    except OSError:
        return b""


def write_file(path: PathLike, data: bytes) -> None:
    """Write ``data`` to ``path``, replacing any previous contents."""
    Path(path).write_bytes(bytes(data))