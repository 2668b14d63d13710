"""Filesystem helpers for crash-safe writes."""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Write ``text`` to ``path`` through a temp file in the same directory and ``os.replace``.

    Readers observe either the previous content or the new content, never a partial file.
    The parent directory must already exist.
    """
    target = Path(path)
    parent = target.parent
    if not parent.is_dir():
        raise NotADirectoryError(f"{parent} is not a directory")

    fd, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(parent))
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, target)
    except BaseException:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


def is_within(child: Path, parent: Path) -> bool:
    """Return True when resolved ``child`` lives under resolved ``parent``."""
    try:
        Path(child).resolve().relative_to(Path(parent).resolve())
    except ValueError:
        return False
    return True


__all__ = ["atomic_write_text", "is_within"]
