"""Tests for atomic writes and path helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from pagegen import fs
from pagegen.fs import atomic_write_text, is_within


def test_atomic_write_replaces_content_without_leftovers(tmp_path: Path) -> None:
    target = tmp_path / "out.html"
    target.write_text("old", encoding="utf-8")

    atomic_write_text(target, "new")

    assert target.read_text(encoding="utf-8") == "new"
    assert [path.name for path in tmp_path.iterdir()] == ["out.html"]


def test_atomic_write_failure_keeps_previous_content(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "out.html"
    target.write_text("old", encoding="utf-8")

    def _boom(src: str, dst: str) -> None:
        raise OSError("replace failed")

    monkeypatch.setattr(fs.os, "replace", _boom)
    with pytest.raises(OSError):
        atomic_write_text(target, "new")

    assert target.read_text(encoding="utf-8") == "old"
    assert [path.name for path in tmp_path.iterdir()] == ["out.html"]


def test_atomic_write_requires_parent_directory(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        atomic_write_text(tmp_path / "missing" / "out.html", "x")


def test_is_within(tmp_path: Path) -> None:
    assert is_within(tmp_path / "a" / "b.html", tmp_path)
    assert not is_within(tmp_path / ".." / "elsewhere.html", tmp_path)
