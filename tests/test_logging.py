"""Tests for pagegen logging setup."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from pagegen.logging import configure_logging, get_logger


def test_console_logs_go_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()

    get_logger("tests").info("scanning")
    get_logger("tests").debug("hidden")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "[pagegen] INFO scanning\n"


def test_file_log_uses_utc_timestamps(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "pagegen.log"
    logger = configure_logging(verbose=True, log_file=log_file)

    get_logger("tests").debug("rendered home.html")
    for handler in logger.handlers:
        handler.flush()

    line = log_file.read_text(encoding="utf-8").strip()
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z DEBUG pagegen\.tests: rendered home\.html", line)


def test_reconfiguring_replaces_handlers(tmp_path: Path) -> None:
    configure_logging(log_file=tmp_path / "first.log")
    logger = configure_logging()

    assert len(logger.handlers) == 1
