from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from pagegen.config import PageGenConfig
from tests._fixtures.site_builder import SiteBuilder


@pytest.fixture
def site_builder(tmp_path: Path) -> SiteBuilder:
    """Provide a reusable site builder rooted at the pytest tmp_path."""
    return SiteBuilder(tmp_path)


@pytest.fixture
def default_config(tmp_path: Path) -> PageGenConfig:
    """Default configuration anchored at a fresh project root."""
    return PageGenConfig(root=tmp_path)


@pytest.fixture(autouse=True)
def _reset_pagegen_logger() -> Iterator[None]:
    """CLI tests configure logging; restore propagation so caplog keeps working."""
    yield
    logger = logging.getLogger("pagegen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
