"""Fail-safe example page for an empty or missing source directory."""

from __future__ import annotations

import html
from pathlib import Path

from .config import PageGenConfig
from .fs import atomic_write_text
from .logging import get_logger

EXAMPLE_FILENAME = "example.html"

logger = get_logger("failsafe")


def build_example_page(site_name: str, *, lang: str = "en") -> str:
    """Return a minimal annotated source document authors can copy from."""
    site = html.escape(site_name)
    return f"""<!DOCTYPE html>
<html lang="{html.escape(lang)}">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Example page | {site}</title>
    <meta name="galaxy:level" content="example">
    <meta name="galaxy:title" content="Example page">
    <meta name="galaxy:tags" content="example">
</head>
<body>
    <h1>Example page</h1>
    <p>Add your own HTML files to the source directory.</p>
</body>
</html>
"""


def seed_example_page(config: PageGenConfig) -> Path | None:
    """Write the example page into the source directory; returns None when it cannot."""
    target = config.source_dir / EXAMPLE_FILENAME
    if target.exists():
        return None
    try:
        config.source_dir.mkdir(parents=True, exist_ok=True)
        atomic_write_text(target, build_example_page(config.site.name, lang=config.site.lang))
    except OSError as exc:
        logger.warning("Could not create example page %s: %s", target, exc)
        return None
    logger.info("Created example page at %s", target)
    return target


__all__ = ["EXAMPLE_FILENAME", "build_example_page", "seed_example_page"]
