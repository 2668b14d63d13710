"""Source document discovery under the configured source directory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .config import PageGenConfig
from .constants import SOURCE_SUFFIX
from .logging import get_logger
from .models import SourceDocument
from .pages.builder import page_name

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

logger = get_logger("scanner")


@dataclass
class IgnoreRule:
    """Represents one ``exclude`` pattern from .pagegen.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negate = pattern.startswith("!")
    if negate:
        pattern = pattern[1:]

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def build_ignore_rules(patterns: Sequence[str]) -> List[IgnoreRule]:
    rules: List[IgnoreRule] = []
    for pattern in patterns:
        rule = build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _iter_files(
    root: Path,
    rules: Sequence[IgnoreRule],
    max_depth: int,
    skip_dirs: Sequence[Path] = (),
) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""
        depth = rel_dir.count("/") + 1 if rel_dir else 0

        if depth >= max_depth:
            dirnames[:] = []
        else:
            filtered_dirs = []
            for name in dirnames:
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if name.startswith(".") or should_ignore(rel_path, True, rules):
                    continue
                if current_dir / name in skip_dirs:
                    continue
                filtered_dirs.append(name)
            dirnames[:] = filtered_dirs

        for filename in filenames:
            if filename in _EXCLUDED_FILES or filename.startswith("."):
                continue
            if not filename.lower().endswith(SOURCE_SUFFIX):
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if should_ignore(rel_path, False, rules):
                continue
            yield current_dir / filename


class SourceScanner:
    """Walks the source directory and returns documents in a stable order."""

    def discover(self, config: PageGenConfig) -> List[SourceDocument]:
        """Return every source document, sorted by relative path.

        A missing source directory is an empty batch. A source path that exists
        but is not a directory raises ``NotADirectoryError``.
        """
        source_dir = config.source_dir
        if not source_dir.exists():
            logger.warning("Source directory %s not found", source_dir)
            return []
        if not source_dir.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {source_dir}")

        rules = build_ignore_rules(config.exclude)
        documents: List[SourceDocument] = []
        # Generated output must never be rediscovered as source.
        skip_dirs = [config.output_dir, config.backup_dir, config.ledger_path.parent]
        for path in _iter_files(source_dir, rules, config.max_depth, skip_dirs):
            filename = path.relative_to(source_dir).as_posix()
            documents.append(SourceDocument(filename=filename, path=path, name=page_name(filename)))
        documents.sort(key=lambda document: document.filename)
        logger.debug("Discovered %d source document(s) in %s", len(documents), source_dir)
        return documents


__all__ = [
    "IgnoreRule",
    "SourceScanner",
    "build_ignore_rule",
    "build_ignore_rules",
    "should_ignore",
]
