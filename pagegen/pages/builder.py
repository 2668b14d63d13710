"""Derive a complete PageConfig from extracted annotations and positional defaults."""

from __future__ import annotations

import math
import re
from pathlib import PurePosixPath
from typing import List, Mapping, Optional

from ..config import PageGenConfig
from ..constants import ENTITY_TYPES, IMPORTANCE_LEVELS, ROUND_ROBIN_TYPES, SOURCE_SUFFIX
from ..extractor import MetadataExtractor
from ..logging import get_logger
from ..models import PageConfig, PageMetadata
from ..stores.hash_ledger import fingerprint

_LEVEL_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_COLOR_PATTERN = re.compile(r"^#(?:[0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")
_TITLE_SPLIT = re.compile(r"[-_\s]+")

# Annotated documents must name these; plain documents are defaulted silently.
REQUIRED_ANNOTATIONS: tuple[str, ...] = ("level", "title")

logger = get_logger("pages.builder")


def page_name(filename: str) -> str:
    """Map a source path relative to the source directory onto a flat, unique page name."""
    path = PurePosixPath(filename.replace("\\", "/"))
    stem = path.name[: -len(SOURCE_SUFFIX)] if path.name.lower().endswith(SOURCE_SUFFIX) else path.name
    parts = [*path.parent.parts, stem] if str(path.parent) != "." else [stem]
    return "-".join(part for part in parts if part)


def format_title(name: str) -> str:
    words = [word for word in _TITLE_SPLIT.split(name) if word]
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def infer_type(index: int) -> str:
    """Deterministic entity type for a document without a usable explicit type."""
    if index <= 0:
        return ENTITY_TYPES[0]
    if index < 3:
        return "planet"
    if index < 8:
        return "moon"
    return ROUND_ROBIN_TYPES[index % len(ROUND_ROBIN_TYPES)]


def default_importance(index: int) -> str:
    if index <= 0:
        return "high"
    if index < 5:
        return "medium"
    return "low"


def split_tags(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


class PageConfigBuilder:
    """Merges document annotations with per-type lookup tables into a PageConfig."""

    def __init__(self, config: PageGenConfig, extractor: MetadataExtractor | None = None) -> None:
        self.config = config
        self.extractor = extractor or MetadataExtractor(title_suffix=config.site.name)

    def build(
        self,
        filename: str,
        content: str,
        index: int,
        total_count: int,
        *,
        created: str | None = None,
        modified: str | None = None,
    ) -> PageConfig:
        """Return a PageConfig for one document. Problems are recorded, never raised."""
        extraction = self.extractor.extract(content)
        for diagnostic in extraction.diagnostics:
            logger.debug("%s: %s", filename, diagnostic)
        meta = extraction.metadata
        errors: List[str] = []

        name = page_name(filename)
        entity_type = self._resolve_type(meta.get("type"), index, errors)
        table = self.config.entity(entity_type)

        title = _clean(meta.get("title")) or _clean(extraction.title) or format_title(name)
        level = _clean(meta.get("level")) or f"level{index}"
        palette = table.palette or ["#6C5CE7"]
        color = _clean(meta.get("color")) or palette[index % len(palette)]
        description = _clean(meta.get("description")) or f"Section {title} of {self.config.site.name}"
        icon = _clean(meta.get("icon")) or table.icon

        orbit_radius = self._number(
            meta, "orbit-radius", table.orbit_radius + index * self.config.orbit_step, errors
        )
        default_angle = round((index * 360.0 / total_count) % 360, 2) if total_count > 0 else 0.0
        orbit_angle = self._number(meta, "orbit-angle", default_angle, errors)
        size_modifier = self._number(meta, "size-modifier", table.size, errors)

        importance = self._choice(
            meta.get("importance"), IMPORTANCE_LEVELS, default_importance(index), "importance", errors
        )
        unlocked = self._choice(meta.get("unlocked"), ("true", "false"), "true", "unlocked flag", errors)

        page = PageConfig(
            name=name,
            title=title,
            level=level,
            type=entity_type,
            description=description,
            color=color,
            orbit_radius=orbit_radius,
            orbit_angle=orbit_angle,
            importance=importance,
            icon=icon,
            size_modifier=size_modifier,
            unlocked=unlocked,
            parent=_clean(meta.get("parent")),
            metadata=PageMetadata(
                filename=filename,
                tags=split_tags(meta.get("tags")),
                created=created,
                modified=modified,
                content_hash=fingerprint(content),
                preview=_clean(meta.get("preview")) or f"assets/previews/{name}.png",
            ),
        )

        if meta:
            errors.extend(self._check_required_annotations(meta, extraction.title))
        errors.extend(validate_fields(page))
        page.validation_errors = errors
        if errors:
            logger.debug("%s: %d validation error(s)", filename, len(errors))
        return page

    @staticmethod
    def _resolve_type(raw: Optional[str], index: int, errors: List[str]) -> str:
        explicit = _clean(raw).lower()
        if explicit in ENTITY_TYPES:
            return explicit
        inferred = infer_type(index)
        if explicit:
            errors.append(f"unknown entity type {explicit!r}; inferred {inferred!r}")
        return inferred

    @staticmethod
    def _number(meta: Mapping[str, str], key: str, default: float, errors: List[str]) -> float:
        raw = _clean(meta.get(key))
        if not raw:
            return float(default)
        try:
            value = float(raw)
        except ValueError:
            value = math.nan
        if math.isnan(value) or math.isinf(value):
            errors.append(f"invalid {key.replace('-', ' ')} {raw!r}; using {float(default)}")
            return float(default)
        return value

    @staticmethod
    def _choice(
        raw: Optional[str],
        allowed: tuple[str, ...],
        default: str,
        label: str,
        errors: List[str],
    ) -> str:
        value = _clean(raw).lower()
        if not value:
            return default
        if value not in allowed:
            errors.append(f"invalid {label} {raw!r}; expected one of {', '.join(allowed)}")
            return default
        return value

    @staticmethod
    def _check_required_annotations(meta: Mapping[str, str], fallback_title: Optional[str]) -> List[str]:
        missing = []
        for key in REQUIRED_ANNOTATIONS:
            if _clean(meta.get(key)):
                continue
            if key == "title" and _clean(fallback_title):
                continue
            missing.append(key)
        if not missing:
            return []
        return [f"missing required annotation(s): {', '.join(missing)}"]


def validate_fields(page: PageConfig) -> List[str]:
    """Run every field check independently and return all failures."""
    errors: List[str] = []
    empty = [
        label
        for label, value in (("name", page.name), ("title", page.title), ("level", page.level), ("type", page.type))
        if not value
    ]
    if empty:
        errors.append(f"required field(s) empty: {', '.join(empty)}")
    if page.level and not _LEVEL_PATTERN.match(page.level):
        errors.append(f"invalid level format {page.level!r}; use letters, digits, '-' or '_'")
    if not _COLOR_PATTERN.match(page.color):
        errors.append(f"invalid color {page.color!r}; expected #rgb or #rrggbb")
    if page.orbit_radius <= 0:
        errors.append(f"orbit radius must be greater than 0, got {page.orbit_radius}")
    if not 0 <= page.orbit_angle < 360:
        errors.append(f"orbit angle must be within [0, 360), got {page.orbit_angle}")
    if page.size_modifier <= 0:
        errors.append(f"size modifier must be greater than 0, got {page.size_modifier}")
    return errors


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


__all__ = [
    "PageConfigBuilder",
    "default_importance",
    "format_title",
    "infer_type",
    "page_name",
    "split_tags",
    "validate_fields",
]
