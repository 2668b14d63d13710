"""Core data models shared across pagegen components."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class SourceDocument:
    """A discovered source file, addressed relative to the source directory."""

    filename: str
    path: Path
    name: str


@dataclass
class PageMetadata:
    """Bookkeeping attached to a page: tags, timestamps and provenance."""

    filename: str = ""
    tags: List[str] = field(default_factory=list)
    created: Optional[str] = None
    modified: Optional[str] = None
    content_hash: str = ""
    preview: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "tags": list(self.tags),
            "created": self.created,
            "modified": self.modified,
            "contentHash": self.content_hash,
            "preview": self.preview,
        }


@dataclass
class PageConfig:
    """Normalized, validated description of one generated output page."""

    name: str
    title: str
    level: str
    type: str
    description: str
    color: str
    orbit_radius: float
    orbit_angle: float
    importance: str
    icon: str
    size_modifier: float
    unlocked: str = "true"
    parent: str = ""
    children: List[str] = field(default_factory=list)
    metadata: PageMetadata = field(default_factory=PageMetadata)
    validation_errors: List[str] = field(default_factory=list)

    @property
    def tags(self) -> List[str]:
        return self.metadata.tags

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase mapping consumed by the presentation layer."""
        return {
            "name": self.name,
            "title": self.title,
            "level": self.level,
            "type": self.type,
            "description": self.description,
            "color": self.color,
            "orbitRadius": self.orbit_radius,
            "orbitAngle": self.orbit_angle,
            "importance": self.importance,
            "icon": self.icon,
            "sizeModifier": self.size_modifier,
            "unlocked": self.unlocked,
            "parent": self.parent,
            "children": list(self.children),
            "tags": list(self.metadata.tags),
            "metadata": self.metadata.to_dict(),
            "validationErrors": list(self.validation_errors),
        }


@dataclass
class Statistics:
    """Frequency counts over one batch of pages."""

    total: int
    by_type: Dict[str, int]
    by_importance: Dict[str, int]
    with_errors: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "byType": dict(self.by_type),
            "byImportance": dict(self.by_importance),
            "withErrors": self.with_errors,
        }


@dataclass
class PageSummary:
    """Manifest entry for a single page."""

    name: str
    level: str
    title: str
    type: str
    importance: str
    url: str
    parent: str
    children: List[str]
    depth: int
    metadata: Dict[str, Any]
    validation_errors: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "level": self.level,
            "title": self.title,
            "type": self.type,
            "importance": self.importance,
            "url": self.url,
            "parent": self.parent,
            "children": list(self.children),
            "depth": self.depth,
            "metadata": dict(self.metadata),
            "validationErrors": list(self.validation_errors),
        }


@dataclass
class Manifest:
    """Versioned aggregate description of every page in one build."""

    version: int
    generated_at: Optional[str]
    site: Dict[str, str]
    pages: List[PageSummary]
    roots: List[str]
    statistics: Statistics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generatedAt": self.generated_at,
            "site": dict(self.site),
            "pages": [page.to_dict() for page in self.pages],
            "roots": list(self.roots),
            "statistics": self.statistics.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True, ensure_ascii=False) + "\n"


__all__ = [
    "Manifest",
    "PageConfig",
    "PageMetadata",
    "PageSummary",
    "SourceDocument",
    "Statistics",
]
