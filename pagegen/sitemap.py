"""Aggregate manifest (sitemap.json) construction."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .config import PageGenConfig
from .constants import ENTITY_TYPES, IMPORTANCE_LEVELS, MANIFEST_VERSION
from .models import Manifest, PageConfig, PageSummary, Statistics
from .pages.hierarchy import compute_depths


class SiteMapBuilder:
    """Summarizes a resolved batch of page configs. Inputs are never mutated."""

    def __init__(self, config: PageGenConfig) -> None:
        self.config = config

    def build(self, configs: Sequence[PageConfig]) -> Manifest:
        depths = compute_depths(configs)
        pages = [self._summary(page, depths.get(page.level, 0)) for page in configs]
        roots: List[str] = []
        seen = set()
        for page in configs:
            if page.level in seen:
                continue
            seen.add(page.level)
            if not page.parent:
                roots.append(page.level)
        return Manifest(
            version=MANIFEST_VERSION,
            generated_at=_newest_timestamp(configs),
            site={
                "name": self.config.site.name,
                "baseUrl": self.config.site.base_url,
                "lang": self.config.site.lang,
            },
            pages=pages,
            roots=roots,
            statistics=compute_statistics(configs),
        )

    def _summary(self, page: PageConfig, depth: int) -> PageSummary:
        return PageSummary(
            name=page.name,
            level=page.level,
            title=page.title,
            type=page.type,
            importance=page.importance,
            url=self.page_url(page.name),
            parent=page.parent,
            children=list(page.children),
            depth=depth,
            metadata=page.metadata.to_dict(),
            validation_errors=list(page.validation_errors),
        )

    def page_url(self, name: str) -> str:
        return f"{self.config.site.base_url}/{name}.html"


def compute_statistics(configs: Sequence[PageConfig]) -> Statistics:
    by_type: Dict[str, int] = {name: 0 for name in ENTITY_TYPES}
    by_importance: Dict[str, int] = {name: 0 for name in IMPORTANCE_LEVELS}
    with_errors = 0
    for page in configs:
        by_type[page.type] = by_type.get(page.type, 0) + 1
        by_importance[page.importance] = by_importance.get(page.importance, 0) + 1
        if page.validation_errors:
            with_errors += 1
    return Statistics(
        total=len(configs),
        by_type=by_type,
        by_importance=by_importance,
        with_errors=with_errors,
    )


def _newest_timestamp(configs: Sequence[PageConfig]) -> Optional[str]:
    stamps: List[str] = [page.metadata.modified for page in configs if page.metadata.modified]
    return max(stamps) if stamps else None


__all__ = ["SiteMapBuilder", "compute_statistics"]
