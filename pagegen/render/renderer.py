"""Jinja2 rendering of page configs into output documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

from ..config import PageGenConfig
from ..logging import get_logger
from ..models import PageConfig

_DEFAULT_TEMPLATES = Path(__file__).with_name("templates")

FULL_TEMPLATE = "page.html.j2"
GATEWAY_TEMPLATE = "gateway.html.j2"

logger = get_logger("render")


class RenderError(RuntimeError):
    """Raised when a page cannot be rendered."""


class TemplateRenderer:
    """Produces the final HTML for a page, annotated so it can be re-read."""

    def __init__(self, config: PageGenConfig, templates_dir: Path | None = None) -> None:
        self.config = config
        self.templates_dir = templates_dir or config.render.templates_dir
        self._env = self._create_env(self.templates_dir)

    def template_for(self, *, source_has_annotations: bool = True) -> str:
        mode = self.config.render.mode
        if mode == "gateway":
            return GATEWAY_TEMPLATE
        if mode == "auto" and not source_has_annotations:
            return GATEWAY_TEMPLATE
        return FULL_TEMPLATE

    def render(
        self,
        page: PageConfig,
        *,
        body: str = "",
        source_has_annotations: bool = True,
        related: Optional[Mapping[str, PageConfig]] = None,
    ) -> str:
        """Render ``page``; ``related`` maps level ids to configs for parent/child links."""
        template_name = self.template_for(source_has_annotations=source_has_annotations)
        context = self._context(page, body=body, related=related or {})
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except TemplateError as exc:
            raise RenderError(f"Failed to render {page.name} with {template_name}: {exc}") from exc

    def _context(
        self,
        page: PageConfig,
        *,
        body: str,
        related: Mapping[str, PageConfig],
    ) -> Dict[str, Any]:
        site = self.config.site
        parent = related.get(page.parent) if page.parent else None
        children: List[Dict[str, str]] = []
        for level in page.children:
            child = related.get(level)
            if child is not None:
                children.append({"title": child.title, "url": self.page_url(child.name)})
        return {
            "page": page,
            "page_dict": page.to_dict(),
            "annotations": annotation_pairs(page),
            "body": body,
            "site": site,
            "document_title": f"{page.title} | {site.name}" if site.name else page.title,
            "canonical_url": self.page_url(page.name) if site.base_url else "",
            "parent_link": (
                {"title": parent.title, "url": self.page_url(parent.name)} if parent is not None else None
            ),
            "children_links": children,
            "render": self.config.render,
            "analytics": self.config.analytics,
        }

    def page_url(self, name: str) -> str:
        base = self.config.site.base_url
        return f"{base}/{name}.html" if base else f"{name}.html"

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(_DEFAULT_TEMPLATES))
        seen: set[str] = set()
        ordered: list[str] = []
        for directory in directories:
            if directory not in seen:
                ordered.append(directory)
                seen.add(directory)
        return Environment(
            loader=FileSystemLoader(ordered),
            autoescape=select_autoescape(enabled_extensions=("html", "j2"), default_for_string=True),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


def annotation_pairs(page: PageConfig) -> List[tuple[str, str]]:
    """Annotation key/value pairs in emission order; values are unescaped strings."""
    return [
        ("level", page.level),
        ("type", page.type),
        ("title", page.title),
        ("description", page.description),
        ("color", page.color),
        ("icon", page.icon),
        ("importance", page.importance),
        ("parent", page.parent),
        ("orbit-radius", repr(page.orbit_radius)),
        ("orbit-angle", repr(page.orbit_angle)),
        ("size-modifier", repr(page.size_modifier)),
        ("unlocked", page.unlocked),
        ("tags", ",".join(page.metadata.tags)),
        ("preview", page.metadata.preview),
    ]


__all__ = ["RenderError", "TemplateRenderer", "annotation_pairs"]
