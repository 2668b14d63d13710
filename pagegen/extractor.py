"""Tolerant extraction of ``galaxy:`` annotations from source documents.

The grammar is deliberately small: ``<meta name="galaxy:KEY" content="VALUE">``
pairs over a fixed key namespace, an optional ``application/galaxy+json`` block,
and the document ``<title>`` as a fallback title. Nothing in the document is
evaluated. Anything the grammar does not recognise becomes a diagnostic rather
than an exception.
"""

from __future__ import annotations

import html
import json
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import ANNOTATION_KEYS, ANNOTATION_PREFIX

_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_META_TAG = re.compile(r"""<meta\b((?:[^>"']|"[^"]*"|'[^']*')*)/?>""", re.IGNORECASE)
_ATTRIBUTE = re.compile(
    r"""([A-Za-z_:][-A-Za-z0-9_:.]*)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+))"""
)
_TITLE = re.compile(r"<title\b[^>]*>(.*?)</title\s*>", re.IGNORECASE | re.DOTALL)
_JSON_BLOCK = re.compile(
    r"""<script\b[^>]*\btype\s*=\s*["']application/galaxy\+json["'][^>]*>(.*?)</script\s*>""",
    re.IGNORECASE | re.DOTALL,
)
_BODY = re.compile(r"<body\b[^>]*>(.*?)</body\s*>", re.IGNORECASE | re.DOTALL)
_PAGE_CONFIG = re.compile(
    r"""<script\b[^>]*\bid\s*=\s*["']page-config["'][^>]*>(.*?)</script\s*>""",
    re.IGNORECASE | re.DOTALL,
)
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class ExtractionResult:
    """Partial metadata recovered from one document plus what was skipped and why."""

    metadata: Dict[str, str] = field(default_factory=dict)
    title: Optional[str] = None
    diagnostics: List[str] = field(default_factory=list)

    def get(self, key: str) -> Optional[str]:
        return self.metadata.get(key)


class MetadataExtractor:
    """Parses declarative key/value annotations out of raw document text."""

    def __init__(self, title_suffix: str | None = None) -> None:
        self.title_suffix = title_suffix

    def extract(self, text: str) -> ExtractionResult:
        result = ExtractionResult()
        visible = _COMMENT.sub("", text)

        for match in _META_TAG.finditer(visible):
            attributes = _parse_attributes(match.group(1))
            name = attributes.get("name", "")
            if not name.lower().startswith(ANNOTATION_PREFIX):
                continue
            key = name[len(ANNOTATION_PREFIX):].strip().lower()
            if key not in ANNOTATION_KEYS:
                result.diagnostics.append(f"ignored unknown annotation {name!r}")
                continue
            if "content" not in attributes:
                result.diagnostics.append(f"annotation {name!r} has no content attribute")
                continue
            if key in result.metadata:
                result.diagnostics.append(f"duplicate annotation {name!r}; keeping the first value")
                continue
            result.metadata[key] = html.unescape(attributes["content"])

        self._merge_json_block(visible, result)

        if "title" not in result.metadata:
            result.title = self._fallback_title(visible)
        return result

    def _merge_json_block(self, text: str, result: ExtractionResult) -> None:
        match = _JSON_BLOCK.search(text)
        if match is None:
            return
        try:
            payload = json.loads(match.group(1).strip() or "{}")
        except json.JSONDecodeError as exc:
            result.diagnostics.append(f"invalid galaxy+json block: {exc.msg}")
            return
        if not isinstance(payload, dict):
            result.diagnostics.append("galaxy+json block must contain an object")
            return
        for raw_key, raw_value in payload.items():
            key = _CAMEL_BOUNDARY.sub("-", str(raw_key)).lower()
            if key not in ANNOTATION_KEYS:
                result.diagnostics.append(f"ignored unknown galaxy+json key {raw_key!r}")
                continue
            if key in result.metadata:
                continue
            value = _json_scalar(raw_value)
            if value is None:
                result.diagnostics.append(f"galaxy+json key {raw_key!r} has an unsupported value")
                continue
            result.metadata[key] = value

    def _fallback_title(self, text: str) -> Optional[str]:
        match = _TITLE.search(text)
        if match is None:
            return None
        title = _WHITESPACE.sub(" ", html.unescape(match.group(1))).strip()
        if self.title_suffix:
            suffix = f" | {self.title_suffix}"
            if title.endswith(suffix):
                title = title[: -len(suffix)].rstrip()
        return title or None


def extract_metadata(text: str, *, title_suffix: str | None = None) -> ExtractionResult:
    """Convenience wrapper around :class:`MetadataExtractor`."""
    return MetadataExtractor(title_suffix=title_suffix).extract(text)


def has_annotations(text: str) -> bool:
    """Return True when the document carries at least one ``galaxy:`` meta tag."""
    visible = _COMMENT.sub("", text)
    for match in _META_TAG.finditer(visible):
        name = _parse_attributes(match.group(1)).get("name", "")
        if name.lower().startswith(ANNOTATION_PREFIX):
            return True
    return False


def extract_body(text: str) -> str:
    """Return the inner markup of ``<body>``, or an empty string when there is none."""
    match = _BODY.search(_COMMENT.sub("", text))
    return match.group(1).strip() if match else ""


def extract_page_config(text: str) -> Optional[Dict[str, object]]:
    """Return the ``page-config`` JSON embedded in a rendered page, if it parses to an object."""
    match = _PAGE_CONFIG.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(1))
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _parse_attributes(raw: str) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for match in _ATTRIBUTE.finditer(raw):
        name = match.group(1).lower()
        value = next((group for group in match.groups()[1:] if group is not None), "")
        attributes.setdefault(name, value)
    return attributes


def _json_scalar(value: object) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return str(value)
    if isinstance(value, list) and all(isinstance(item, (str, int, float)) for item in value):
        return ",".join(str(item) for item in value)
    return None


__all__ = [
    "ExtractionResult",
    "MetadataExtractor",
    "extract_body",
    "extract_metadata",
    "extract_page_config",
    "has_annotations",
]
