"""Shared constants for page configuration, rendering and discovery."""

from __future__ import annotations

ANNOTATION_PREFIX = "galaxy:"
CONFIG_FILENAME = ".pagegen.yml"
SOURCE_SUFFIX = ".html"

# Rank order matters: index-based inference walks this tuple from the top.
ENTITY_TYPES: tuple[str, ...] = (
    "galaxy",
    "planet",
    "moon",
    "asteroid",
    "debris",
    "station",
    "nebula",
    "blackhole",
    "gateway",
    "anomaly",
)

# Types drawn for documents past the ranked head of the discovery order.
ROUND_ROBIN_TYPES: tuple[str, ...] = ("asteroid", "debris", "station", "nebula")

IMPORTANCE_LEVELS: tuple[str, ...] = ("high", "medium", "low")

DEFAULT_PALETTE: tuple[str, ...] = ("#6C5CE7", "#A29BFE", "#FD79A8", "#E84393")

DEFAULT_ENTITY_TABLE: dict[str, dict[str, object]] = {
    "galaxy": {
        "palette": ["#FFD700", "#FFA500", "#FFFF00", "#FF6347"],
        "icon": "⭐",
        "orbit_radius": 100.0,
        "size": 2.0,
    },
    "planet": {
        "palette": ["#4ECDC4", "#45B7AF", "#3DA199", "#368B84"],
        "icon": "🪐",
        "orbit_radius": 150.0,
        "size": 1.5,
    },
    "moon": {
        "palette": ["#C7F464", "#B4DC5A", "#A1C350", "#8EAA46"],
        "icon": "🌙",
        "orbit_radius": 60.0,
        "size": 1.0,
    },
    "asteroid": {
        "palette": ["#FF6B6B", "#E56060", "#CC5555", "#B24A4A"],
        "icon": "☄️",
        "orbit_radius": 40.0,
        "size": 0.8,
    },
    "debris": {
        "palette": ["#A8E6CF", "#96D4BD", "#84C2AB", "#72B099"],
        "icon": "🛰️",
        "orbit_radius": 20.0,
        "size": 0.5,
    },
    "station": {
        "palette": ["#FFD166", "#F4C15A", "#E9B14E", "#DEA142"],
        "icon": "🚀",
        "orbit_radius": 80.0,
        "size": 1.2,
    },
    "nebula": {
        "palette": ["#D4A5FF", "#C391F0", "#B27DE1", "#A169D2"],
        "icon": "🌌",
        "orbit_radius": 250.0,
        "size": 1.8,
    },
    "blackhole": {
        "palette": ["#2C3E50", "#34495E", "#22313F", "#1B2631"],
        "icon": "🌀",
        "orbit_radius": 200.0,
        "size": 2.5,
    },
    "gateway": {
        "palette": ["#9B5DE5", "#8A4FD3", "#7941C1", "#6833AF"],
        "icon": "🌐",
        "orbit_radius": 120.0,
        "size": 1.3,
    },
    "anomaly": {
        "palette": ["#00BBF9", "#00A8E0", "#0095C7", "#0082AE"],
        "icon": "💫",
        "orbit_radius": 180.0,
        "size": 1.1,
    },
}

# Annotation keys accepted by the extractor; everything else is diagnosed and ignored.
ANNOTATION_KEYS: tuple[str, ...] = (
    "level",
    "type",
    "title",
    "description",
    "color",
    "icon",
    "importance",
    "parent",
    "orbit-radius",
    "orbit-angle",
    "size-modifier",
    "unlocked",
    "tags",
    "preview",
)

RENDER_MODES: tuple[str, ...] = ("full", "gateway", "auto")
ANALYTICS_PROVIDERS: tuple[str, ...] = ("yandex", "google")

MANIFEST_VERSION = 1
BACKUP_PREFIX = "backup-"


__all__ = [
    "ANALYTICS_PROVIDERS",
    "ANNOTATION_KEYS",
    "ANNOTATION_PREFIX",
    "BACKUP_PREFIX",
    "CONFIG_FILENAME",
    "DEFAULT_ENTITY_TABLE",
    "DEFAULT_PALETTE",
    "ENTITY_TYPES",
    "IMPORTANCE_LEVELS",
    "MANIFEST_VERSION",
    "RENDER_MODES",
    "ROUND_ROBIN_TYPES",
    "SOURCE_SUFFIX",
]
