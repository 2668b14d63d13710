"""Configuration loading for pagegen (.pagegen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .constants import (
    ANALYTICS_PROVIDERS,
    CONFIG_FILENAME,
    DEFAULT_ENTITY_TABLE,
    DEFAULT_PALETTE,
    ENTITY_TYPES,
    RENDER_MODES,
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is inconsistent."""


@dataclass
class EntityTypeConfig:
    """Lookup-table row for one entity type."""

    palette: List[str]
    icon: str
    orbit_radius: float
    size: float


@dataclass
class SiteConfig:
    """Site-wide values shown in rendered pages and the manifest."""

    name: str = "GENOFOND"
    base_url: str = ""
    lang: str = "en"


@dataclass
class RenderConfig:
    """Template selection and gateway redirect settings."""

    mode: str = "full"
    redirect_url: str = "/"
    redirect_delay_ms: int = 100
    templates_dir: Optional[Path] = None


@dataclass
class AnalyticsConfig:
    """Optional analytics snippet injected into rendered pages."""

    provider: Optional[str] = None
    counter_id: Optional[str] = None


def _default_entity_types() -> Dict[str, EntityTypeConfig]:
    return {
        name: EntityTypeConfig(
            palette=list(row["palette"]),  # type: ignore[arg-type]
            icon=str(row["icon"]),
            orbit_radius=float(row["orbit_radius"]),  # type: ignore[arg-type]
            size=float(row["size"]),  # type: ignore[arg-type]
        )
        for name, row in DEFAULT_ENTITY_TABLE.items()
    }


@dataclass
class PageGenConfig:
    """Represents the settings defined in .pagegen.yml, resolved against the project root."""

    root: Path
    source_dir: Path = Path("pages")
    output_dir: Path = Path(".")
    manifest_path: Path = Path("sitemap.json")
    ledger_path: Path = Path(".pagegen/file-hashes.json")
    backup_dir: Path = Path("backups")
    max_depth: int = 0
    exclude: List[str] = field(default_factory=list)
    enable_incremental: bool = True
    enable_backups: bool = True
    max_backup_count: int = 10
    prune_ledger: bool = False
    seed_example: bool = False
    watch: bool = False
    watch_interval_ms: int = 5000
    orbit_step: float = 20.0
    site: SiteConfig = field(default_factory=SiteConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    entity_types: Dict[str, EntityTypeConfig] = field(default_factory=_default_entity_types)

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        self.source_dir = self._anchor(self.source_dir, self.root)
        self.output_dir = self._anchor(self.output_dir, self.root)
        self.manifest_path = self._anchor(self.manifest_path, self.output_dir)
        self.ledger_path = self._anchor(self.ledger_path, self.root)
        self.backup_dir = self._anchor(self.backup_dir, self.root)
        if self.render.templates_dir is not None:
            self.render.templates_dir = self._anchor(self.render.templates_dir, self.root)

    @staticmethod
    def _anchor(path: Path, base: Path) -> Path:
        path = Path(path).expanduser()
        if not path.is_absolute():
            path = base / path
        return path.resolve()

    def entity(self, entity_type: str) -> EntityTypeConfig:
        return self.entity_types[entity_type]


def load_config(config_path: Path) -> PageGenConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return PageGenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    kwargs: Dict[str, Any] = {}
    for key in ("source_dir", "output_dir", "manifest_path", "ledger_path", "backup_dir"):
        value = _as_str(data.get(key))
        if value:
            kwargs[key] = Path(value)

    max_depth = _as_int(data.get("max_depth"))
    if max_depth is not None:
        if max_depth < 0:
            raise ConfigError("max_depth must be zero or positive")
        kwargs["max_depth"] = max_depth

    if "exclude" in data:
        kwargs["exclude"] = _as_str_list(data.get("exclude"))

    for key in ("enable_incremental", "enable_backups", "prune_ledger", "seed_example", "watch"):
        flag = _as_bool(data.get(key))
        if flag is not None:
            kwargs[key] = flag

    max_backup_count = _as_int(data.get("max_backup_count"))
    if max_backup_count is not None:
        if max_backup_count < 1:
            raise ConfigError("max_backup_count must be at least 1")
        kwargs["max_backup_count"] = max_backup_count

    interval = _as_int(data.get("watch_interval_ms"))
    if interval is not None:
        if interval <= 0:
            raise ConfigError("watch_interval_ms must be positive")
        kwargs["watch_interval_ms"] = interval

    orbit_step = _as_float(data.get("orbit_step"))
    if orbit_step is not None:
        kwargs["orbit_step"] = orbit_step

    site_data = _as_dict(data.get("site"))
    site = SiteConfig()
    if site_data:
        site.name = _as_str(site_data.get("name")) or site.name
        site.base_url = (_as_str(site_data.get("base_url")) or "").rstrip("/")
        site.lang = _as_str(site_data.get("lang")) or site.lang
    kwargs["site"] = site

    kwargs["render"] = _parse_render(_as_dict(data.get("render")))
    kwargs["analytics"] = _parse_analytics(_as_dict(data.get("analytics")))
    kwargs["entity_types"] = _parse_entity_types(_as_dict(data.get("entity_types")))

    config = PageGenConfig(root=root, **kwargs)
    if config.output_dir == config.source_dir:
        raise ConfigError("output_dir must differ from source_dir; rendering would overwrite sources")
    return config


def _parse_render(render_data: Dict[str, Any]) -> RenderConfig:
    render = RenderConfig()
    if not render_data:
        return render
    mode = _as_str(render_data.get("mode"))
    if mode is not None:
        mode = mode.strip().lower()
        if mode not in RENDER_MODES:
            raise ConfigError(f"render.mode must be one of {', '.join(RENDER_MODES)}; got {mode!r}")
        render.mode = mode
    render.redirect_url = _as_str(render_data.get("redirect_url")) or render.redirect_url
    delay = _as_int(render_data.get("redirect_delay_ms"))
    if delay is not None:
        if delay < 0:
            raise ConfigError("render.redirect_delay_ms must not be negative")
        render.redirect_delay_ms = delay
    templates_dir = _as_str(render_data.get("templates_dir"))
    if templates_dir:
        render.templates_dir = Path(templates_dir)
    return render


def _parse_analytics(analytics_data: Dict[str, Any]) -> AnalyticsConfig:
    analytics = AnalyticsConfig()
    if not analytics_data:
        return analytics
    provider = _as_str(analytics_data.get("provider"))
    if provider:
        provider = provider.strip().lower()
        if provider not in ANALYTICS_PROVIDERS:
            raise ConfigError(
                f"analytics.provider must be one of {', '.join(ANALYTICS_PROVIDERS)}; got {provider!r}"
            )
        analytics.provider = provider
        analytics.counter_id = _as_str(analytics_data.get("counter_id"))
        if not analytics.counter_id:
            raise ConfigError("analytics.counter_id is required when a provider is set")
    return analytics


def _parse_entity_types(overrides: Dict[str, Any]) -> Dict[str, EntityTypeConfig]:
    table = _default_entity_types()
    for name, raw in overrides.items():
        if name not in ENTITY_TYPES:
            raise ConfigError(f"Unknown entity type in entity_types: {name!r}")
        row = _as_dict(raw)
        current = table[name]
        if "palette" in row:
            palette = _as_str_list(row.get("palette"))
            current.palette = palette or list(DEFAULT_PALETTE)
        current.icon = _as_str(row.get("icon")) or current.icon
        radius = _as_float(row.get("orbit_radius"))
        if radius is not None:
            current.orbit_radius = radius
        size = _as_float(row.get("size"))
        if size is not None:
            current.size = size
    return table


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AnalyticsConfig",
    "ConfigError",
    "EntityTypeConfig",
    "PageGenConfig",
    "RenderConfig",
    "SiteConfig",
    "load_config",
]
