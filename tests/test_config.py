"""Tests for .pagegen.yml loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from pagegen.config import ConfigError, PageGenConfig, load_config
from tests._fixtures.site_builder import SiteBuilder


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.source_dir == (tmp_path / "pages").resolve()
    assert config.output_dir == tmp_path.resolve()
    assert config.manifest_path == (tmp_path / "sitemap.json").resolve()
    assert config.ledger_path == (tmp_path / ".pagegen" / "file-hashes.json").resolve()
    assert config.max_depth == 0
    assert config.exclude == []
    assert config.enable_incremental is True
    assert config.max_backup_count == 10
    assert config.watch_interval_ms == 5000
    assert config.render.mode == "full"
    assert config.site.name == "GENOFOND"
    assert config.entity("planet").orbit_radius == 150.0


def test_full_configuration(site_builder: SiteBuilder) -> None:
    site_builder.configure(
        {
            "source_dir": "src",
            "output_dir": "public",
            "manifest_path": "meta/sitemap.json",
            "max_depth": 2,
            "exclude": ["drafts/"],
            "enable_incremental": False,
            "enable_backups": "no",
            "max_backup_count": 3,
            "prune_ledger": True,
            "watch_interval_ms": 250,
            "orbit_step": 15,
            "site": {"name": "Atlas", "base_url": "https://example.org/", "lang": "ru"},
            "render": {"mode": "AUTO", "redirect_url": "/home", "redirect_delay_ms": 0, "templates_dir": "tpl"},
            "analytics": {"provider": "google", "counter_id": "G-1"},
            "entity_types": {"planet": {"palette": ["#000"], "icon": "P", "orbit_radius": 10}},
        }
    )

    config = site_builder.load()
    root = site_builder.path().resolve()

    assert config.source_dir == root / "src"
    assert config.output_dir == root / "public"
    assert config.manifest_path == root / "public" / "meta" / "sitemap.json"
    assert config.max_depth == 2
    assert config.exclude == ["drafts/"]
    assert config.enable_incremental is False
    assert config.enable_backups is False
    assert config.max_backup_count == 3
    assert config.prune_ledger is True
    assert config.watch_interval_ms == 250
    assert config.orbit_step == 15.0
    assert config.site.base_url == "https://example.org"
    assert config.site.lang == "ru"
    assert config.render.mode == "auto"
    assert config.render.redirect_delay_ms == 0
    assert config.render.templates_dir == root / "tpl"
    assert config.analytics.provider == "google"
    assert config.entity("planet").palette == ["#000"]
    assert config.entity("planet").icon == "P"
    assert config.entity("planet").orbit_radius == 10.0
    assert config.entity("planet").size == 1.5
    assert config.entity("moon").icon == PageGenConfig(root=root).entity("moon").icon


def test_config_file_path_is_accepted(site_builder: SiteBuilder) -> None:
    config_path = site_builder.configure({"max_depth": 1})

    assert load_config(config_path).max_depth == 1


@pytest.mark.parametrize(
    ("settings", "message"),
    [
        ({"max_depth": -1}, "max_depth"),
        ({"max_backup_count": 0}, "max_backup_count"),
        ({"watch_interval_ms": 0}, "watch_interval_ms"),
        ({"render": {"mode": "fancy"}}, "render.mode"),
        ({"render": {"redirect_delay_ms": -5}}, "redirect_delay_ms"),
        ({"analytics": {"provider": "matomo", "counter_id": "1"}}, "analytics.provider"),
        ({"analytics": {"provider": "yandex"}}, "counter_id"),
        ({"entity_types": {"comet": {}}}, "comet"),
        ({"source_dir": "pages", "output_dir": "pages"}, "output_dir"),
    ],
)
def test_invalid_settings_raise(site_builder: SiteBuilder, settings: dict, message: str) -> None:
    site_builder.configure(settings)

    with pytest.raises(ConfigError) as excinfo:
        site_builder.load()

    assert message in str(excinfo.value)


def test_yaml_errors_and_non_mapping_root(tmp_path: Path) -> None:
    config_path = tmp_path / ".pagegen.yml"
    config_path.write_text("source_dir: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)

    config_path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_empty_file_is_defaults(tmp_path: Path) -> None:
    (tmp_path / ".pagegen.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).source_dir == (tmp_path / "pages").resolve()


def test_unreadable_file_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".pagegen.yml").write_bytes(b"source_dir: \xff\xfe\n")

    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)

    assert "Failed to read" in str(excinfo.value)
