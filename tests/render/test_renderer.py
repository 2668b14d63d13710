"""Tests for Jinja2 page rendering."""

from __future__ import annotations

import json
import re
from pathlib import Path

import pytest

from pagegen.config import AnalyticsConfig, PageGenConfig, RenderConfig
from pagegen.extractor import has_annotations
from pagegen.models import PageConfig
from pagegen.pages.builder import PageConfigBuilder
from pagegen.render import RenderError, TemplateRenderer
from tests._fixtures.site_builder import annotated_page


def _tricky_page(config: PageGenConfig) -> PageConfig:
    text = annotated_page(
        "deep-space_1",
        "Fish &amp; &quot;Chips&quot; &lt;Live&gt;",
        parent="root",
        extra="\n".join(
            [
                '<meta name="galaxy:description" content="Quotes &quot;and&quot; &amp; ampersands &lt;here&gt;">',
                '<meta name="galaxy:orbit-radius" content="0.1">',
                '<meta name="galaxy:orbit-angle" content="123.456789">',
                '<meta name="galaxy:tags" content="alpha,beta gamma">',
                '<meta name="galaxy:icon" content="&#x1FA90;">',
            ]
        ),
    )
    return PageConfigBuilder(config).build("deep.html", text, 4, 7, modified="2024-05-05T00:00:00Z")


def test_render_then_extract_recovers_every_field(default_config: PageGenConfig) -> None:
    page = _tricky_page(default_config)
    output = TemplateRenderer(default_config).render(page)

    rebuilt = PageConfigBuilder(default_config).build(
        "deep.html", output, 4, 7, modified="2024-05-05T00:00:00Z"
    )

    for attribute in (
        "level",
        "type",
        "title",
        "description",
        "color",
        "icon",
        "importance",
        "parent",
        "orbit_radius",
        "orbit_angle",
        "size_modifier",
        "unlocked",
        "tags",
    ):
        assert getattr(rebuilt, attribute) == getattr(page, attribute), attribute
    assert rebuilt.metadata.preview == page.metadata.preview


def test_page_config_is_embedded_as_json(default_config: PageGenConfig) -> None:
    page = _tricky_page(default_config)
    output = TemplateRenderer(default_config).render(page)

    match = re.search(r'<script type="application/json" id="page-config">(.*?)</script>', output, re.DOTALL)
    assert match is not None
    embedded = json.loads(match.group(1))
    assert embedded == page.to_dict()


def test_title_and_body_are_rendered(default_config: PageGenConfig) -> None:
    page = _tricky_page(default_config)
    output = TemplateRenderer(default_config).render(page, body="<section>Authored</section>")

    assert "<title>Fish &amp; &#34;Chips&#34; &lt;Live&gt; | GENOFOND</title>" in output
    assert "<section>Authored</section>" in output
    assert "<Live>" not in output


def test_gateway_mode_redirects_and_keeps_annotations(tmp_path: Path) -> None:
    config = PageGenConfig(
        root=tmp_path,
        render=RenderConfig(mode="gateway", redirect_url="/galaxy/", redirect_delay_ms=250),
    )
    page = _tricky_page(config)
    output = TemplateRenderer(config).render(page)

    assert 'window.location.href = "/galaxy/"' in output
    assert "}, 250);" in output
    assert has_annotations(output)


@pytest.mark.parametrize(("annotated", "template"), [(True, "page.html.j2"), (False, "gateway.html.j2")])
def test_auto_mode_selects_template_from_source(tmp_path: Path, annotated: bool, template: str) -> None:
    config = PageGenConfig(root=tmp_path, render=RenderConfig(mode="auto"))

    assert TemplateRenderer(config).template_for(source_has_annotations=annotated) == template


def test_analytics_snippets(tmp_path: Path) -> None:
    yandex = PageGenConfig(root=tmp_path, analytics=AnalyticsConfig(provider="yandex", counter_id="12345678"))
    google = PageGenConfig(root=tmp_path, analytics=AnalyticsConfig(provider="google", counter_id="G-TEST"))

    yandex_output = TemplateRenderer(yandex).render(_tricky_page(yandex))
    google_output = TemplateRenderer(google).render(_tricky_page(google))

    assert "mc.yandex.ru/watch/12345678" in yandex_output
    assert "googletagmanager.com/gtag/js?id=G-TEST" in google_output
    assert "yandex" not in google_output


def test_links_to_parent_and_children(default_config: PageGenConfig) -> None:
    root = _tricky_page(default_config)
    root.level, root.parent, root.children = "root", "", ["leaf"]
    leaf = _tricky_page(default_config)
    leaf.name, leaf.level, leaf.title, leaf.parent = "leaf-page", "leaf", "Leaf", "root"

    related = {"root": root, "leaf": leaf}
    renderer = TemplateRenderer(default_config)

    assert '<a href="leaf-page.html">Leaf</a>' in renderer.render(root, related=related)
    assert 'class="page-parent"><a href="deep.html">' in renderer.render(leaf, related=related)


def test_user_templates_override_packaged_ones(tmp_path: Path) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "page.html.j2").write_text("custom {{ page.level }}", encoding="utf-8")
    config = PageGenConfig(root=tmp_path, render=RenderConfig(templates_dir=templates))

    assert TemplateRenderer(config).render(_tricky_page(config)) == "custom deep-space_1"


def test_broken_template_raises_render_error(tmp_path: Path) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "page.html.j2").write_text("{{ missing_variable }}", encoding="utf-8")
    config = PageGenConfig(root=tmp_path, render=RenderConfig(templates_dir=templates))

    with pytest.raises(RenderError):
        TemplateRenderer(config).render(_tricky_page(config))
