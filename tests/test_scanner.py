"""Tests for source discovery."""

from __future__ import annotations

import pytest

from pagegen.scanner import SourceScanner, build_ignore_rules, should_ignore
from tests._fixtures.site_builder import SiteBuilder


def test_discovers_top_level_html_sorted(site_builder: SiteBuilder) -> None:
    site_builder.write(
        {
            "zeta.html": "<p>z</p>",
            "alpha.html": "<p>a</p>",
            "notes.txt": "ignored",
            ".hidden.html": "<p>h</p>",
            "nested/deep.html": "<p>d</p>",
        }
    )

    documents = SourceScanner().discover(site_builder.load())

    assert [doc.filename for doc in documents] == ["alpha.html", "zeta.html"]
    assert [doc.name for doc in documents] == ["alpha", "zeta"]


def test_max_depth_and_exclude_rules(site_builder: SiteBuilder) -> None:
    site_builder.configure({"max_depth": 2, "exclude": ["drafts/", "*.bak.html", "!keep.bak.html"]})
    site_builder.write(
        {
            "index.html": "",
            "guides/intro.html": "",
            "guides/deep/level2.html": "",
            "guides/deep/deeper/level3.html": "",
            "drafts/wip.html": "",
            "old.bak.html": "",
            "keep.bak.html": "",
        }
    )

    documents = SourceScanner().discover(site_builder.load())

    assert [doc.filename for doc in documents] == [
        "guides/deep/level2.html",
        "guides/intro.html",
        "index.html",
        "keep.bak.html",
    ]
    assert documents[0].name == "guides-deep-level2"


def test_missing_source_directory_is_empty(site_builder: SiteBuilder) -> None:
    site_builder.configure({"source_dir": "does-not-exist"})

    assert SourceScanner().discover(site_builder.load()) == []


def test_source_path_that_is_a_file_raises(site_builder: SiteBuilder) -> None:
    (site_builder.path() / "content.html").write_text("", encoding="utf-8")
    site_builder.configure({"source_dir": "content.html"})

    with pytest.raises(NotADirectoryError):
        SourceScanner().discover(site_builder.load())


def test_output_directory_inside_source_is_skipped(site_builder: SiteBuilder) -> None:
    site_builder.configure({"output_dir": "pages/dist", "max_depth": 3})
    site_builder.write({"index.html": "", "dist/index.html": "rendered"})

    documents = SourceScanner().discover(site_builder.load())

    assert [doc.filename for doc in documents] == ["index.html"]


def test_anchored_rules_only_match_from_root() -> None:
    rules = build_ignore_rules(["/top.html", "sub/*.html"])

    assert should_ignore("top.html", False, rules)
    assert not should_ignore("nested/top.html", False, rules)
    assert should_ignore("sub/page.html", False, rules)
    assert not should_ignore("other/page.html", False, rules)
