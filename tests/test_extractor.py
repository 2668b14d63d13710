"""Tests for annotation extraction."""

from __future__ import annotations

from pagegen.extractor import (
    MetadataExtractor,
    extract_body,
    extract_metadata,
    extract_page_config,
    has_annotations,
)


def test_extracts_annotations_regardless_of_attribute_order_and_quotes() -> None:
    text = """
    <html><head>
    <META content="planet-one" NAME="galaxy:level">
    <meta name='galaxy:type' content='planet' />
    <meta name=galaxy:color content=#ABC>
    </head></html>
    """
    result = extract_metadata(text)

    assert result.metadata == {"level": "planet-one", "type": "planet", "color": "#ABC"}
    assert result.diagnostics == []


def test_unknown_keys_and_missing_content_become_diagnostics() -> None:
    text = """
    <meta name="galaxy:level" content="a">
    <meta name="galaxy:speed" content="fast">
    <meta name="galaxy:title">
    <meta name="viewport" content="width=device-width">
    """
    result = extract_metadata(text)

    assert result.metadata == {"level": "a"}
    assert len(result.diagnostics) == 2
    assert any("galaxy:speed" in item for item in result.diagnostics)
    assert any("no content" in item for item in result.diagnostics)


def test_first_value_wins_for_repeated_keys() -> None:
    text = '<meta name="galaxy:level" content="first"><meta name="galaxy:level" content="second">'
    result = extract_metadata(text)

    assert result.get("level") == "first"
    assert any("duplicate" in item for item in result.diagnostics)


def test_entities_are_unescaped_and_comments_ignored() -> None:
    text = """
    <!-- <meta name="galaxy:level" content="hidden"> -->
    <meta name="galaxy:title" content="Fish &amp; Chips &quot;daily&quot;">
    """
    result = extract_metadata(text)

    assert result.metadata == {"title": 'Fish & Chips "daily"'}


def test_title_tag_is_fallback_with_site_suffix_removed() -> None:
    text = "<title>\n  Star   Map | GENOFOND\n</title>"
    result = MetadataExtractor(title_suffix="GENOFOND").extract(text)

    assert result.title == "Star Map"
    assert "title" not in result.metadata


def test_title_fallback_skipped_when_annotation_present() -> None:
    text = '<title>Other</title><meta name="galaxy:title" content="Chosen">'
    result = extract_metadata(text)

    assert result.title is None
    assert result.get("title") == "Chosen"


def test_json_block_supplements_meta_tags() -> None:
    text = """
    <meta name="galaxy:level" content="from-meta">
    <script type="application/galaxy+json">
    {"level": "from-json", "orbitRadius": 42, "tags": ["a", "b"], "unlocked": false, "nested": {"x": 1}}
    </script>
    """
    result = extract_metadata(text)

    assert result.get("level") == "from-meta"
    assert result.get("orbit-radius") == "42"
    assert result.get("tags") == "a,b"
    assert result.get("unlocked") == "false"
    assert any("nested" in item for item in result.diagnostics)


def test_invalid_json_block_is_a_diagnostic() -> None:
    text = '<script type="application/galaxy+json">{not json</script>'
    result = extract_metadata(text)

    assert result.metadata == {}
    assert any("invalid galaxy+json" in item for item in result.diagnostics)


def test_no_annotations_yields_empty_result() -> None:
    result = extract_metadata("<p>plain document</p>")

    assert result.metadata == {}
    assert result.title is None
    assert result.diagnostics == []


def test_has_annotations_and_body() -> None:
    annotated = '<head><meta name="galaxy:level" content="x"></head><body>\n<p>Hi</p>\n</body>'

    assert has_annotations(annotated) is True
    assert has_annotations('<meta name="description" content="x">') is False
    assert extract_body(annotated) == "<p>Hi</p>"
    assert extract_body("no body here") == ""


def test_extract_page_config_reads_embedded_json() -> None:
    text = (
        '<head><script type="application/json" id="page-config">'
        '{"level": "home", "title": "Fish \\u0026 Chips"}</script></head>'
    )

    assert extract_page_config(text) == {"level": "home", "title": "Fish & Chips"}
    assert extract_page_config("<p>no config</p>") is None
    assert extract_page_config('<script id="page-config">[1, 2]</script>') is None
    assert extract_page_config('<script id="page-config">{broken</script>') is None
