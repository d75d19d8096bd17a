"""Tests for the format registry."""

import logging

import pytest

from cellwriter.formatting.formats import (
    FormatName,
    FormatRegistry,
    FormatRule,
    default_formats,
    escape_text,
    render_link,
    style_properties,
)


class TestRenderers:
    """Tests for the built-in renderers."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("bold", "<strong>Test</strong>"),
            ("code", "<code>Test</code>"),
            ("italic", "<em>Test</em>"),
            ("strikeThrough", "<del>Test</del>"),
            ("subscript", "<sub>Test</sub>"),
            ("superscript", "<sup>Test</sup>"),
        ],
    )
    def test_wrapping_renderers(self, formats: FormatRegistry, name: str, expected: str):
        """Test that boolean formats wrap markup in their tag."""
        assert formats.render(name, "Test") == expected

    def test_link_without_href(self):
        """Test that a link without href renders as plain markup."""
        assert render_link("Test") == "Test"
        assert render_link("Test", {}) == "Test"
        assert render_link("Test", {"href": None}) == "Test"

    def test_link(self):
        """Test rendering a link."""
        html = render_link("Test", {"href": "https://getkirby.com"})
        assert html == '<a href="https://getkirby.com" rel="noopener noreferrer">Test</a>'

    def test_link_with_target(self):
        """Test rendering a link with target."""
        html = render_link("Test", {"href": "https://getkirby.com", "target": "_blank"})
        assert html == (
            '<a href="https://getkirby.com" target="_blank" '
            'rel="noopener noreferrer">Test</a>'
        )

    def test_link_with_title(self):
        """Test rendering a link with title."""
        html = render_link("Test", {"href": "https://getkirby.com", "title": "Kirby"})
        assert html == (
            '<a href="https://getkirby.com" title="Kirby" '
            'rel="noopener noreferrer">Test</a>'
        )

    def test_link_with_rel(self):
        """Test that custom rel values follow the safe defaults."""
        html = render_link("Test", {"href": "https://getkirby.com", "rel": "me"})
        assert html == '<a href="https://getkirby.com" rel="noopener noreferrer me">Test</a>'

    def test_link_rel_not_duplicated(self):
        """Test that a parsed rel does not repeat the default tokens."""
        html = render_link(
            "Test", {"href": "https://x.io", "rel": "noopener noreferrer"}
        )
        assert html == '<a href="https://x.io" rel="noopener noreferrer">Test</a>'

    def test_link_href_is_escaped(self):
        """Test that ampersands in the href are escaped."""
        html = render_link("Test", {"href": "https://x.io/?a=1&b=2"})
        assert 'href="https://x.io/?a=1&amp;b=2"' in html

    def test_escape_text(self):
        """Test escaping of text content."""
        assert escape_text("<a & b>") == "&lt;a &amp; b&gt;"
        assert escape_text("a\xa0b") == "a&nbsp;b"


class TestDetectors:
    """Tests for the built-in detectors."""

    @pytest.mark.parametrize(
        "name,tag",
        [
            ("bold", "b"),
            ("bold", "strong"),
            ("code", "code"),
            ("italic", "i"),
            ("italic", "em"),
            ("strikeThrough", "del"),
            ("strikeThrough", "s"),
            ("subscript", "sub"),
            ("superscript", "sup"),
        ],
    )
    def test_detects_tag(self, formats: FormatRegistry, el, name: str, tag: str):
        """Test that each format recognises its tags."""
        assert formats.get(name).detect(el(tag), {}) is True

    @pytest.mark.parametrize("name", [str(name) for name in FormatName])
    def test_ignores_plain_span(self, formats: FormatRegistry, el, name: str):
        """Test that no format detects an unstyled span."""
        assert not formats.get(name).detect(el("span"), {})

    @pytest.mark.parametrize(
        "weight", ["bold", "bolder", "500", "600", "700", "800", "900"]
    )
    def test_bold_font_weight(self, formats: FormatRegistry, el, weight: str):
        """Test detecting bold from font-weight."""
        span = el("span", style=f"font-weight: {weight}")
        assert formats.get("bold").detect(span, {}) is True

    def test_normal_font_weight(self, formats: FormatRegistry, el):
        """Test that normal weights are not bold."""
        span = el("span", style="font-weight: 400")
        assert formats.get("bold").detect(span, {}) is False

    def test_italic_font_style(self, formats: FormatRegistry, el):
        """Test detecting italic from font-style."""
        span = el("span", style="font-style: italic")
        assert formats.get("italic").detect(span, {}) is True

    def test_line_through(self, formats: FormatRegistry, el):
        """Test detecting strike through from text-decoration."""
        span = el("span", style="text-decoration: underline line-through")
        assert formats.get("strikeThrough").detect(span, {}) is True

    def test_vertical_align(self, formats: FormatRegistry, el):
        """Test detecting sub and superscript from vertical-align."""
        assert formats.get("subscript").detect(el("span", style="vertical-align: sub"), {})
        assert formats.get("superscript").detect(
            el("span", style="vertical-align: super"), {}
        )

    def test_link_without_href(self, formats: FormatRegistry, el):
        """Test that an anchor without href is not a link."""
        assert formats.get("link").detect(el("a"), {}) is False

    def test_link_attributes(self, formats: FormatRegistry, el):
        """Test that all link attributes are read."""
        tag = el("a", href="https://getkirby.com", title="Kirby", target="_blank", rel="me")
        assert formats.get("link").detect(tag, {}) == {
            "href": "https://getkirby.com",
            "rel": "me",
            "target": "_blank",
            "title": "Kirby",
        }

    def test_link_missing_attributes(self, formats: FormatRegistry, el):
        """Test that missing link attributes are None."""
        result = formats.get("link").detect(el("a", href="https://getkirby.com"), {})
        assert result == {
            "href": "https://getkirby.com",
            "rel": None,
            "target": None,
            "title": None,
        }

    def test_style_properties(self, el):
        """Test parsing inline style declarations."""
        span = el("span", style="Font-Weight: BOLD; color:red;; broken")
        assert style_properties(span) == {"font-weight": "bold", "color": "red"}


class TestFormatRegistry:
    """Tests for the FormatRegistry class."""

    def test_default_order(self, formats: FormatRegistry):
        """Test that the built-in formats come in a fixed order."""
        assert formats.names() == (
            "bold",
            "code",
            "italic",
            "link",
            "strikeThrough",
            "subscript",
            "superscript",
        )

    def test_default_formats_are_independent(self):
        """Test that each call builds a new registry."""
        assert default_formats() is not default_formats()

    def test_contains_enum_and_str(self, formats: FormatRegistry):
        """Test membership with enum members and plain names."""
        assert FormatName.BOLD in formats
        assert "bold" in formats
        assert "highlight" not in formats

    def test_extend(self, formats: FormatRegistry):
        """Test adding a rule without changing the original."""
        rule = FormatRule(render=lambda markup, attributes=None: f"<mark>{markup}</mark>")
        extended = formats.extend({"highlight": rule})

        assert "highlight" in extended
        assert "highlight" not in formats
        assert extended.names()[-1] == "highlight"
        assert extended.render("highlight", "A") == "<mark>A</mark>"

    def test_inherited_formats_skip_detection(self, el):
        """Test that inherited formats are carried without calling the detector."""
        calls = []

        def detect(tag, inherited):
            calls.append(tag.name)
            return True

        registry = FormatRegistry({"bold": FormatRule(detect=detect)})

        assert registry.detect(el("span"), {"bold": True}) == {"bold": True}
        assert calls == []

    def test_inherited_link_is_shared(self, formats: FormatRegistry, el):
        """Test that an inherited link keeps its attributes."""
        link = {"href": "https://x.io", "rel": None, "target": None, "title": None}
        result = formats.detect(el("span"), {"link": link})
        assert result == {"link": link}

    def test_detect_order_follows_registry(self, formats: FormatRegistry, el):
        """Test that detected formats are ordered like the registry."""
        result = formats.detect(el("i"), {"bold": True})
        assert list(result) == ["bold", "italic"]

    def test_missing_detector_logged(self, el, caplog: pytest.LogCaptureFixture):
        """Test that a rule without detector is logged and treated as absent."""
        registry = FormatRegistry({"highlight": FormatRule(render=lambda m, a=None: m)})

        with caplog.at_level(logging.ERROR):
            result = registry.detect(el("mark"), {})

        assert result == {}
        assert "The detector for highlight does not exist" in caplog.text

    def test_render_unknown_format(self, formats: FormatRegistry):
        """Test that unknown formats leave the markup untouched."""
        assert formats.render("highlight", "Test") == "Test"

    def test_render_passes_attributes(self, formats: FormatRegistry):
        """Test that attribute dicts reach the renderer and True does not."""
        assert formats.render("link", "A", True) == "A"
        assert formats.render("link", "A", {"href": "https://x.io"}).startswith(
            '<a href="https://x.io"'
        )
