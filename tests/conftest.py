"""Pytest fixtures for cellwriter tests."""

from typing import Callable

import pytest
from bs4 import BeautifulSoup, Tag

from cellwriter import config
from cellwriter.core.document import Document
from cellwriter.formatting.formats import FormatRegistry, default_formats


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """Make every test start from freshly loaded settings."""
    monkeypatch.setattr(config, "_settings", None)
    yield


@pytest.fixture
def formats() -> FormatRegistry:
    """The built-in format registry."""
    return default_formats()


@pytest.fixture
def doc(formats: FormatRegistry) -> Document:
    """An empty document with the built-in formats."""
    return Document(formats=formats)


@pytest.fixture
def hello_doc(doc: Document) -> Document:
    """A document holding the text 'Hello world'."""
    doc.insert_text("Hello world")
    return doc


@pytest.fixture
def el() -> Callable[..., Tag]:
    """Build a single element, e.g. ``el("span", "Test", style="...")``."""

    def build(name: str, text: str = "Test", **attrs: str) -> Tag:
        soup = BeautifulSoup("", "html.parser")
        tag = soup.new_tag(name, attrs=attrs)
        tag.string = text
        soup.append(tag)
        return tag

    return build


@pytest.fixture
def sample_html() -> str:
    """Markup mixing blocks, headings and nested formats."""
    return (
        "<html><head><title>Ignored</title></head><body>"
        "<h1>Notes</h1>"
        "<p>The <strong>quick</strong> <em>brown</em> fox.</p>"
        "<p>See <a href=\"https://example.com\">the site</a>.</p>"
        "</body></html>"
    )
