"""Format registry: named rules for detecting and rendering formats.

Each rule pairs a detector, which inspects a markup tag and reports
whether the format applies, with a renderer, which wraps already
rendered markup in the format's tags.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, Mapping, Optional, Union

from bs4 import Tag
from bs4.dammit import EntitySubstitution

from cellwriter.formatting.ir import FormatMap

logger = logging.getLogger(__name__)

Detected = Union[bool, dict]
Detector = Callable[[Tag, Mapping[str, Any]], Detected]
Renderer = Callable[..., str]

BOLD_WEIGHTS = {"bold", "bolder", "500", "600", "700", "800", "900"}
LINK_REL = ("noopener", "noreferrer")


class FormatName(str, Enum):
    """Names of the built-in formats, in registry order."""

    BOLD = "bold"
    CODE = "code"
    ITALIC = "italic"
    LINK = "link"
    STRIKE_THROUGH = "strikeThrough"
    SUBSCRIPT = "subscript"
    SUPERSCRIPT = "superscript"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class FormatRule:
    """Detection and rendering functions for one format.

    Attributes:
        render: ``render(markup, attributes=None) -> markup``
        detect: ``detect(tag, inherited) -> False | True | dict``
    """

    render: Optional[Renderer] = None
    detect: Optional[Detector] = None


class FormatRegistry:
    """Immutable, ordered mapping of format names to rules."""

    def __init__(self, rules: Optional[Mapping[str, FormatRule]] = None) -> None:
        self._rules: dict[str, FormatRule] = {
            str(name): rule for name, rule in (rules or {}).items()
        }

    def __contains__(self, name: object) -> bool:
        return str(name) in self._rules

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"FormatRegistry({list(self._rules)!r})"

    def get(self, name: str) -> Optional[FormatRule]:
        return self._rules.get(str(name))

    def names(self) -> tuple[str, ...]:
        return tuple(self._rules)

    def extend(self, rules: Mapping[str, FormatRule]) -> "FormatRegistry":
        """Return a new registry with extra or overriding rules."""
        merged = dict(self._rules)
        merged.update({str(name): rule for name, rule in rules.items()})
        return FormatRegistry(merged)

    def detect(self, tag: Tag, inherited: Mapping[str, Any]) -> FormatMap:
        """Compute the formats that apply inside ``tag``.

        Formats already present in ``inherited`` are carried over without
        calling their detector again, so nested duplicates such as
        ``<b><b>`` collapse into one format.
        """
        result: FormatMap = {}

        for name, rule in self._rules.items():
            value = inherited.get(name)
            if value is True or isinstance(value, dict):
                result[name] = value
                continue

            if rule.detect is None:
                logger.error("The detector for %s does not exist", name)
                continue

            detected = rule.detect(tag, inherited)
            if detected:
                result[name] = detected

        return result

    def render(self, name: str, markup: str, value: Any = True) -> str:
        """Wrap ``markup`` with the renderer of ``name``.

        Unknown formats and rules without a renderer leave the markup
        untouched.
        """
        rule = self._rules.get(str(name))
        if rule is None or rule.render is None:
            logger.debug("No renderer for format %s; leaving text unwrapped", name)
            return markup

        attributes = value if isinstance(value, dict) else None
        return rule.render(markup, attributes)


# =============================================================================
# Tag helpers
# =============================================================================

def style_properties(tag: Tag) -> dict[str, str]:
    """Parse the inline ``style`` attribute of a tag into a dict."""
    properties: dict[str, str] = {}
    for declaration in (tag.get("style") or "").split(";"):
        name, sep, value = declaration.partition(":")
        if sep and name.strip():
            properties[name.strip().lower()] = value.strip().lower()
    return properties


def attribute(tag: Tag, name: str) -> Optional[str]:
    """Read an attribute as a string; multi-valued attributes are joined."""
    value = tag.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value


def escape_text(text: str) -> str:
    """Escape text content for markup output."""
    return EntitySubstitution.substitute_xml(text).replace("\xa0", "&nbsp;")


def _is(tag: Tag, *names: str) -> bool:
    return isinstance(tag, Tag) and (tag.name or "").lower() in names


def _quoted(value: str) -> str:
    return EntitySubstitution.substitute_xml(value, make_quoted_attribute=True)


# =============================================================================
# Built-in rules
# =============================================================================

def detect_bold(tag: Tag, inherited: Optional[Mapping[str, Any]] = None) -> bool:
    if _is(tag, "b", "strong"):
        return True
    return style_properties(tag).get("font-weight") in BOLD_WEIGHTS


def detect_code(tag: Tag, inherited: Optional[Mapping[str, Any]] = None) -> bool:
    return _is(tag, "code")


def detect_italic(tag: Tag, inherited: Optional[Mapping[str, Any]] = None) -> bool:
    if _is(tag, "i", "em"):
        return True
    return style_properties(tag).get("font-style") in {"italic", "oblique"}


def detect_link(tag: Tag, inherited: Optional[Mapping[str, Any]] = None) -> Detected:
    if not _is(tag, "a") or not attribute(tag, "href"):
        return False

    return {
        "href": attribute(tag, "href"),
        "rel": attribute(tag, "rel"),
        "target": attribute(tag, "target"),
        "title": attribute(tag, "title"),
    }


def detect_strike_through(tag: Tag, inherited: Optional[Mapping[str, Any]] = None) -> bool:
    if _is(tag, "del", "s", "strike"):
        return True
    return "line-through" in style_properties(tag).get("text-decoration", "")


def detect_subscript(tag: Tag, inherited: Optional[Mapping[str, Any]] = None) -> bool:
    if _is(tag, "sub"):
        return True
    return style_properties(tag).get("vertical-align") == "sub"


def detect_superscript(tag: Tag, inherited: Optional[Mapping[str, Any]] = None) -> bool:
    if _is(tag, "sup"):
        return True
    return style_properties(tag).get("vertical-align") == "super"


def wrap_with(tag_name: str) -> Renderer:
    """Build a renderer that wraps markup in a plain tag."""

    def render(markup: str, attributes: Optional[dict] = None) -> str:
        return f"<{tag_name}>{markup}</{tag_name}>"

    render.__name__ = f"render_{tag_name}"
    return render


def render_link(markup: str, attributes: Optional[dict] = None) -> str:
    """Render a link. Without an href the markup is returned as is."""
    if not attributes or not attributes.get("href"):
        return markup

    parts = [f"href={_quoted(attributes['href'])}"]
    if attributes.get("target"):
        parts.append(f"target={_quoted(attributes['target'])}")
    if attributes.get("title"):
        parts.append(f"title={_quoted(attributes['title'])}")

    rel = list(LINK_REL)
    for token in re.split(r"\s+", attributes.get("rel") or ""):
        if token and token not in rel:
            rel.append(token)
    parts.append(f"rel={_quoted(' '.join(rel))}")

    return f"<a {' '.join(parts)}>{markup}</a>"


def default_formats() -> FormatRegistry:
    """Create a new registry holding the built-in formats."""
    return FormatRegistry({
        FormatName.BOLD: FormatRule(render=wrap_with("strong"), detect=detect_bold),
        FormatName.CODE: FormatRule(render=wrap_with("code"), detect=detect_code),
        FormatName.ITALIC: FormatRule(render=wrap_with("em"), detect=detect_italic),
        FormatName.LINK: FormatRule(render=render_link, detect=detect_link),
        FormatName.STRIKE_THROUGH: FormatRule(
            render=wrap_with("del"), detect=detect_strike_through
        ),
        FormatName.SUBSCRIPT: FormatRule(
            render=wrap_with("sub"), detect=detect_subscript
        ),
        FormatName.SUPERSCRIPT: FormatRule(
            render=wrap_with("sup"), detect=detect_superscript
        ),
    })
