"""Flatten a markup tree into inline-only markup.

Block elements are unwrapped and their content is emitted as separate
blocks joined by a blank line, so the parser only ever sees text,
inline formatting tags and line breaks. Headings are kept whole.
"""

import copy
import re
from typing import Optional, Union

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import PreformattedString

BLOCK_SEPARATOR = "\n\n"

INLINE_ELEMENTS = frozenset({
    "b", "big", "i", "small", "tt", "abbr", "acronym", "cite", "code",
    "dfn", "em", "kbd", "strong", "samp", "var", "a", "bdo", "br", "img",
    "map", "object", "q", "script", "span", "sub", "sup", "button",
    "input", "label", "select", "textarea",
    # formatting tags recognised by the default registry
    "del", "s", "strike",
})

KEEP_ELEMENTS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

KILL_ELEMENTS = (
    "area", "base", "col", "command", "embed", "hr", "img", "input",
    "keygen", "link", "menuitem", "meta", "param", "object", "source",
    "svg", "track", "video", "wbr",
    # containers whose text is never document content
    "head", "script", "style", "template", "noscript",
)

MULTIPLE_SPACES = re.compile(r"[ ]{2,}")
EXCESS_NEWLINES = re.compile(r"\n{3,}")

Markup = Union[str, Tag, None]


def load_markup(markup: Markup = None) -> Tag:
    """Return a tree for ``markup`` that is safe to modify.

    Strings are parsed with BeautifulSoup's ``html.parser``; trees are
    copied so the caller's tree stays untouched.
    """
    if markup is None:
        return BeautifulSoup("", "html.parser")
    if isinstance(markup, Tag):
        return copy.copy(markup)
    return BeautifulSoup(str(markup), "html.parser")


def clean_markup(markup: str) -> str:
    """Trim markup and collapse runs of spaces and blank lines."""
    markup = MULTIPLE_SPACES.sub(" ", markup.strip())
    return EXCESS_NEWLINES.sub("\n\n", markup)


def trim_node(node: Tag) -> Tag:
    """Replace the content of ``node`` with its cleaned markup."""
    markup = clean_markup(node.decode_contents())
    node.clear()
    fragment = BeautifulSoup(markup, "html.parser")
    for child in list(fragment.contents):
        node.append(child.extract())
    return node


def _outer_markup(node: PageElement) -> str:
    if isinstance(node, Tag):
        return node.decode()
    if isinstance(node, PreformattedString):
        return ""
    return node.output_ready()


class Inliner:
    """Collect the inline blocks of a markup tree."""

    def __init__(
        self,
        inline: frozenset[str] = INLINE_ELEMENTS,
        keep: frozenset[str] = KEEP_ELEMENTS,
        kill: tuple[str, ...] = KILL_ELEMENTS,
    ) -> None:
        self.inline = inline
        self.keep = keep
        self.kill = kill

    def inline_blocks(self, markup: Markup) -> str:
        """Flatten ``markup`` and return the blocks joined by a blank line."""
        root = load_markup(markup)

        for element in root.find_all(list(self.kill)):
            if not element.decomposed:
                element.decompose()

        blocks: list[str] = []
        self._collect(root, blocks)
        return BLOCK_SEPARATOR.join(blocks)

    def is_inline(self, node: PageElement) -> bool:
        return isinstance(node, Tag) and (node.name or "").lower() in self.inline

    def _has_block_elements(self, node: Tag) -> bool:
        return any(not self.is_inline(child) for child in node.find_all(True))

    def _is_kept(self, node: Tag) -> bool:
        return (node.name or "").lower() in self.keep

    def _collect(self, node: Tag, blocks: list[str]) -> None:
        if not self._has_block_elements(node):
            trim_node(node)
            inner = node.decode_contents()
            if not inner:
                return
            blocks.append(node.decode() if self._is_kept(node) else inner)
            return

        pending: list[PageElement] = []
        for child in list(node.contents):
            if isinstance(child, NavigableString) or (
                self.is_inline(child) and not self._has_block_elements(child)
            ):
                pending.append(child)
                continue

            self._flush(pending, blocks)
            pending = []

            self._collect(child, blocks)
            if not self.is_inline(child):
                trim_node(child)
                if not self._is_kept(child):
                    child.unwrap()

        self._flush(pending, blocks)

    def _flush(self, pending: list[PageElement], blocks: list[str]) -> None:
        """Emit loose inline content between block siblings as its own block."""
        markup = clean_markup("".join(_outer_markup(node) for node in pending))
        if markup:
            blocks.append(markup)


def inline_blocks(markup: Markup, inliner: Optional[Inliner] = None) -> str:
    """Flatten ``markup`` with the default vocabulary."""
    return (inliner or Inliner()).inline_blocks(markup)
