"""Markup parser for converting a markup tree to the character IR."""

from typing import Mapping, Optional

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

from cellwriter.formatting.formats import FormatRegistry, default_formats
from cellwriter.formatting.inliner import Inliner, Markup, load_markup
from cellwriter.formatting.ir import (
    Character,
    FormatMap,
    FormatValue,
    clone_characters,
    prune_format,
)


class MarkupParser:
    """Parse markup into a flat list of formatted characters."""

    def __init__(
        self,
        formats: Optional[FormatRegistry] = None,
        inliner: Optional[Inliner] = None,
    ) -> None:
        self.formats = formats if formats is not None else default_formats()
        self.inliner = inliner or Inliner()

    def parse(self, markup: Markup = None, inline: bool = True) -> list[Character]:
        """Convert markup to a list of Characters.

        Args:
            markup: Markup text, a BeautifulSoup tree or a Tag. The root
                itself is treated as a container; only its children
                contribute characters.
            inline: Flatten block elements before walking the tree

        Returns:
            Characters in document order, each owning its format map
        """
        root = load_markup(markup)
        if inline:
            root = load_markup(self.inliner.inline_blocks(root))

        return clone_characters(self._chars_in_node(root, {}))

    def node_formats(self, tag: Tag, inherited: Mapping[str, FormatValue]) -> FormatMap:
        """Detect the formats that apply to the content of ``tag``."""
        return self.formats.detect(tag, inherited)

    def _chars_in_node(self, node: Tag, inherited: FormatMap) -> list[Character]:
        chars: list[Character] = []

        for child in node.children:
            if isinstance(child, PreformattedString):
                # comments, doctypes and processing instructions
                continue

            if isinstance(child, NavigableString):
                chars.extend(self._chars_in_text(str(child), inherited))
            elif isinstance(child, Tag) and child.name == "br":
                chars.append(Character(text="\n"))
            elif isinstance(child, Tag):
                chars.extend(
                    self._chars_in_node(child, self.node_formats(child, inherited))
                )
                if not self.inliner.is_inline(child):
                    chars.append(Character(text="\n"))

        return chars

    def _chars_in_text(self, text: str, inherited: FormatMap) -> list[Character]:
        # one map per text node, shared until the final clone
        format_map = prune_format(inherited)
        return [Character(text=char, format=format_map) for char in text]


def parse_markup(
    markup: Markup,
    formats: Optional[FormatRegistry] = None,
    inline: bool = True,
) -> list[Character]:
    """Parse markup with a one-off parser."""
    return MarkupParser(formats).parse(markup, inline=inline)
