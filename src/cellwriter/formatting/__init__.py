"""Character IR, format registry and markup parsing."""

from cellwriter.formatting.ir import (
    Character,
    Run,
    HistoryEntry,
    InsertResult,
    Trigger,
)
from cellwriter.formatting.formats import (
    FormatName,
    FormatRule,
    FormatRegistry,
    default_formats,
)
from cellwriter.formatting.inliner import Inliner, inline_blocks
from cellwriter.formatting.parser import MarkupParser, parse_markup

__all__ = [
    "Character",
    "Run",
    "HistoryEntry",
    "InsertResult",
    "Trigger",
    "FormatName",
    "FormatRule",
    "FormatRegistry",
    "default_formats",
    "Inliner",
    "inline_blocks",
    "MarkupParser",
    "parse_markup",
]
