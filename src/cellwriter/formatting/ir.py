"""Intermediate Representation for the character buffer.

This module defines the data structures shared by the parser, the
document and the history. A document is a flat list of ``Character``
cells; ``Run`` objects are derived views produced for serialization.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

FormatValue = Union[bool, dict]
FormatMap = dict[str, FormatValue]


def copy_format(format_map: Mapping[str, FormatValue]) -> FormatMap:
    """Copy a format map, including attribute dicts, keeping key order."""
    return {
        name: dict(value) if isinstance(value, dict) else value
        for name, value in format_map.items()
    }


def prune_format(format_map: Optional[Mapping[str, Any]]) -> FormatMap:
    """Drop falsy entries from a format map."""
    if not format_map:
        return {}
    return copy_format({name: value for name, value in format_map.items() if value})


def same_format(a: Mapping[str, FormatValue], b: Mapping[str, FormatValue]) -> bool:
    """Structural equality of two format maps, key order included."""
    return list(a.items()) == list(b.items())


@dataclass
class Character:
    """A single code point of the document with its own format map.

    Attributes:
        text: One code point
        format: Format name to ``True`` or an attribute dict
    """

    text: str
    format: FormatMap = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: Union["Character", Mapping[str, Any]]) -> "Character":
        """Build a Character from another Character or a plain mapping."""
        if isinstance(value, Character):
            return value.copy()
        return cls(text=value.get("text", ""), format=prune_format(value.get("format")))

    def copy(self) -> "Character":
        """Return an independent copy of this character."""
        return Character(text=self.text, format=copy_format(self.format))

    def has(self, name: str) -> bool:
        """Check if the format is present (key presence, not truthiness)."""
        return name in self.format

    def to_dict(self) -> dict:
        return {"text": self.text, "format": copy_format(self.format)}


@dataclass
class Run:
    """A maximal span of characters sharing the same format map.

    Attributes:
        text: Concatenated text of the span
        format: The shared format map
    """

    text: str
    format: FormatMap = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"text": self.text, "format": copy_format(self.format)}

    def __str__(self) -> str:
        return self.text


@dataclass
class HistoryEntry:
    """A buffer snapshot together with the action that produced it."""

    snapshot: list[Character]
    action: str
    args: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Trigger:
    """An exact-text pattern bound to a zero-argument callback."""

    pattern: str
    callback: Callable[[], Any]

    def __call__(self) -> Any:
        return self.callback()


@dataclass
class InsertResult:
    """Outcome of ``Document.insert_text``.

    Attributes:
        start: Position of the first inserted character
        length: Number of inserted characters
        fired: Triggers matched while inserting, in order. The caller
            is responsible for invoking them.
    """

    start: int = 0
    length: int = 0
    fired: tuple[Trigger, ...] = ()

    @property
    def end(self) -> int:
        return self.start + self.length

    def fire(self) -> None:
        """Invoke every matched trigger in order."""
        for trigger in self.fired:
            trigger()


def clone_characters(characters: list[Character]) -> list[Character]:
    """Deep copy a character sequence."""
    return [character.copy() for character in characters]
