"""The document: a character buffer with range based formatting.

All ranges are half-open ``[start, start + length)``. ``start`` defaults
to 0 and ``length`` to the characters remaining after ``start``. Ranges
outside the buffer are clamped; no operation raises for bad indices.
"""

import logging
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Union

from cellwriter.config import get_settings
from cellwriter.core.history import History
from cellwriter.formatting.formats import FormatRegistry, default_formats, escape_text
from cellwriter.formatting.inliner import Markup
from cellwriter.formatting.ir import (
    Character,
    FormatValue,
    HistoryEntry,
    InsertResult,
    Run,
    Trigger,
    clone_characters,
    copy_format,
    same_format,
)
from cellwriter.formatting.parser import MarkupParser

logger = logging.getLogger(__name__)

Callback = Callable[[list[Character], str, dict], Any]
CharacterLike = Union[Character, Mapping[str, Any]]

TRAILING_BREAK = "&nbsp;"


def _noop(*args: Any) -> None:
    return None


class Document:
    """Authoritative character buffer with snapshot undo/redo.

    Args:
        markup: Optional initial markup (text or a BeautifulSoup tree)
        formats: Format registry; a fresh ``default_formats()`` if omitted
        history: Maximum undo steps; ``Settings.history_limit`` if omitted
        on_commit: Called with ``(buffer, action, args)`` after each change
        on_undo: Called with ``(snapshot, action, args)`` after undo
        on_redo: Called with ``(snapshot, action, args)`` after redo
        triggers: Ordered mapping of exact document text to a callback
        parser: Parser used for the initial markup
    """

    def __init__(
        self,
        markup: Markup = None,
        *,
        formats: Optional[FormatRegistry] = None,
        history: Optional[int] = None,
        on_commit: Optional[Callback] = None,
        on_undo: Optional[Callback] = None,
        on_redo: Optional[Callback] = None,
        triggers: Optional[Mapping[str, Callable[[], Any]]] = None,
        parser: Optional[MarkupParser] = None,
    ) -> None:
        self.formats = formats if formats is not None else default_formats()
        self.parser = parser or MarkupParser(self.formats)

        limit = history if history is not None else get_settings().history_limit
        self.history: History[HistoryEntry] = History(limit)

        self.on_commit = on_commit or _noop
        self.on_undo = on_undo or _noop
        self.on_redo = on_redo or _noop

        self.triggers = tuple(
            Trigger(pattern, callback) for pattern, callback in (triggers or {}).items()
        )
        self._trigger_length = max((len(t.pattern) for t in self.triggers), default=0)

        self._buffer: list[Character] = (
            self.parser.parse(markup) if markup is not None else []
        )

        # keep the initial state in history
        self._remember(self._buffer, "init", {})

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self) -> Iterator[Character]:
        return iter(self.clone())

    def __repr__(self) -> str:
        return f"Document(length={len(self._buffer)}, text={self.to_text()!r})"

    # =========================================================================
    # Ranges
    # =========================================================================

    def _start(self, start: Optional[int]) -> int:
        return min(max(start or 0, 0), len(self._buffer))

    def _range(self, start: Optional[int], length: Optional[int]) -> tuple[int, int]:
        """Resolve ``start``/``length`` into clamped ``(begin, end)`` indices."""
        begin = self._start(start)
        remaining = len(self._buffer) - begin
        if length is None:
            length = remaining
        return begin, begin + max(0, min(length, remaining))

    def _position(self, position: Optional[int]) -> int:
        if position is None:
            return len(self._buffer)
        return self._start(position)

    def length(self) -> int:
        return len(self._buffer)

    def length_after(self, start: Optional[int] = None) -> int:
        """Number of characters from ``start`` to the end."""
        return len(self._buffer) - self._start(start)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, start: Optional[int] = None, length: Optional[int] = None) -> list[Character]:
        """Return copies of the characters in range."""
        begin, end = self._range(start, length)
        return clone_characters(self._buffer[begin:end])

    def clone(self) -> list[Character]:
        return clone_characters(self._buffer)

    def has_format(
        self,
        name: Optional[str] = None,
        start: Optional[int] = None,
        length: Optional[int] = None,
    ) -> bool:
        """Check if every character in range carries ``name``."""
        if name is None:
            return False
        begin, end = self._range(start, length)
        return all(char.has(str(name)) for char in self._buffer[begin:end])

    def active_formats(
        self, start: Optional[int] = None, length: Optional[int] = None
    ) -> list[str]:
        """Formats applied uniformly across the whole range.

        Partially applied formats are left out. Names are listed in the
        key order of the first character.
        """
        begin, end = self._range(start, length)
        chars = self._buffer[begin:end]
        if not chars:
            return []
        return [
            name for name in chars[0].format
            if all(char.has(name) for char in chars)
        ]

    def active_link(
        self, start: Optional[int] = None, length: Optional[int] = None
    ) -> Optional[FormatValue]:
        """Attributes of the last link in range, or None."""
        begin, end = self._range(start, length)
        link: Optional[FormatValue] = None
        for char in self._buffer[begin:end]:
            if char.has("link"):
                link = char.format["link"]
        return dict(link) if isinstance(link, dict) else link

    # =========================================================================
    # Serialization
    # =========================================================================

    def runs(self, start: Optional[int] = None, length: Optional[int] = None) -> list[Run]:
        """Merge adjacent characters with identical format maps."""
        begin, end = self._range(start, length)
        runs: list[Run] = []

        for char in self._buffer[begin:end]:
            if runs and same_format(runs[-1].format, char.format):
                runs[-1].text += char.text
            else:
                runs.append(Run(text=char.text, format=copy_format(char.format)))

        return runs

    def to_json(self, start: Optional[int] = None, length: Optional[int] = None) -> list[dict]:
        """Runs in range as JSON-ready dicts."""
        return [run.to_dict() for run in self.runs(start, length)]

    def to_text(self, start: Optional[int] = None, length: Optional[int] = None) -> str:
        begin, end = self._range(start, length)
        return "".join(char.text for char in self._buffer[begin:end])

    def to_html(self, start: Optional[int] = None, length: Optional[int] = None) -> str:
        """Render the range as markup.

        Each run's text is escaped and then wrapped by the renderer of
        every format in key order, so the first format ends up innermost.
        A trailing line break gets a non-breaking space so the empty last
        line stays visible.
        """
        parts: list[str] = []

        for run in self.runs(start, length):
            markup = escape_text(run.text)
            for name, value in run.format.items():
                markup = self.formats.render(name, markup, value)
            parts.append(markup)

        html = "".join(parts)
        if html.endswith("\n"):
            html += TRAILING_BREAK
        return html

    # =========================================================================
    # Mutations
    # =========================================================================

    def insert_text(self, text: str, position: Optional[int] = None) -> InsertResult:
        """Insert ``text`` one code point at a time.

        Inserted characters take over the formats of the character
        currently at ``position``, so typing inside a formatted run extends
        it. Triggers matching the whole document text are collected in the
        result; invoking them is up to the caller.
        """
        start = self._position(position)
        if not text:
            return InsertResult(start=start)

        buffer = list(self._buffer)
        fired: list[Trigger] = []

        for offset, char in enumerate(text):
            index = start + offset
            inherited = buffer[index].format if index < len(buffer) else {}
            buffer.insert(index, Character(text=char, format=copy_format(inherited)))

            trigger = self._match_trigger(buffer)
            if trigger is not None:
                fired.append(trigger)

        self.commit(buffer, "insertText", {"text": text, "start": start, "length": len(text)})
        return InsertResult(start=start, length=len(text), fired=tuple(fired))

    def remove_text(self, position: Optional[int] = None, length: Optional[int] = None) -> None:
        """Remove ``length`` characters (at least one) from ``position``.

        ``position`` defaults to the last character.
        """
        if not self._buffer:
            return

        start = len(self._buffer) - 1 if position is None else self._start(position)
        length = 1 if not length or length < 1 else length
        if start >= len(self._buffer):
            return

        buffer = self._buffer[:start] + self._buffer[start + length:]
        self.commit(buffer, "removeText", {"start": start, "length": length})

    def add_format(
        self,
        name: str,
        start: Optional[int] = None,
        length: Optional[int] = None,
        attributes: Optional[dict] = None,
    ) -> None:
        """Set ``name`` on every character in range."""
        name = str(name)
        value: FormatValue = dict(attributes) if attributes is not None else True
        begin, end = self._range(start, length)

        buffer = list(self._buffer)
        for index in range(begin, end):
            format_map = copy_format(buffer[index].format)
            format_map[name] = dict(value) if isinstance(value, dict) else value
            buffer[index] = Character(text=buffer[index].text, format=format_map)

        self.commit(buffer, "addFormat", {
            "format": name,
            "attributes": attributes,
            "start": begin,
            "length": end - begin,
        })

    def remove_format(
        self,
        name: str,
        start: Optional[int] = None,
        length: Optional[int] = None,
    ) -> None:
        """Delete ``name`` from every character in range."""
        name = str(name)
        begin, end = self._range(start, length)

        buffer = list(self._buffer)
        for index in range(begin, end):
            format_map = copy_format(buffer[index].format)
            format_map.pop(name, None)
            buffer[index] = Character(text=buffer[index].text, format=format_map)

        self.commit(buffer, "removeFormat", {
            "format": name,
            "start": begin,
            "length": end - begin,
        })

    def remove_formats(self, start: Optional[int] = None, length: Optional[int] = None) -> None:
        """Clear all formats in range."""
        begin, end = self._range(start, length)

        buffer = list(self._buffer)
        for index in range(begin, end):
            buffer[index] = Character(text=buffer[index].text)

        self.commit(buffer, "removeFormats", {"start": begin, "length": end - begin})

    def toggle_format(
        self,
        name: str,
        start: Optional[int] = None,
        length: Optional[int] = None,
        attributes: Optional[dict] = None,
    ) -> None:
        """Remove ``name`` if the whole range has it, otherwise add it."""
        if self.has_format(name, start, length):
            self.remove_format(name, start, length)
        else:
            self.add_format(name, start, length, attributes)

    def append(self, content: Iterable[CharacterLike]) -> None:
        """Add characters to the end of the document."""
        self.inject(content, None, action="append")

    def inject(
        self,
        content: Iterable[CharacterLike],
        start: Optional[int] = None,
        *,
        action: str = "inject",
    ) -> None:
        """Splice characters in before index ``start`` (default: the end)."""
        chars = [Character.from_value(value) for value in content]
        begin = self._position(start)

        buffer = self._buffer[:begin] + chars + self._buffer[begin:]
        self.commit(buffer, action, {
            "content": [char.to_dict() for char in chars],
            "start": begin,
            "length": len(chars),
        })

    def replace(self, buffer: Iterable[CharacterLike]) -> None:
        """Swap the live buffer without touching the history."""
        self._buffer = [Character.from_value(value) for value in buffer]

    # =========================================================================
    # History
    # =========================================================================

    def commit(self, buffer: list[Character], action: str, args: dict) -> None:
        """Record ``buffer`` in the history and make it the live buffer.

        ``on_commit`` runs between the two steps and may adjust
        ``buffer`` in place; the adjusted value becomes live.
        """
        self._remember(buffer, action, args)
        logger.debug("commit %s %s", action, args)
        self.on_commit(buffer, action, args)
        self.replace(buffer)

    def undo(self) -> Optional[HistoryEntry]:
        """Restore the previous snapshot. No-op at the initial state."""
        if not self.history.can_undo:
            return None
        return self._recall(self.history.undo(), self.on_undo)

    def redo(self) -> Optional[HistoryEntry]:
        """Restore the snapshot that was last undone."""
        return self._recall(self.history.redo(), self.on_redo)

    def _remember(self, buffer: list[Character], action: str, args: dict) -> None:
        self.history.push(
            HistoryEntry(snapshot=clone_characters(buffer), action=action, args=dict(args))
        )

    def _recall(self, entry: Optional[HistoryEntry], callback: Callback) -> Optional[HistoryEntry]:
        if entry is None:
            return None
        self._buffer = clone_characters(entry.snapshot)
        callback(clone_characters(entry.snapshot), entry.action, dict(entry.args))
        return entry

    def _match_trigger(self, buffer: list[Character]) -> Optional[Trigger]:
        if not self.triggers or len(buffer) > self._trigger_length:
            return None

        text = "".join(char.text for char in buffer)
        for trigger in self.triggers:
            if text == trigger.pattern:
                return trigger
        return None
