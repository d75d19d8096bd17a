"""Selection-aware editing commands on top of a Document.

The editor owns no screen state. The host reports the selection and
renders ``editor.html`` (or listens to ``on_change``) after commands.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from cellwriter.config import get_settings
from cellwriter.core.document import Callback, Document
from cellwriter.formatting.formats import FormatName, FormatRule, default_formats
from cellwriter.formatting.inliner import Markup
from cellwriter.formatting.ir import Character, FormatValue, InsertResult

logger = logging.getLogger(__name__)


@dataclass
class Selection:
    """A caret (``length == 0``) or a selected range."""

    start: int = 0
    length: int = 0

    @property
    def end(self) -> int:
        return self.start + self.length

    @property
    def collapsed(self) -> bool:
        return self.length == 0


class Editor:
    """Editing commands bound to a document and a selection.

    Args:
        markup: Initial markup for the document
        formats: Extra or overriding format rules, merged over the defaults
        history: Maximum undo steps
        breaks: Allow line breaks from ``enter``; ``Settings.breaks`` if omitted
        triggers: Ordered mapping of exact document text to a callback
        on_change: Called with the new markup after every command
        on_undo: Called with ``(snapshot, action, args)`` after undo
        on_redo: Called with ``(snapshot, action, args)`` after redo
    """

    def __init__(
        self,
        markup: Markup = None,
        *,
        formats: Optional[Mapping[str, FormatRule]] = None,
        history: Optional[int] = None,
        breaks: Optional[bool] = None,
        triggers: Optional[Mapping[str, Callable[[], Any]]] = None,
        on_change: Optional[Callable[[str], Any]] = None,
        on_undo: Optional[Callback] = None,
        on_redo: Optional[Callback] = None,
    ) -> None:
        self.formats = default_formats().extend(formats or {})
        self.breaks = get_settings().breaks if breaks is None else breaks
        self.on_change = on_change or (lambda html: None)
        self.selection = Selection()

        self.document = Document(
            markup,
            formats=self.formats,
            history=history,
            triggers=triggers,
            on_undo=self._history_callback(on_undo),
            on_redo=self._history_callback(on_redo),
        )
        self.html = self.document.to_html()

        self.commands: dict[str, Callable[..., Any]] = {
            "bold": self.bold,
            "code": self.code,
            "delete": self.delete,
            "deleteForward": self.delete_forward,
            "enter": self.enter,
            "insert": self.insert,
            "italic": self.italic,
            "link": self.link,
            "paste": self.paste,
            "strikeThrough": self.strike_through,
            "subscript": self.subscript,
            "superscript": self.superscript,
            "unlink": self.unlink,
        }

    # =========================================================================
    # Dispatch
    # =========================================================================

    def command(self, command: Union[str, Callable[..., Any]], *args: Any) -> Any:
        """Run a registered command by name, or any callable."""
        if callable(command):
            return command(*args)

        handler = self.commands.get(command)
        if handler is None:
            logger.debug("Unknown editor command: %s", command)
            return None
        return handler(*args)

    def update(self) -> str:
        """Re-render the document and notify ``on_change``."""
        self.html = self.document.to_html()
        self.on_change(self.html)
        return self.html

    def select(self, start: int, length: int = 0) -> Selection:
        """Move the selection, clamped to the document."""
        start = min(max(start, 0), len(self.document))
        length = min(max(length or 0, 0), len(self.document) - start)
        self.selection = Selection(start=start, length=length)
        return self.selection

    # =========================================================================
    # Formatting
    # =========================================================================

    def format(self, name: str, attributes: Optional[dict] = None) -> None:
        """Toggle ``name`` on the selection."""
        start, length = self.selection.start, self.selection.length
        self.document.toggle_format(name, start, length, attributes)
        self.update()
        self.select(start, length)

    def bold(self) -> None:
        self.format(FormatName.BOLD)

    def code(self) -> None:
        self.format(FormatName.CODE)

    def italic(self) -> None:
        self.format(FormatName.ITALIC)

    def strike_through(self) -> None:
        self.format(FormatName.STRIKE_THROUGH)

    def subscript(self) -> None:
        self.format(FormatName.SUBSCRIPT)

    def superscript(self) -> None:
        self.format(FormatName.SUPERSCRIPT)

    def link(self, href: str) -> None:
        start, length = self.selection.start, self.selection.length
        self.document.add_format(FormatName.LINK, start, length, {"href": href})
        self.update()
        self.select(start, length)

    def unlink(self) -> None:
        start, length = self.selection.start, self.selection.length
        self.document.remove_format(FormatName.LINK, start, length)
        self.update()
        self.select(start, length)

    def active_formats(self) -> list[str]:
        return self.document.active_formats(self.selection.start, self.selection.length)

    def active_link(self) -> Optional[FormatValue]:
        return self.document.active_link(self.selection.start, self.selection.length)

    # =========================================================================
    # Text
    # =========================================================================

    def insert(self, text: str, at: Optional[int] = None) -> InsertResult:
        """Insert text, move the caret behind it and run fired triggers."""
        at = self.selection.start if at is None else at
        result = self.document.insert_text(text, at)
        self.update()
        self.select(result.end)
        result.fire()
        return result

    def delete(self) -> bool:
        """Delete the selection, or the character before the caret."""
        start, length = self.selection.start, self.selection.length
        if length == 0:
            start, length = start - 1, 1
        if start < 0:
            return False

        self.document.remove_text(start, length)
        self.update()
        self.select(start)
        return True

    def delete_forward(self) -> bool:
        """Delete the selection, or the character after the caret."""
        start, length = self.selection.start, self.selection.length or 1
        if start >= len(self.document):
            return False

        self.document.remove_text(start, length)
        self.update()
        self.select(start)
        return True

    def enter(self) -> bool:
        """Insert a line break at the caret when breaks are enabled."""
        if not self.breaks:
            return False
        self.insert("\n", self.selection.start)
        return True

    def paste(self, markup: Markup) -> list[Character]:
        """Parse ``markup`` and inject the characters at the caret."""
        start = self.selection.start
        chars = self.document.parser.parse(markup)
        self.document.inject(chars, start)
        self.update()
        self.select(start + len(chars))
        return chars

    # =========================================================================
    # History
    # =========================================================================

    def undo(self) -> None:
        self.document.undo()

    def redo(self) -> None:
        self.document.redo()

    def _history_callback(self, callback: Optional[Callback]) -> Callback:
        def handle(snapshot: list[Character], action: str, args: dict) -> None:
            self.update()
            if args.get("start") is not None:
                self.select(args["start"], args.get("length", 0))
            else:
                self.select(self.selection.start, self.selection.length)
            if callback is not None:
                callback(snapshot, action, args)

        return handle

    # =========================================================================
    # Output
    # =========================================================================

    def to_html(self, start: Optional[int] = None, length: Optional[int] = None) -> str:
        return self.document.to_html(start, length)

    def to_json(self, start: Optional[int] = None, length: Optional[int] = None) -> list[dict]:
        return self.document.to_json(start, length)

    def to_text(self, start: Optional[int] = None, length: Optional[int] = None) -> str:
        return self.document.to_text(start, length)
