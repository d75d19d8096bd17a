"""Bounded undo/redo history."""

from typing import Generic, Optional, TypeVar

T = TypeVar("T")

DEFAULT_LIMIT = 100


class History(Generic[T]):
    """Two-stack undo/redo journal.

    The undo stack holds at most ``limit + 1`` values: the current state
    plus ``limit`` steps back. Without a positive limit the stack holds
    ``DEFAULT_LIMIT`` values in total. Pushing a new value clears the redo
    stack.

    Example:
        >>> history = History()
        >>> _ = history.push(1).push(2).push(3)
        >>> history.undo()
        2
    """

    def __init__(self, limit: Optional[int] = DEFAULT_LIMIT) -> None:
        self.size = limit + 1 if limit and limit > 0 else DEFAULT_LIMIT
        self.undo_stack: list[T] = []
        self.redo_stack: list[T] = []

    def push(self, value: Optional[T]) -> "History[T]":
        """Add ``value`` unless it is None or the very object on top."""
        top = self.undo_stack[-1] if self.undo_stack else None
        if value is not None and value is not top:
            self.undo_stack.append(value)

        if len(self.undo_stack) > self.size:
            del self.undo_stack[: len(self.undo_stack) - self.size]

        self.redo_stack.clear()
        return self

    def undo(self) -> Optional[T]:
        """Step back; return the new current value or None."""
        if not self.undo_stack:
            return None
        self.redo_stack.append(self.undo_stack.pop())
        return self.undo_stack[-1] if self.undo_stack else None

    def redo(self) -> Optional[T]:
        """Step forward; return the restored value or None."""
        if not self.redo_stack:
            return None
        value = self.redo_stack.pop()
        self.undo_stack.append(value)
        return value

    @property
    def can_undo(self) -> bool:
        return len(self.undo_stack) > 1

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def __len__(self) -> int:
        return len(self.undo_stack)

    def __repr__(self) -> str:
        return (
            f"History(undo={len(self.undo_stack)}, redo={len(self.redo_stack)}, "
            f"size={self.size})"
        )

