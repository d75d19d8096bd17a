"""Document, history and editing commands for cellwriter."""

from cellwriter.core.history import History
from cellwriter.core.document import Document
from cellwriter.core.editor import Editor, Selection

__all__ = [
    "History",
    "Document",
    "Editor",
    "Selection",
]
