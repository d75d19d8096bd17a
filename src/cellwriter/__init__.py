"""cellwriter - a character-cell rich-text document model."""

__version__ = "0.1.0"
