#!/usr/bin/env python3
"""
cellwriter - rich-text document model

Simple usage:
    python writer.py page.html               # Outputs page-cells.html
    python writer.py page.html --to text     # Outputs page-cells.txt
    python writer.py page.html --to json -s  # Prints the runs as JSON
"""

import sys
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from cellwriter.cli import app

if __name__ == "__main__":
    app()
