"""Command-line interface for cellwriter."""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from cellwriter import __version__
from cellwriter.config import get_settings
from cellwriter.core.document import Document

app = typer.Typer(
    name="cellwriter",
    help="Normalize rich-text markup through the cellwriter document model.",
    add_completion=False,
)
console = Console()

SUPPORTED_EXTENSIONS = (".html", ".htm", ".xhtml")


class OutputFormat(str, Enum):
    html = "html"
    text = "text"
    json = "json"


OUTPUT_SUFFIX = {
    OutputFormat.html: ".html",
    OutputFormat.text: ".txt",
    OutputFormat.json: ".json",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"cellwriter v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def generate_output_path(input_path: Path, to: OutputFormat) -> Path:
    """Generate output path with -cells suffix."""
    return input_path.parent / f"{input_path.stem}-cells{OUTPUT_SUFFIX[to]}"


def render(document: Document, to: OutputFormat) -> str:
    """Serialize a document in the requested output format."""
    if to is OutputFormat.text:
        return document.to_text()
    if to is OutputFormat.json:
        return json.dumps(document.to_json(), ensure_ascii=False, indent=2)
    return document.to_html()


def process_file(
    input_path: Path,
    output_path: Optional[Path],
    to: OutputFormat,
    verbose: bool,
) -> bool:
    """Process a single file. Returns True on success."""
    if not input_path.exists():
        console.print(f"[red]Error:[/red] File not found: {input_path}")
        return False

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        console.print(
            f"[yellow]Skipping:[/yellow] {input_path.name} "
            f"(unsupported format: {ext})"
        )
        return False

    if output_path is None:
        output_path = generate_output_path(input_path, to)

    if verbose:
        console.print(f"[blue]Processing:[/blue] {input_path}")
        console.print(f"[blue]Output:[/blue] {output_path}")
        console.print(f"[blue]Format:[/blue] {to.value}")

    try:
        document = Document(input_path.read_text(encoding="utf-8"))
        output_path.write_text(render(document, to), encoding="utf-8")
        console.print(
            f"[green]Success:[/green] {output_path} "
            f"({len(document)} characters, {len(document.runs())} runs)"
        )
        return True
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error processing {input_path.name}:[/red] {e}")
        if verbose:
            console.print_exception()
        return False


@app.command()
def main(
    path: Path = typer.Argument(
        ...,
        help="HTML file to normalize",
        exists=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path (default: <name>-cells.<ext> next to the input)",
    ),
    to: OutputFormat = typer.Option(
        OutputFormat.html,
        "--to",
        "-t",
        help="Output format: html (normalized markup), text or json (runs)",
        case_sensitive=False,
    ),
    stdout: bool = typer.Option(
        False,
        "--stdout",
        "-s",
        help="Print the result instead of writing a file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Parse an HTML file into formatted characters and write it back out.

    Examples:

        python writer.py page.html

        python writer.py page.html --to text

        python writer.py page.html --to json --stdout
    """
    configure_logging(verbose)

    if path.is_dir():
        console.print(f"[red]Error:[/red] Expected a file, got a directory: {path}")
        raise typer.Exit(1)

    if stdout:
        try:
            document = Document(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
        typer.echo(render(document, to))
        raise typer.Exit(0)

    success = process_file(path, output, to, verbose)
    raise typer.Exit(0 if success else 1)


if __name__ == "__main__":
    app()
