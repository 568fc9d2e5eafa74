"""slugpack extract command - Unpack an archive into a directory."""

import typer
from rich.console import Console

from ...archive import extract
from ...core.exceptions import SlugpackError

console = Console()


def extract_command(archive: str, dest: str):
    """Extract archive into dest, creating dest if needed."""
    try:
        entries = extract(archive, dest)
    except SlugpackError as e:
        console.print(f"[red]Extract failed:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Extracted {entries} entries to [bold]{dest}[/bold]")
