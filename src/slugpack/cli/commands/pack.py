"""slugpack pack command - Package a root module and its local modules."""

import io
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ...archive import Archive, ArchiveMeta
from ...config import ArchiveConfig
from ...core.exceptions import MaxSizeExceededError, SlugpackError

console = Console()


def pack_command(
    path: str,
    base: Optional[str],
    output: str,
    config: ArchiveConfig,
    walk: bool = True,
):
    """
    Pack a module tree into a gzipped tarball.

    The archive is assembled in memory and only written to output once
    packing has succeeded, so a failed run never leaves a partial file.
    """
    try:
        arc = Archive(
            path,
            base,
            max_size=config.max_size,
            dereference=config.dereference,
            ignore_file=config.ignore_file,
        )

        if walk:
            arc.walk()

        buf = io.BytesIO()
        meta = arc.pack(buf)

        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(buf.getvalue())

    except MaxSizeExceededError as e:
        console.print(
            f"[red]Error:[/red] module too large, limit {e.limit} bytes (compressed)"
        )
        raise typer.Exit(1)
    except SlugpackError as e:
        console.print(f"[red]Pack failed:[/red] {e}")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]Pack failed:[/red] cannot write {output}: {e}")
        raise typer.Exit(1)

    _display_pack_summary(arc, meta, output_path)


def _display_pack_summary(arc: Archive, meta: ArchiveMeta, output_path: Path):
    """Display pack summary."""
    summary = Table(show_header=False, box=None)
    summary.add_column("Item", style="bold")
    summary.add_column("Value", style="cyan")

    summary.add_row("Modules", str(len(arc.mods)))
    summary.add_row("Base", arc.base)
    summary.add_row("Root path", arc.root_path())
    summary.add_row("Entries", str(len(meta.files)))
    summary.add_row("Size", f"{meta.size / 1024:.1f} KB")
    summary.add_row("Compressed", f"{meta.compressed_size / 1024:.1f} KB")
    summary.add_row("Archive", os.fspath(output_path))

    console.print(summary)
    console.print(
        Panel(
            f"[bold]{arc.root}[/bold] packed successfully",
            title="✓ Pack Complete",
            expand=False,
            border_style="green",
        )
    )
