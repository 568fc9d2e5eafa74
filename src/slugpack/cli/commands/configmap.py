"""slugpack configmap command - Render a ConfigMap embedding the archive."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ...archive import config_map
from ...config import ArchiveConfig
from ...core.exceptions import MaxSizeExceededError, SlugpackError

console = Console()


def configmap_command(
    path: str,
    namespace: str,
    name: str,
    base: Optional[str],
    output: Optional[str],
    config: ArchiveConfig,
):
    try:
        payload = config_map(
            namespace,
            name,
            path,
            base,
            max_size=config.max_size,
            key=config.config_map_key,
            ignore_file=config.ignore_file,
            dereference=config.dereference,
        )
    except MaxSizeExceededError as e:
        console.print(
            f"[red]Error:[/red] module too large, limit {e.limit} bytes (compressed)"
        )
        raise typer.Exit(1)
    except SlugpackError as e:
        console.print(f"[red]ConfigMap failed:[/red] {e}")
        raise typer.Exit(1)

    manifest = json.dumps(payload.to_manifest(), indent=2)

    if output is None:
        typer.echo(manifest)
        return

    Path(output).write_text(manifest + "\n", encoding="utf-8")
    console.print(
        f"[green]✓[/green] Wrote ConfigMap {namespace}/{name} "
        f"({payload.compressed_size} bytes, root path {payload.root_path}) to {output}"
    )
