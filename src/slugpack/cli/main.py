"""Main CLI entry point for slugpack."""

from importlib import metadata
from typing import Optional

import typer
from rich.console import Console

from ..config import ArchiveConfig


def get_version() -> str:
    """Get the package version from metadata."""
    try:
        return metadata.version("slugpack")
    except metadata.PackageNotFoundError:
        return "unknown"


console = Console()


def load_config() -> ArchiveConfig:
    """Read ArchiveConfig from the environment, exiting on invalid values."""
    try:
        return ArchiveConfig.from_env()
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1)

# command: slugpack
app = typer.Typer(
    name="slugpack",
    help="Package Terraform modules into size-bounded archives for remote runs",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# command: slugpack <command>


@app.command("pack")
def pack_cmd(
    path: str = typer.Argument(".", help="Root module directory"),
    base: Optional[str] = typer.Option(
        None, "--base", "-b", help="Directory archive paths are relative to (e.g. repo root)"
    ),
    output: str = typer.Option(
        "slug.tar.gz", "--output", "-o", help="Archive file to write"
    ),
    max_size: Optional[int] = typer.Option(
        None, "--max-size", min=0, help="Max compressed size in bytes, 0 for unlimited"
    ),
    no_walk: bool = typer.Option(
        False, "--no-walk", help="Do not include local modules called by the root module"
    ),
    no_dereference: bool = typer.Option(
        False, "--no-dereference", help="Skip symlinks pointing outside a module"
    ),
):
    """Pack a root module and its local modules into a gzipped tarball."""
    from .commands.pack import pack_command

    config = load_config()
    if max_size is not None:
        config.max_size = max_size
    if no_dereference:
        config.dereference = False

    return pack_command(path, base, output, config, walk=not no_walk)


@app.command("extract")
def extract_cmd(
    archive: str = typer.Argument(..., help="Archive file to extract"),
    dest: str = typer.Argument(".", help="Destination directory"),
):
    """Extract an archive created by slugpack pack."""
    from .commands.extract import extract_command

    return extract_command(archive, dest)


@app.command("configmap")
def configmap_cmd(
    path: str = typer.Argument(".", help="Root module directory"),
    namespace: str = typer.Option("default", "--namespace", "-n", help="ConfigMap namespace"),
    name: str = typer.Option(..., "--name", help="ConfigMap name"),
    base: Optional[str] = typer.Option(
        None, "--base", "-b", help="Directory archive paths are relative to (e.g. repo root)"
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write manifest JSON to file instead of stdout"
    ),
    no_dereference: bool = typer.Option(
        False, "--no-dereference", help="Skip symlinks pointing outside a module"
    ),
):
    """Render a ConfigMap manifest embedding the packed archive."""
    from .commands.configmap import configmap_command

    config = load_config()
    if no_dereference:
        config.dereference = False

    return configmap_command(path, namespace, name, base, output, config)


@app.command("version")
def version_cmd():
    """Show version information."""
    console.print(f"slugpack [bold]{get_version()}[/bold]")


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
