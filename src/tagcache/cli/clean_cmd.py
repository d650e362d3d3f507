"""CLI command for cleaning the cache.

Usage:
    tagcache clean --mode matching_tag --tag eu
    tagcache clean --mode not_matching_tag --tag keep --yes
    tagcache clean --mode all --yes
"""

from __future__ import annotations

import typer
from rich.console import Console

from tagcache.cli._runtime import run_with_backend
from tagcache.errors import FeatureDisabledError
from tagcache.invalidation import CleaningMode

app = typer.Typer(help="Invalidate cache entries")


@app.callback(invoke_without_command=True)
def clean(
    mode: CleaningMode = typer.Option(
        ...,
        "--mode",
        "-m",
        help="Cleaning mode",
    ),
    tags: list[str] = typer.Option(
        [],
        "--tag",
        "-t",
        help="Tag for tag-based modes (repeatable)",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask for confirmation",
    ),
) -> None:
    """Remove entries selected by a cleaning mode and tags."""
    console = Console()

    if mode is CleaningMode.ALL and not yes:
        typer.confirm("This runs FLUSHALL on the Redis server. Continue?", abort=True)

    try:
        run_with_backend(lambda backend: backend.clean(mode, tags))
    except FeatureDisabledError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print(f"[green]Cleaned[/green] mode={mode.value} tags={tags or '-'}")
