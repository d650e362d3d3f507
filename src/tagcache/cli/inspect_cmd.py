"""CLI command for inspecting one cache entry.

Usage:
    tagcache inspect product:42
"""

from __future__ import annotations

from datetime import datetime, timezone

import typer
from rich.console import Console

from tagcache.cli._runtime import run_with_backend

app = typer.Typer(help="Show metadata of a cache entry")


def _format_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


@app.callback(invoke_without_command=True)
def inspect(
    cache_id: str = typer.Argument(..., help="Cache id to inspect"),
) -> None:
    """Show expiry, modification time and tags of an entry."""
    console = Console()
    meta = run_with_backend(lambda backend: backend.metadata(cache_id))

    if meta is None:
        console.print(f"[yellow]Not found:[/yellow] {cache_id}")
        raise typer.Exit(1)

    console.print(f"[bold]{cache_id}[/bold]")
    console.print(f"  modified: {_format_ts(meta.mtime)}")
    console.print(f"  expires:  {'never' if meta.expire is None else _format_ts(meta.expire)}")
    console.print(f"  tags:     {', '.join(meta.tags) or '-'}")
