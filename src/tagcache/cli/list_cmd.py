"""CLI commands for listing tags and ids.

Usage:
    tagcache tags
    tagcache ids
    tagcache ids --tag catalog --tag eu        # carrying both
    tagcache ids --tag catalog --tag eu --any  # carrying either
    tagcache ids --tag catalog --not           # carrying neither
"""

from __future__ import annotations

import typer
from rich.console import Console

from tagcache.backend import TaggedRedisBackend
from tagcache.cli._runtime import run_with_backend
from tagcache.errors import FeatureDisabledError

tags_app = typer.Typer(help="List registered tags")
ids_app = typer.Typer(help="List cache ids")


@tags_app.callback(invoke_without_command=True)
def list_tags() -> None:
    """List every registered tag (including tags with no entries left)."""
    for tag in sorted(run_with_backend(lambda backend: backend.list_tags())):
        typer.echo(tag)


@ids_app.callback(invoke_without_command=True)
def list_ids(
    tags: list[str] = typer.Option(
        [],
        "--tag",
        "-t",
        help="Filter by tag (repeatable)",
    ),
    any_tag: bool = typer.Option(
        False,
        "--any",
        help="Match ids carrying any of the tags instead of all",
    ),
    negate: bool = typer.Option(
        False,
        "--not",
        help="Match ids carrying none of the tags (needs track_all_ids)",
    ),
) -> None:
    """List ids, optionally filtered by tags."""
    if any_tag and negate:
        raise typer.BadParameter("--any and --not are mutually exclusive")

    async def _query(backend: TaggedRedisBackend) -> list[str]:
        if negate:
            return await backend.ids_not_matching_tags(tags)
        if not tags:
            return await backend.list_ids()
        if any_tag:
            return await backend.ids_matching_any_tags(tags)
        return await backend.ids_matching_tags(tags)

    try:
        ids = run_with_backend(_query)
    except FeatureDisabledError as e:
        Console(stderr=True).print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    for cache_id in sorted(ids):
        typer.echo(cache_id)
