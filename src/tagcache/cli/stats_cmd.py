"""CLI command for cache statistics.

Usage:
    tagcache stats
    tagcache stats --format json
    tagcache stats --format prometheus > /var/lib/node_exporter/tagcache.prom
"""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table

from tagcache.backend import TaggedRedisBackend
from tagcache.cli._runtime import run_with_backend
from tagcache.observability.metrics import get_metrics

app = typer.Typer(help="Show cache statistics")


async def _collect(backend: TaggedRedisBackend) -> dict[str, int | bool]:
    result: dict[str, int | bool] = {
        "filling_percentage": await backend.filling_percentage(),
        "ids": len(await backend.list_ids()),
        "tags": len(await backend.list_tags()),
        "track_all_ids": backend.track_all_ids,
    }

    metrics = get_metrics()
    metrics.cache_filling_percent.set(result["filling_percentage"])
    metrics.cache_entries.set(result["ids"])
    metrics.cache_tags.set(result["tags"])
    return result


@app.callback(invoke_without_command=True)
def stats(
    output_format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: text, json, prometheus",
    ),
) -> None:
    """Show memory filling and index sizes."""
    result = run_with_backend(_collect)

    if output_format == "json":
        typer.echo(json.dumps(result, indent=2))
        return

    if output_format == "prometheus":
        typer.echo(get_metrics().generate_latest().decode(), nl=False)
        return

    table = Table(title="tagcache")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Memory filling", f"{result['filling_percentage']}%")
    table.add_row("Entries", str(result["ids"]))
    table.add_row("Tags", str(result["tags"]))
    table.add_row("Id registry", "on" if result["track_all_ids"] else "off (SCAN)")
    Console().print(table)
