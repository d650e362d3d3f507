"""CLI commands for the tagged cache.

Provides command-line interface using Typer:
- tagcache stats: Memory filling and index sizes
- tagcache tags: List registered tags
- tagcache ids: List ids, optionally filtered by tags
- tagcache inspect: Show one entry's metadata
- tagcache clean: Invalidate entries by cleaning mode

Usage:
    tagcache --help
    tagcache ids --tag catalog --tag eu
    tagcache clean --mode matching_tag --tag eu --yes
"""

import typer

from tagcache.cli.clean_cmd import app as clean_app
from tagcache.cli.inspect_cmd import app as inspect_app
from tagcache.cli.list_cmd import ids_app, tags_app
from tagcache.cli.stats_cmd import app as stats_app

# Main CLI application
app = typer.Typer(
    name="tagcache",
    help="tagcache: tag-indexed Redis cache administration",
    no_args_is_help=True,
)

app.add_typer(stats_app, name="stats")
app.add_typer(tags_app, name="tags")
app.add_typer(ids_app, name="ids")
app.add_typer(inspect_app, name="inspect")
app.add_typer(clean_app, name="clean")


@app.callback()
def callback() -> None:
    """tagcache: tag-indexed Redis cache administration."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
