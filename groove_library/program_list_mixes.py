"""List the mixes of one Mixcloud collection.

Quick inspection tool for playlist maintenance, e.g. to look up the slugs
used as keys in the manual tracklists file::

    python -m groove_library.program_list_mixes legendarymusic/playlists/easton-chop-up
"""

import argparse
import asyncio
import os
import sys

from rich.console import Console
from rich.table import Table

from groove_library.exceptions import ConfigurationError
from groove_library.pipeline.playlist_loader import (
    LoaderConfig,
    PlaylistFetchResult,
    cloudcast_slug,
    load_collection,
)
from groove_library.program_build_site import setup_logging


def build_table(result: PlaylistFetchResult) -> Table:
    table = Table(title=f"{result.collection_id} ({result.item_count} total)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Slug")
    table.add_column("URL", style="cyan")
    for index, mix in enumerate(result.items, start=1):
        table.add_row(
            str(index),
            str(mix.get("name", "")),
            cloudcast_slug(str(mix.get("key", ""))),
            str(mix.get("url", "")),
        )
    return table


def main(argv: list[str] | None = None, console: Console | None = None) -> int:
    parser = argparse.ArgumentParser(description="List the mixes of a Mixcloud collection.")
    parser.add_argument(
        "collection_id", help="'username' or 'username/playlists/<playlist-slug>'"
    )
    parser.add_argument("--log-level", type=str, default="WARNING")
    args = parser.parse_args(argv)
    setup_logging(args.log_level, enable_file=not os.environ.get("DISABLE_FILE_LOGS"))
    console = console or Console()

    try:
        config = LoaderConfig()
    except ConfigurationError as err:
        console.print(f"[red]{err}[/red]")
        return 1
    result = asyncio.run(load_collection(config.api_base, args.collection_id, config=config))
    if not result.ok:
        console.print(f"[red]Could not load {args.collection_id}: {result.failure}[/red]")
        return 1
    console.print(build_table(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
