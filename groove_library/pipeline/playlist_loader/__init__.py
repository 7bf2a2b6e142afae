"""The playlist_loader package fetches Mixcloud collections for the site build.

It bundles the retrying HTTP primitive, the paginated collection loader, the
immutable result record and the manual tracklist merge. The loader is the
package's public face: it always returns a ``PlaylistFetchResult`` and never
raises, so one unavailable collection cannot fail the build.

Modules exported
----------------
load_collection, collection_url
    Paginated collection fetching.
fetch_json_with_retry, fetch_profile
    Retrying GET primitive and the user profile lookup.
PlaylistFetchResult
    Result record consumed by the website generator.
LoaderConfig
    Environment-driven loader settings.
merge_tracklists, load_tracklist_table
    Manual tracklist side-table handling.

Examples
--------
>>> import asyncio
>>> from functools import partial
>>> from groove_library.pipeline.playlist_loader import load_collection, merge_tracklists
>>> merge = partial(merge_tracklists, tracklist_table={})
>>> # asyncio.run(load_collection("https://api.mixcloud.com", "legendarymusic", post_process=merge))
"""

from __future__ import annotations

from .client import fetch_json_with_retry, fetch_profile
from .config import LoaderConfig
from .loader import collection_url, load_collection
from .models import PlaylistFetchResult
from .tracklists import cloudcast_slug, load_tracklist_table, merge_tracklists

__all__ = [
    "LoaderConfig",
    "PlaylistFetchResult",
    "cloudcast_slug",
    "collection_url",
    "fetch_json_with_retry",
    "fetch_profile",
    "load_collection",
    "load_tracklist_table",
    "merge_tracklists",
]
