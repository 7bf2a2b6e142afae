"""Build the static playlist site.

This module provides a headless runner that loads every configured
playlist through the playlist loader, overlays manual tracklists where
configured, and renders one page per playlist plus the index page. It is
intended for programmatic invocation and for the ``program_build_site``
command-line entry point.

A playlist whose fetch failed still gets a page (the error state); only
unexpected problems such as an unreadable template or an unwritable output
directory make the build fail.

Usage Examples
--------------
Typical programmatic usage with config defaults::

    from groove_library.pipeline.website_generator.runner import run_from_config
    ok = run_from_config()

Building a subset into a custom directory::

    from pathlib import Path
    run_from_config(output_dir=Path("/tmp/site"), slugs=["easton-chop-up"])
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from pathlib import Path
from typing import Any, Mapping

import aiohttp
from aiolimiter import AsyncLimiter

from groove_library.config import (
    DEFAULT_REQUESTS_PER_SECOND,
    DESCRIPTIONS_DIR,
    INDEX_TEMPLATE_PATH,
    MIXCLOUD_API_BASE,
    MIXCLOUD_USERNAME,
    OUTPUT_DIR,
    PAGE_FILENAME,
    PLAYLIST_TEMPLATE_PATH,
    PLAYLISTS,
    TRACKLISTS_FILE,
)
from groove_library.pipeline.playlist_loader import (
    LoaderConfig,
    PlaylistFetchResult,
    fetch_profile,
    load_collection,
    load_tracklist_table,
    merge_tracklists,
)

from .data_aggregator import build_playlist_context
from .renderer import (
    generate_index_html,
    generate_playlist_html,
    get_playlist_description_html,
    write_html_output,
)

logger = logging.getLogger(__name__)


def make_limiter(config: Any) -> AsyncLimiter:
    """Return a limiter admitting ``config.requests_per_second`` requests, evenly spaced."""
    rate = float(getattr(config, "requests_per_second", DEFAULT_REQUESTS_PER_SECOND))
    return AsyncLimiter(1, 1.0 / rate)


async def _load_all(
    session: aiohttp.ClientSession,
    playlists: Mapping[str, Mapping[str, Any]],
    config: Any,
    tracklist_table: Mapping[str, list[Any]],
    username: str | None,
) -> tuple[dict[str, PlaylistFetchResult], dict[str, Any] | None]:
    base_url = getattr(config, "api_base", MIXCLOUD_API_BASE)
    limiter = make_limiter(config)

    def post_process_for(playlist: Mapping[str, Any]):
        if playlist.get("merge_tracklists") and tracklist_table:
            return partial(merge_tracklists, tracklist_table=tracklist_table)
        return None

    loads = [
        load_collection(
            base_url,
            str(playlist["collection_id"]),
            config=config,
            session=session,
            limiter=limiter,
            post_process=post_process_for(playlist),
        )
        for playlist in playlists.values()
    ]
    if username:
        profile_task = fetch_profile(session, base_url, username, config, limiter=limiter)
        *results, profile = await asyncio.gather(*loads, profile_task)
    else:
        results = list(await asyncio.gather(*loads))
        profile = None
    return dict(zip(playlists.keys(), results)), profile


async def build_site(
    output_dir: Path,
    playlists: Mapping[str, Mapping[str, Any]] | None = None,
    *,
    config: Any = None,
    session: aiohttp.ClientSession | None = None,
    tracklists_file: Path = TRACKLISTS_FILE,
    descriptions_dir: Path = DESCRIPTIONS_DIR,
    playlist_template: Path = PLAYLIST_TEMPLATE_PATH,
    index_template: Path = INDEX_TEMPLATE_PATH,
    username: str | None = MIXCLOUD_USERNAME,
) -> dict[str, PlaylistFetchResult]:
    r"""Fetch every playlist and write the site into ``output_dir``.

    Parameters
    ----------
    output_dir : Path
        Destination directory; each playlist is written to
        ``output_dir/<slug>/index.html`` and the index to
        ``output_dir/index.html``.
    playlists : Mapping, optional
        Playlist registry (slug to ``title``/``collection_id``/
        ``merge_tracklists``). Defaults to ``PLAYLISTS``.
    config : Any, optional
        Loader settings; ``LoaderConfig()`` when omitted.
    session : aiohttp.ClientSession | None, optional
        Session shared by every request. Opened and closed here when omitted.
    username : str | None, optional
        Mixcloud user whose profile is shown on the index; ``None`` skips it.

    Returns
    -------
    dict[str, PlaylistFetchResult]
        Fetch result per playlist slug.

    Raises
    ------
    DataValidationError
        If the tracklists file exists but is malformed.
    OSError
        If a template cannot be read or a page cannot be written.
    """
    playlists = PLAYLISTS if playlists is None else playlists
    config = LoaderConfig() if config is None else config
    needs_tracklists = any(playlist.get("merge_tracklists") for playlist in playlists.values())
    tracklist_table = load_tracklist_table(tracklists_file) if needs_tracklists else {}

    if session is None:
        async with aiohttp.ClientSession() as own_session:
            results, profile = await _load_all(
                own_session, playlists, config, tracklist_table, username
            )
    else:
        results, profile = await _load_all(
            session, playlists, config, tracklist_table, username
        )

    contexts = []
    unwritten: list[Path] = []
    for slug, playlist in playlists.items():
        context = build_playlist_context(
            results[slug], slug=slug, title=str(playlist.get("title", slug))
        )
        contexts.append(context)
        html = generate_playlist_html(
            context,
            playlist_template,
            get_playlist_description_html(slug, descriptions_dir),
        )
        page = output_dir / slug / PAGE_FILENAME
        if not write_html_output(html, page):
            unwritten.append(page)

    index_page = output_dir / PAGE_FILENAME
    if not write_html_output(generate_index_html(contexts, index_template, profile), index_page):
        unwritten.append(index_page)
    if unwritten:
        raise OSError(f"Failed to write {len(unwritten)} page(s): {unwritten[0]}")

    failed = [slug for slug, result in results.items() if not result.ok]
    logger.info(
        "Built %d playlist pages in %s (%d failed to load%s)",
        len(results),
        output_dir,
        len(failed),
        f": {', '.join(failed)}" if failed else "",
    )
    return results


def select_playlists(
    slugs: list[str] | None,
    playlists: Mapping[str, Mapping[str, Any]] = PLAYLISTS,
) -> dict[str, Mapping[str, Any]]:
    """Return the registry restricted to ``slugs`` (all playlists when empty).

    Raises
    ------
    KeyError
        If a slug is not in the registry.
    """
    if not slugs:
        return dict(playlists)
    unknown = [s for s in slugs if s not in playlists]
    if unknown:
        raise KeyError(f"Unknown playlist slug(s): {', '.join(unknown)}")
    return {s: playlists[s] for s in slugs}


def run_from_config(
    output_dir: Path | None = None,
    slugs: list[str] | None = None,
    config: Any = None,
) -> bool:
    """Build the site with project defaults for anything not given.

    Returns ``True`` when every page was written, even if some playlists
    failed to load; ``False`` if an error occurred (all errors are logged).
    """
    output_dir = Path(output_dir) if output_dir is not None else OUTPUT_DIR
    try:
        playlists = select_playlists(slugs)
        asyncio.run(build_site(output_dir, playlists, config=config))
        return True
    except Exception:
        logger.exception("Failed to build site")
        return False


__all__ = ["build_site", "make_limiter", "run_from_config", "select_playlists"]
