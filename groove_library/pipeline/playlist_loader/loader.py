"""Paginated collection loader.

``load_collection`` walks every page of a Mixcloud collection, in order, and
returns a single ``PlaylistFetchResult``. It is the only function the build
needs to call per playlist and it never raises: an unrecoverable upstream
failure becomes a result with ``failure`` set and no items, so a broken API
never breaks the site build.

Per call the loader moves through ``Idle -> Fetching(cursor)`` and then
either re-enters ``Fetching`` with the next cursor or ends in ``Done`` or
``Failed``. Pages are requested strictly one after another because each
cursor is only known once the previous response has arrived.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import aiohttp
from aiolimiter import AsyncLimiter

from groove_library.config import (
    DEFAULT_MAX_PAGES,
    DEFAULT_PAGE_DELAY,
    DEFAULT_PAGE_SIZE,
)
from groove_library.exceptions import DataValidationError

from .client import fetch_json_with_retry
from .config import LoaderConfig
from .models import PlaylistFetchResult

logger = logging.getLogger(__name__)

PostProcess = Callable[[list[dict[str, Any]]], list[dict[str, Any]]]


def collection_url(base_url: str, collection_id: str, page_size: int | None = None) -> str:
    """Return the first-page URL for a collection.

    >>> collection_url("https://api.mixcloud.com/", "/legendarymusic/playlists/easton-chop-up/")
    'https://api.mixcloud.com/legendarymusic/playlists/easton-chop-up/cloudcasts/'
    >>> collection_url("https://api.mixcloud.com", "legendarymusic", page_size=100)
    'https://api.mixcloud.com/legendarymusic/cloudcasts/?limit=100'
    """
    url = f"{base_url.rstrip('/')}/{collection_id.strip('/')}/cloudcasts/"
    if page_size:
        url += f"?limit={int(page_size)}"
    return url


def _next_cursor(page: dict[str, Any]) -> str | None:
    paging = page.get("paging")
    if not isinstance(paging, dict):
        return None
    nxt = paging.get("next")
    return nxt if isinstance(nxt, str) and nxt else None


async def _fetch_all_pages(
    session: aiohttp.ClientSession,
    first_url: str,
    config: Any,
    limiter: AsyncLimiter | None,
) -> list[dict[str, Any]]:
    max_pages = int(getattr(config, "max_pages", DEFAULT_MAX_PAGES))
    page_delay = float(getattr(config, "page_delay", DEFAULT_PAGE_DELAY))

    items: list[dict[str, Any]] = []
    visited: set[str] = set()
    cursor: str | None = first_url
    pages = 0
    while cursor:
        visited.add(cursor)
        page = await fetch_json_with_retry(session, cursor, config, limiter=limiter)
        pages += 1
        data = page.get("data")
        if isinstance(data, list):
            items.extend(data)
            logger.info("Fetched %d cloudcasts (total: %d)", len(data), len(items))

        cursor = _next_cursor(page)
        if cursor is None:
            break
        if pages >= max_pages:
            logger.warning(
                "Stopping pagination of %s after %d pages (page limit reached)",
                first_url,
                pages,
            )
            break
        if cursor in visited:
            logger.warning("Pagination of %s looped back to %s; stopping", first_url, cursor)
            break
        await asyncio.sleep(page_delay)
    return items


async def load_collection(
    base_url: str,
    collection_id: str,
    *,
    config: Any = None,
    session: aiohttp.ClientSession | None = None,
    limiter: AsyncLimiter | None = None,
    post_process: PostProcess | None = None,
) -> PlaylistFetchResult:
    r"""Fetch every cloudcast of a collection into a single result.

    Parameters
    ----------
    base_url : str
        Mixcloud API base URL, e.g. ``"https://api.mixcloud.com"``.
    collection_id : str
        ``"username"`` for a user's uploads or
        ``"username/playlists/<slug>"`` for a playlist.
    config : Any, optional
        Loader settings (see ``LoaderConfig``). Read from the environment
        when omitted.
    session : aiohttp.ClientSession | None, optional
        Session to reuse. When omitted a session is opened and closed
        around this call.
    limiter : AsyncLimiter | None, optional
        Request budget shared with other concurrent loads.
    post_process : callable, optional
        Pure ``items -> items`` step applied to the accumulated items on
        success, e.g. ``functools.partial(merge_tracklists, tracklist_table=t)``.

    Returns
    -------
    PlaylistFetchResult
        Items of every page in server order, or an empty result with
        ``failure`` describing the error. Reaching the page limit or a
        repeated cursor ends pagination and still counts as success.

    Raises
    ------
    Never propagates; all errors are converted into a failed result.

    Examples
    --------
    >>> import asyncio
    >>> result = asyncio.run(
    ...     load_collection("https://api.mixcloud.com", "legendarymusic/playlists/easton-chop-up")
    ... )  # doctest: +SKIP
    >>> result.ok, result.item_count  # doctest: +SKIP
    (True, 42)
    """
    try:
        if not collection_id or not collection_id.strip("/ "):
            raise DataValidationError("Collection id must be a non-empty string")
        if config is None:
            config = LoaderConfig()
        first_url = collection_url(
            base_url, collection_id, getattr(config, "page_size", DEFAULT_PAGE_SIZE)
        )
        logger.info("Fetching cloudcasts for %s...", collection_id)

        if session is None:
            async with aiohttp.ClientSession() as own_session:
                items = await _fetch_all_pages(own_session, first_url, config, limiter)
        else:
            items = await _fetch_all_pages(session, first_url, config, limiter)

        if post_process is not None:
            items = post_process(items)
    except Exception as err:
        logger.error("Error fetching cloudcasts for %s: %s", collection_id, err)
        return PlaylistFetchResult.failed(collection_id, err)

    logger.info("Successfully fetched %d cloudcasts from %s", len(items), collection_id)
    return PlaylistFetchResult.succeeded(collection_id, items)
