"""data_aggregator.py: shape playlist fetch results for rendering.

This module is the data-oriented half of the website generator. It takes a
``PlaylistFetchResult`` as produced by the playlist loader and turns each raw
cloudcast into the flat, display-ready record the renderer needs, and decides
which of the three page states applies.

Design Principles
-----------------
- Contains *no* rendering/HTML logic and no I/O.
- Never interprets missing cloudcast fields as errors: absent values become
  empty strings or empty lists.
- Page state is derived only from the result: ``"error"`` when the fetch
  failed, ``"empty"`` when it succeeded with no items, otherwise
  ``"populated"``.

Usage
-----
>>> from groove_library.pipeline.playlist_loader import PlaylistFetchResult
>>> ctx = build_playlist_context(
...     PlaylistFetchResult.succeeded("u", []), slug="mixes", title="Mixes"
... )
>>> ctx["state"]
'empty'
"""

from __future__ import annotations

from typing import Any, Mapping

from groove_library.pipeline.playlist_loader.models import PlaylistFetchResult

from .formatting import (
    format_date,
    format_duration,
    format_number,
    has_items,
    mixcloud_embed_url,
)

STATE_POPULATED = "populated"
STATE_EMPTY = "empty"
STATE_ERROR = "error"

ARTWORK_SIZES = ("extra_large", "large", "medium", "thumbnail")


def artwork_url(pictures: Any) -> str:
    """Return the largest available artwork URL, or an empty string."""
    if not isinstance(pictures, Mapping):
        return ""
    for size in ARTWORK_SIZES:
        url = pictures.get(size)
        if url:
            return str(url)
    return ""


def tracklist_rows(sections: Any) -> list[dict[str, Any]]:
    """Flatten cloudcast ``sections`` into ``position/artist/name/start_time`` rows.

    Only sections of type ``"track"`` are kept.
    """
    rows: list[dict[str, Any]] = []
    if not isinstance(sections, list):
        return rows
    for section in sections:
        if not isinstance(section, Mapping) or section.get("section_type") != "track":
            continue
        track = section.get("track") or {}
        rows.append(
            {
                "position": section.get("position"),
                "artist": str(track.get("artist") or ""),
                "name": str(track.get("name") or ""),
                "start_time": section.get("start_time"),
            }
        )
    return rows


def format_cloudcast(item: Mapping[str, Any]) -> dict[str, Any]:
    """Convert one API cloudcast into a display record."""
    key = str(item.get("key") or "")
    created = str(item.get("created_time") or "")
    tags = item.get("tags") if has_items(item.get("tags")) else []
    return {
        "key": key,
        "name": str(item.get("name") or key.strip("/")),
        "url": str(item.get("url") or ""),
        "embed_url": mixcloud_embed_url(key) if key else "",
        "created_time": created,
        "created_display": format_date(created) if created else "",
        "duration_display": format_duration(item.get("audio_length")),
        "tags": [str(t.get("name")) for t in tags if isinstance(t, Mapping) and t.get("name")],
        "artwork_url": artwork_url(item.get("pictures")),
        "play_count": format_number(item.get("play_count") or 0),
        "tracklist": tracklist_rows(item.get("sections")),
    }


def page_state(result: PlaylistFetchResult) -> str:
    if not result.ok:
        return STATE_ERROR
    return STATE_POPULATED if result.item_count else STATE_EMPTY


def build_playlist_context(
    result: PlaylistFetchResult, *, slug: str, title: str
) -> dict[str, Any]:
    """Build the render context for one playlist page.

    Parameters
    ----------
    result : PlaylistFetchResult
        Loader output for the playlist.
    slug : str
        Page slug, used for the output directory and links.
    title : str
        Human-readable playlist title.

    Returns
    -------
    dict[str, Any]
        Keys ``slug``, ``title``, ``collection_id``, ``state``,
        ``item_count``, ``fetched_at``, ``error`` and ``items`` (display
        records in server order).
    """
    return {
        "slug": slug,
        "title": title,
        "collection_id": result.collection_id,
        "state": page_state(result),
        "item_count": result.item_count,
        "fetched_at": result.fetched_at.isoformat(),
        "error": result.failure,
        "items": [format_cloudcast(item) for item in result.items],
    }
