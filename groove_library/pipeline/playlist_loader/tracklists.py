"""Manual tracklist side-table: loading and merging.

Mixcloud often has no track listing for older uploads, so the site keeps a
hand-entered table keyed by cloudcast slug (``"username/mix-slug"``):

.. code-block:: json

    {
      "legendarymusic/tokyo-nights-vol-1": [
        {"position": 1, "artist": "Tatsuro Yamashita", "track": "Sparkle", "start_time": 0}
      ]
    }

The merge is a pure enrichment step applied to the loader's output. It never
touches the network and never mutates its inputs.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

from groove_library.exceptions import DataValidationError

logger = logging.getLogger(__name__)

TracklistTable = dict[str, list[dict[str, Any]]]


def cloudcast_slug(key: str) -> str:
    """Strip the surrounding slashes of a cloudcast key.

    >>> cloudcast_slug("/legendarymusic/tokyo-nights/")
    'legendarymusic/tokyo-nights'
    """
    return key.strip("/")


def _to_section(track: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "section_type": "track",
        "position": track.get("position"),
        "track": {"artist": track.get("artist"), "name": track.get("track")},
        "start_time": track.get("start_time") or None,
    }


def merge_tracklists(
    items: Iterable[Mapping[str, Any]], tracklist_table: Mapping[str, list[Any]]
) -> list[dict[str, Any]]:
    r"""Overlay manual tracklists onto cloudcasts by slug.

    Parameters
    ----------
    items : Iterable[Mapping[str, Any]]
        Cloudcasts as returned by the API, each with a ``key``.
    tracklist_table : Mapping[str, list]
        Manual tracklists keyed by cloudcast slug.

    Returns
    -------
    list[dict[str, Any]]
        Items in the same order. Matched items are shallow copies whose
        ``sections`` hold the manual tracks in API section shape; other
        items are returned as copies of the originals.

    Examples
    --------
    >>> table = {"u/a": [{"position": 1, "artist": "X", "track": "Y"}]}
    >>> merged = merge_tracklists([{"key": "/u/a/"}, {"key": "/u/b/"}], table)
    >>> merged[0]["sections"][0]["track"]
    {'artist': 'X', 'name': 'Y'}
    >>> "sections" in merged[1]
    False
    """
    merged: list[dict[str, Any]] = []
    for item in items:
        tracks = tracklist_table.get(cloudcast_slug(str(item.get("key", ""))))
        if not tracks:
            merged.append(dict(item))
            continue
        logger.info(
            "Adding manual tracklist for: %s (%d tracks)", item.get("name"), len(tracks)
        )
        merged.append({**item, "sections": [_to_section(t) for t in tracks]})
    return merged


def load_tracklist_table(path: Path) -> TracklistTable:
    """Load the manual tracklist table.

    The file is optional: a missing file yields an empty table and a
    warning. A file that exists but is not a JSON object mapping slugs to
    lists of track objects raises ``DataValidationError``.
    """
    if not path.exists():
        logger.warning("No manual tracklists file at %s; continuing without it", path)
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as err:
        raise DataValidationError(
            f"Could not read tracklists file {path}: {err}", context={"path": str(path)}
        ) from err
    if not isinstance(data, dict):
        raise DataValidationError(
            f"Tracklists file {path} must contain a JSON object",
            context={"path": str(path)},
        )
    for slug, tracks in data.items():
        if not isinstance(tracks, list) or not all(isinstance(t, dict) for t in tracks):
            raise DataValidationError(
                f"Tracklist for {slug!r} must be a list of track objects",
                context={"path": str(path), "slug": slug},
            )
    return data
