"""Website rendering utilities for the static playlist site.

This module turns playlist render contexts (see ``data_aggregator``) and the
optional Markdown playlist descriptions into HTML pages, and writes them to
disk. It is the lowest layer of the website generator: it knows nothing
about fetching or about which playlists exist.

System Boundaries
-----------------
- Accepts only already aggregated contexts; agnostic to the loader.
- Templates are plain HTML files with ``{placeholder}`` tokens, filled with
  ``fill_template``. Every value coming from the API is HTML-escaped before
  it reaches a template.
- Each page renders one of three states: populated (item cards), empty
  (``EMPTY_PLAYLIST_HTML``) or error (``ERROR_PLAYLIST_HTML``), so a failed
  fetch still yields a valid page.

Example
-------
>>> from groove_library.pipeline.website_generator import renderer
>>> html = renderer.render_playlist_body({"state": "empty", "items": []})
>>> "playlist-empty" in html
True
"""

from __future__ import annotations

import json
import logging
import re
from html import escape
from pathlib import Path
from typing import Any, Iterable, Mapping

from groove_library.config import (
    DESCRIPTION_FILENAME_SUFFIX,
    EMPTY_PLAYLIST_HTML,
    ERROR_DESCRIPTION_HTML,
    ERROR_PLAYLIST_HTML,
    FALLBACK_DESCRIPTION_HTML,
    SITE_NAME,
)

from .data_aggregator import STATE_EMPTY, STATE_ERROR
from .formatting import current_year, format_date, format_number, truncate

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{([a-z_]+)\}")


def fill_template(template: str, values: Mapping[str, Any]) -> str:
    """Replace ``{name}`` tokens whose name is a key of ``values``.

    Unknown tokens are left untouched, so literal braces in inline CSS or
    scripts survive.

    >>> fill_template("<h1>{title}</h1>{other}", {"title": "Mixes"})
    '<h1>Mixes</h1>{other}'
    """

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        return str(values[name]) if name in values else match.group(0)

    return _PLACEHOLDER.sub(replace, template)


def load_template(path: Path) -> str:
    with path.open("r", encoding="utf-8") as fh:
        return fh.read()


def get_playlist_description_html(slug: str, descriptions_dir: Path) -> str:
    r"""Render the optional Markdown description of a playlist.

    Loads ``{slug}.md`` from ``descriptions_dir`` and converts it with
    `markdown2`. A missing file yields ``FALLBACK_DESCRIPTION_HTML``; any
    conversion error yields ``ERROR_DESCRIPTION_HTML``.

    Parameters
    ----------
    slug : str
        Playlist page slug.
    descriptions_dir : Path
        Directory holding the description Markdown files.

    Returns
    -------
    str
        Cleaned HTML, or one of the fallback blobs.

    Examples
    --------
    >>> import tempfile
    >>> d = Path(tempfile.mkdtemp())
    >>> _ = (d / "easton-chop-up.md").write_text("# Easton", encoding="utf-8")
    >>> get_playlist_description_html("easton-chop-up", d)
    '<h1>Easton</h1>'
    """
    markdown_file_path = descriptions_dir / f"{slug}{DESCRIPTION_FILENAME_SUFFIX}"
    if not markdown_file_path.exists():
        return FALLBACK_DESCRIPTION_HTML
    try:
        import markdown2

        markdown_text = markdown_file_path.read_text(encoding="utf-8")
        description_html = markdown2.markdown(
            markdown_text, extras=["tables", "fenced-code-blocks"]
        )
        return clean_html_output(str(description_html))
    except Exception:
        logger.exception("Failed to render description for %s", slug)
        return ERROR_DESCRIPTION_HTML


def clean_html_output(html_content: str) -> str:
    r"""Normalize HTML produced from Markdown.

    Removes empty paragraphs, collapses repeated line breaks and strips
    whitespace between tags.

    Raises
    ------
    TypeError
        If input is not str.

    Examples
    --------
    >>> clean_html_output("<p></p><h1>Hi</h1><p>&nbsp;</p><br><br>")
    '<h1>Hi</h1><br>'
    """
    if not isinstance(html_content, str):
        raise TypeError("Input must be a string.")
    html_content = re.sub(r"<p>\s*</p>", "", html_content)
    html_content = re.sub(r"<p>&nbsp;</p>", "", html_content)
    html_content = re.sub(r"<p><br\s*/?>\s*</p>", "", html_content)
    html_content = re.sub(r"(<br\s*/?>\s*){2,}", "<br>", html_content)
    html_content = re.sub(r">\s+<", "><", html_content)
    return html_content.strip()


def render_tracklist(rows: list[dict[str, Any]]) -> str:
    if not rows:
        return ""
    entries = "".join(
        f"<li><span class=\"track-artist\">{escape(r['artist'])}</span>"
        f" - <span class=\"track-name\">{escape(r['name'])}</span></li>"
        for r in rows
    )
    return f'<ol class="tracklist">{entries}</ol>'


def render_item_cards(items: Iterable[Mapping[str, Any]]) -> str:
    """Render display records as ``<article>`` cards, in order."""
    cards: list[str] = []
    for item in items:
        tags = "".join(
            f'<li class="tag">{escape(tag)}</li>' for tag in item.get("tags", [])
        )
        artwork = (
            f'<img class="mix-artwork" src="{escape(item["artwork_url"])}" '
            f'alt="{escape(item["name"])}" loading="lazy">'
            if item.get("artwork_url")
            else ""
        )
        cards.append(
            '<article class="mix-card">'
            f"{artwork}"
            f'<h2 class="mix-title"><a href="{escape(item["url"])}">{escape(item["name"])}</a></h2>'
            f'<p class="mix-meta"><time datetime="{escape(item["created_time"])}">'
            f'{escape(item["created_display"])}</time> &middot; {escape(item["duration_display"])}'
            f' &middot; {escape(str(item["play_count"]))} plays</p>'
            f'<ul class="mix-tags">{tags}</ul>'
            f'<iframe class="mix-player" data-src="{escape(item["embed_url"])}" '
            f'title="{escape(item["name"])}" height="120" frameborder="0"></iframe>'
            f"{render_tracklist(item.get('tracklist', []))}"
            "</article>"
        )
    return "".join(cards)


def render_playlist_body(context: Mapping[str, Any]) -> str:
    """Return the body HTML for the context's page state."""
    state = context.get("state")
    if state == STATE_ERROR:
        return ERROR_PLAYLIST_HTML
    if state == STATE_EMPTY:
        return EMPTY_PLAYLIST_HTML
    return f'<section class="mix-grid">{render_item_cards(context.get("items", []))}</section>'


def _json_for_script(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False).replace("</", "<\\/")


def generate_playlist_html(
    context: Mapping[str, Any], template_path: Path, description_html: str = ""
) -> str:
    r"""Render a full playlist page from its context.

    The template may use ``{site_name}``, ``{title}``, ``{description_html}``,
    ``{body_html}``, ``{item_count}``, ``{fetched_at}``, ``{playlist_json}``
    and ``{current_year}``.

    Raises
    ------
    OSError
        If the template file cannot be read.
    """
    template = load_template(template_path)
    return fill_template(
        template,
        {
            "site_name": escape(SITE_NAME),
            "title": escape(str(context.get("title", ""))),
            "description_html": description_html,
            "body_html": render_playlist_body(context),
            "item_count": format_number(int(context.get("item_count", 0))),
            "fetched_at": escape(format_date(str(context.get("fetched_at", "")))),
            "playlist_json": _json_for_script(context),
            "current_year": current_year(),
        },
    )


def generate_index_html(
    contexts: Iterable[Mapping[str, Any]],
    template_path: Path,
    profile: Mapping[str, Any] | None = None,
) -> str:
    """Render the site index linking every playlist page."""
    links = "".join(
        f'<li><a href="{escape(c["slug"])}/">{escape(str(c["title"]))}</a>'
        f' <span class="playlist-count">({format_number(int(c.get("item_count", 0)))} mixes)</span></li>'
        for c in contexts
    )
    profile_html = ""
    if profile:
        bio = escape(truncate(str(profile.get("biog") or "")))
        name = escape(str(profile.get("name") or profile.get("username") or ""))
        profile_html = f'<section class="profile"><h2>{name}</h2><p>{bio}</p></section>'
    return fill_template(
        load_template(template_path),
        {
            "site_name": escape(SITE_NAME),
            "profile_html": profile_html,
            "playlist_links_html": f'<ul class="playlist-links">{links}</ul>',
            "current_year": current_year(),
        },
    )


def write_html_output(html_content: str, output_file: Path) -> bool:
    """Write HTML to disk, creating parent directories; log on failure.

    Returns ``True`` when the file was written.
    """
    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(html_content, encoding="utf-8")
    except OSError:
        logger.exception("Failed to write HTML output to %s", output_file)
        return False
    return True
