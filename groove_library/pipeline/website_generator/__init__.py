"""Website generator pipeline package.

Turns playlist loader results into static HTML pages: ``data_aggregator``
shapes each fetch result for display, ``renderer`` fills the page templates
and writes them, and ``runner`` drives a full site build.

Usage
-----
    >>> from groove_library.pipeline.website_generator import run_from_config
    >>> run_from_config()  # doctest: +SKIP
    True
"""

from .data_aggregator import build_playlist_context, format_cloudcast
from .renderer import (
    clean_html_output,
    generate_index_html,
    generate_playlist_html,
    get_playlist_description_html,
    write_html_output,
)
from .runner import build_site, run_from_config

__all__ = [
    "build_playlist_context",
    "build_site",
    "clean_html_output",
    "format_cloudcast",
    "generate_index_html",
    "generate_playlist_html",
    "get_playlist_description_html",
    "run_from_config",
    "write_html_output",
]
