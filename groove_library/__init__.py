"""Groove Library site builder package.

This package fetches cloudcast metadata for the configured Mixcloud
collections at build time and renders it into a static HTML website. There
is no runtime server: every page is produced once per build from a fresh
fetch.

Package Structure
-----------------
- `pipeline/playlist_loader/`:
    Paginated, rate-limit aware Mixcloud fetching that never fails the
    build, plus the manual tracklist side-table merge.
- `pipeline/website_generator/`:
    Display helpers, HTML rendering and the site build runner.
- `config.py`: Configuration constants (paths, API defaults, playlists), as UPPER_SNAKE_CASE.
- `exceptions.py`: Project-specific exception classes.
- `program_build_site.py`, `program_list_mixes.py`: command-line entry points.

Examples
--------
>>> import groove_library
>>> # See program_build_site.py for the build entry point.
"""
