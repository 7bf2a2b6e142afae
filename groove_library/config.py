"""Global configuration constants for the project.

Defines paths, API defaults, the playlist registry and the rendering
fallbacks used across the site build pipeline.
"""

from __future__ import annotations

from pathlib import Path

# Project directories
PROJECT_ROOT: Path = Path(__file__).resolve().parents[1]
PACKAGE_DIR: Path = PROJECT_ROOT / "groove_library"
DATA_DIR: Path = PROJECT_ROOT / "data"
LOG_DIR: Path = PROJECT_ROOT / "logs"
TEMPLATES_DIR: Path = PROJECT_ROOT / "templates"
OUTPUT_DIR: Path = PROJECT_ROOT / "_site"

# Mixcloud API
MIXCLOUD_API_BASE: str = "https://api.mixcloud.com"
MIXCLOUD_USERNAME: str = "legendarymusic"
MIXCLOUD_PLAYER_BASE: str = "https://player.mixcloud.com/widget/iframe/"

# Loader defaults (overridable through environment, see playlist_loader.config)
DEFAULT_MAX_ATTEMPTS: int = 3
DEFAULT_INITIAL_RETRY_DELAY: float = 1.0
DEFAULT_PAGE_DELAY: float = 0.2
DEFAULT_MAX_PAGES: int = 100
DEFAULT_REQUEST_TIMEOUT: int = 30
DEFAULT_PAGE_SIZE: int = 100
# Shared request budget for all concurrent playlist loads in one build
DEFAULT_REQUESTS_PER_SECOND: float = 5.0

# Manual tracklist side-table, keyed by cloudcast slug ("user/mix-slug")
TRACKLISTS_FILE: Path = DATA_DIR / "tracklists.json"
DESCRIPTIONS_DIR: Path = DATA_DIR / "descriptions"

# Playlists rendered by the site build, keyed by page slug.
# ``collection_id`` is either a username (all uploads) or
# ``username/playlists/<playlist-slug>``.
PLAYLISTS: dict[str, dict[str, object]] = {
    "legendary-music": {
        "title": "Legendary Music",
        "collection_id": MIXCLOUD_USERNAME,
        "merge_tracklists": False,
    },
    "easton-chop-up": {
        "title": "Easton Chop Up",
        "collection_id": f"{MIXCLOUD_USERNAME}/playlists/easton-chop-up",
        "merge_tracklists": False,
    },
    "the-japan-groove-library": {
        "title": "The Japan Groove Library",
        "collection_id": f"{MIXCLOUD_USERNAME}/playlists/the-japan-groove-library",
        "merge_tracklists": True,
    },
}

# Website generation defaults
SITE_NAME: str = "The Groove Library"
PLAYLIST_TEMPLATE_PATH: Path = TEMPLATES_DIR / "playlist_template.html"
INDEX_TEMPLATE_PATH: Path = TEMPLATES_DIR / "index_template.html"
PAGE_FILENAME: str = "index.html"
DESCRIPTION_FILENAME_SUFFIX: str = ".md"
TRUNCATE_LENGTH: int = 150
FALLBACK_DESCRIPTION_HTML: str = ""
ERROR_DESCRIPTION_HTML: str = "<p>Error loading description.</p>"
EMPTY_PLAYLIST_HTML: str = '<p class="playlist-empty">No mixes in this playlist yet.</p>'
ERROR_PLAYLIST_HTML: str = (
    '<p class="playlist-error">Unable to load mixes right now. Please check back later.</p>'
)

# Logging
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILENAME_BUILD_SITE: str = "build_site.log"
