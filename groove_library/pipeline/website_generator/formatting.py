"""Display helpers for rendered playlist pages.

Small, pure formatting functions used while turning cloudcast records into
page content: dates, durations, text truncation, player embed URLs and
number formatting.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

from groove_library.config import MIXCLOUD_PLAYER_BASE, TRUNCATE_LENGTH


def current_year() -> int:
    """Return the current year for copyright notices."""
    return datetime.now(timezone.utc).year


def format_date(date_string: str) -> str:
    """Format an ISO-8601 timestamp as e.g. ``"March 5, 2024"``.

    Unparseable input is returned unchanged.

    >>> format_date("2024-03-05T18:30:00Z")
    'March 5, 2024'
    """
    try:
        parsed = datetime.fromisoformat(date_string.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return date_string
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def format_duration(seconds: Any) -> str:
    """Format a duration in seconds as ``"1h 5m"`` or ``"45m"``.

    Numeric strings are accepted; anything else that is not a number
    yields an empty string.

    >>> format_duration(3900)
    '1h 5m'
    >>> format_duration(2700)
    '45m'
    """
    try:
        total = int(float(seconds or 0))
    except (TypeError, ValueError, OverflowError):
        return ""
    hours, remainder = divmod(total, 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def truncate(text: str, length: int = TRUNCATE_LENGTH) -> str:
    """Cut ``text`` to ``length`` characters, adding an ellipsis when cut."""
    if len(text) <= length:
        return text
    return text[:length].strip() + "..."


def mixcloud_embed_url(key: str) -> str:
    """Return the Mixcloud widget iframe URL for a cloudcast key.

    >>> mixcloud_embed_url("/legendarymusic/tokyo-nights/")
    'https://player.mixcloud.com/widget/iframe/?hide_cover=1&feed=%2Flegendarymusic%2Ftokyo-nights%2F'
    """
    clean_key = key[1:] if key.startswith("/") else key
    return f"{MIXCLOUD_PLAYER_BASE}?hide_cover=1&feed={quote('/' + clean_key, safe='')}"


def has_items(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0


def format_number(value: Any) -> Any:
    """Add thousands separators to numbers; return anything else unchanged.

    >>> format_number(1234567)
    '1,234,567'
    >>> format_number("n/a")
    'n/a'
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    return f"{value:,}"
