"""Configuration and environment loader for the playlist loader.

This module provides LoaderConfig, which loads, validates, and exposes the
settings used when talking to the Mixcloud API: the API base URL, the retry
and backoff policy, the inter-page delay, the page ceiling and the request
timeout.

Role in Architecture
--------------------
- Forms the boundary between the build environment (shell, CI, `.env`) and
  the loader's runtime settings.
- No fetching logic: only configuration loading, structuring, and validation.

Examples
--------
>>> from groove_library.pipeline.playlist_loader.config import LoaderConfig
>>> cfg = LoaderConfig()
>>> assert cfg.max_attempts >= 1
"""

import os
from pathlib import Path

from dotenv import load_dotenv

import groove_library.config as _project_config
from groove_library.config import (
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_PAGES,
    DEFAULT_PAGE_DELAY,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_REQUESTS_PER_SECOND,
    MIXCLOUD_API_BASE,
)
from groove_library.exceptions import ConfigurationError


def _read_number(name: str, default: float, cast: type) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return cast(default)
    try:
        return cast(raw)
    except ValueError as err:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}", context={"variable": name}
        ) from err


class LoaderConfig:
    r"""Runtime settings for the playlist loader.

    Values come from environment variables, optionally seeded from a `.env`
    file at the project root, and fall back to the defaults in
    `groove_library.config`.

    Attributes
    ----------
    api_base : str
        Base URL of the Mixcloud API (``MIXCLOUD_API_BASE``).
    max_attempts : int
        Total attempts per request, first try included (``MAX_ATTEMPTS``).
    initial_retry_delay : float
        Seconds to wait before the first retry; doubles on each retry
        (``INITIAL_RETRY_DELAY``).
    page_delay : float
        Seconds to wait between consecutive page requests (``PAGE_DELAY``).
    max_pages : int
        Hard ceiling on the number of pages fetched per collection
        (``MAX_PAGES``).
    request_timeout : int
        Wall-clock timeout in seconds for a single request
        (``REQUEST_TIMEOUT``).
    page_size : int | None
        Items requested per page; 0 lets the API decide (``PAGE_SIZE``).
    requests_per_second : float
        Shared request budget across concurrent loads in one build
        (``REQUESTS_PER_SECOND``).

    Raises
    ------
    ConfigurationError
        If a value is not numeric or outside its allowed range.

    Examples
    --------
    >>> import os
    >>> os.environ["MAX_ATTEMPTS"] = "5"
    >>> LoaderConfig().max_attempts
    5
    """

    def __init__(self) -> None:
        env_path = Path(_project_config.PROJECT_ROOT) / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=False)
        self.api_base: str = os.getenv("MIXCLOUD_API_BASE") or MIXCLOUD_API_BASE
        self.max_attempts = int(_read_number("MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS, int))
        self.initial_retry_delay = float(
            _read_number("INITIAL_RETRY_DELAY", DEFAULT_INITIAL_RETRY_DELAY, float)
        )
        self.page_delay = float(_read_number("PAGE_DELAY", DEFAULT_PAGE_DELAY, float))
        self.max_pages = int(_read_number("MAX_PAGES", DEFAULT_MAX_PAGES, int))
        self.request_timeout = int(
            _read_number("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT, int)
        )
        page_size = int(_read_number("PAGE_SIZE", DEFAULT_PAGE_SIZE, int))
        self.page_size: int | None = page_size or None
        self.requests_per_second = float(
            _read_number("REQUESTS_PER_SECOND", DEFAULT_REQUESTS_PER_SECOND, float)
        )
        self._validate()

    def _validate(self) -> None:
        if not self.api_base.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"MIXCLOUD_API_BASE must be an http(s) URL, got {self.api_base!r}"
            )
        if self.max_attempts < 1:
            raise ConfigurationError("MAX_ATTEMPTS must be at least 1")
        if self.max_pages < 1:
            raise ConfigurationError("MAX_PAGES must be at least 1")
        if self.initial_retry_delay < 0 or self.page_delay < 0:
            raise ConfigurationError("Retry and page delays must not be negative")
        if self.request_timeout <= 0:
            raise ConfigurationError("REQUEST_TIMEOUT must be positive")
        if self.page_size is not None and self.page_size < 0:
            raise ConfigurationError("PAGE_SIZE must not be negative")
        if self.requests_per_second <= 0:
            raise ConfigurationError("REQUESTS_PER_SECOND must be positive")
