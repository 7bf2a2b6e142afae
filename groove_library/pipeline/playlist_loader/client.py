"""playlist_loader.client module.

This module is the networking boundary of the playlist loader. It performs
single GET requests against the Mixcloud API and wraps them in a retrying
primitive with exponential backoff, so that transient upstream trouble (rate
limiting, 5xx responses, network blips, truncated bodies) stays invisible to
the caller unless every attempt fails.

Unlike the loader, this layer *does* raise: every failure is mapped onto the
project's error taxonomy (`groove_library.exceptions`) and, once the attempt
budget is spent, surfaced as a ``RetryExhaustedError`` chained to the last
underlying error. Containment into a result record is the loader's job.

Examples
--------
>>> import aiohttp
>>> from types import SimpleNamespace
>>> from groove_library.pipeline.playlist_loader.client import fetch_json_with_retry
>>> cfg = SimpleNamespace(max_attempts=3, initial_retry_delay=1.0, request_timeout=30)
>>> async def main():
...     async with aiohttp.ClientSession() as session:
...         page = await fetch_json_with_retry(
...             session, "https://api.mixcloud.com/legendarymusic/cloudcasts/", cfg
...         )
...         print(len(page.get("data", [])))
>>> # To actually run:
>>> # import asyncio; asyncio.run(main())
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp
from aiolimiter import AsyncLimiter

from groove_library.config import (
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
)
from groove_library.exceptions import (
    APIRateLimitError,
    AppError,
    DataValidationError,
    ExternalServiceError,
    RetryExhaustedError,
    TimeoutExceededError,
)

logger = logging.getLogger(__name__)

RATE_LIMITED_ERROR_TYPE = "RateLimited"


def _as_seconds(value: Any) -> float | None:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


def _error_object(text: str) -> dict[str, Any]:
    """Return the ``error`` object of a Mixcloud error body, or ``{}``."""
    try:
        body = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return {}
    error = body.get("error") if isinstance(body, dict) else None
    return error if isinstance(error, dict) else {}


async def get_json(
    session: aiohttp.ClientSession, url: str, timeout: float
) -> dict[str, Any]:
    r"""Perform a single GET and return the decoded JSON object.

    Parameters
    ----------
    session : aiohttp.ClientSession
        Session used for the request. Not closed by this function.
    url : str
        Absolute URL to fetch.
    timeout : float
        Total wall-clock timeout in seconds.

    Returns
    -------
    dict[str, Any]
        Decoded JSON object from a 2xx response.

    Raises
    ------
    APIRateLimitError
        On HTTP 429 or a ``RateLimited`` error payload. Carries the
        upstream ``retry_after`` (payload field or ``Retry-After`` header).
    ExternalServiceError
        On any other non-2xx status.
    DataValidationError
        When a 2xx body is not a UTF-8 encoded JSON object.
    """
    async with session.get(
        url, timeout=aiohttp.ClientTimeout(total=timeout)
    ) as response:
        status = response.status
        body = await response.read()
        headers = getattr(response, "headers", None) or {}
        reason = getattr(response, "reason", None) or ""

    if 200 <= status < 300:
        try:
            data = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as err:
            raise DataValidationError(
                f"Malformed JSON body from {url}", context={"url": url}
            ) from err
        if not isinstance(data, dict):
            raise DataValidationError(
                f"Expected a JSON object from {url}, got {type(data).__name__}",
                context={"url": url},
            )
        return data

    text = body.decode("utf-8", errors="replace")
    error = _error_object(text)
    if status == 429 or error.get("type") == RATE_LIMITED_ERROR_TYPE:
        retry_after = _as_seconds(error.get("retry_after"))
        if retry_after is None:
            retry_after = _as_seconds(headers.get("Retry-After"))
        raise APIRateLimitError(
            f"HTTP {status}: rate limited",
            retry_after=retry_after,
            context={"url": url, "status": status},
        )
    message = error.get("message") or reason or text[:200]
    raise ExternalServiceError(
        f"HTTP {status}: {message}", context={"url": url, "status": status}
    )


async def _attempt(
    session: aiohttp.ClientSession,
    url: str,
    timeout: float,
    limiter: AsyncLimiter | None,
) -> dict[str, Any]:
    if limiter is None:
        return await get_json(session, url, timeout)
    async with limiter:
        return await get_json(session, url, timeout)


async def fetch_json_with_retry(
    session: aiohttp.ClientSession,
    url: str,
    config: Any,
    *,
    limiter: AsyncLimiter | None = None,
) -> dict[str, Any]:
    r"""Fetch ``url`` with retries and exponential backoff.

    Every failure (rate limiting, non-2xx status, network error, timeout,
    malformed body) is retried. The wait starts at
    ``config.initial_retry_delay`` and doubles after every failed attempt;
    a rate-limit response carrying an upstream delay waits that delay
    instead. No wait follows the final attempt.

    Parameters
    ----------
    session : aiohttp.ClientSession
        Session used for every attempt.
    url : str
        Absolute URL to fetch.
    config : Any
        Object exposing ``max_attempts``, ``initial_retry_delay`` and
        ``request_timeout``; missing attributes use project defaults.
    limiter : AsyncLimiter | None, optional
        Shared request budget acquired before each attempt.

    Returns
    -------
    dict[str, Any]
        Decoded JSON object of the first successful attempt.

    Raises
    ------
    RetryExhaustedError
        When ``config.max_attempts`` attempts all failed. The last
        underlying error is chained as ``__cause__`` and its message is
        embedded in this error's message.
    """
    max_attempts = max(1, int(getattr(config, "max_attempts", DEFAULT_MAX_ATTEMPTS)))
    delay = float(
        getattr(config, "initial_retry_delay", DEFAULT_INITIAL_RETRY_DELAY)
    )
    timeout = getattr(config, "request_timeout", DEFAULT_REQUEST_TIMEOUT)

    last_error: AppError | None = None
    for attempt in range(1, max_attempts + 1):
        wait = delay
        try:
            return await _attempt(session, url, timeout, limiter)
        except APIRateLimitError as err:
            last_error = err
            if err.retry_after is not None:
                wait = err.retry_after
        except AppError as err:
            last_error = err
        except (asyncio.TimeoutError, TimeoutError):
            last_error = TimeoutExceededError(
                f"Request timed out after {timeout}s", context={"url": url}
            )
        except aiohttp.ClientError as err:
            last_error = ExternalServiceError(
                f"Network error: {err}", context={"url": url}
            )

        if attempt == max_attempts:
            break
        logger.warning(
            "%s; retrying %s in %.1fs (attempt %d/%d)",
            last_error,
            url,
            wait,
            attempt + 1,
            max_attempts,
        )
        await asyncio.sleep(wait)
        delay *= 2

    if last_error is None:
        raise RetryExhaustedError(f"GET {url} was never attempted", context={"url": url})
    raise RetryExhaustedError(
        f"GET {url} failed after {max_attempts} attempts: {last_error.message}",
        context={"url": url, "attempts": max_attempts, "last_error": last_error.code},
    ) from last_error


async def fetch_profile(
    session: aiohttp.ClientSession,
    base_url: str,
    username: str,
    config: Any,
    *,
    limiter: AsyncLimiter | None = None,
) -> dict[str, Any] | None:
    """Return the Mixcloud user profile, or ``None`` if it cannot be fetched."""
    url = f"{base_url.rstrip('/')}/{username.strip('/')}/"
    try:
        return await fetch_json_with_retry(session, url, config, limiter=limiter)
    except AppError as err:
        logger.error("Could not fetch profile for %s: %s", username, err)
        return None
