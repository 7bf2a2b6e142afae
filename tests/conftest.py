"""Pytest configuration for test environment setup.

- Forces ``DISABLE_FILE_LOGS=1`` to avoid writing log files during tests.
- Ensures the project root is available on ``sys.path`` for imports.
- Provides fake aiohttp sessions/responses and a recording ``asyncio.sleep``
  so loader tests never touch the network or wait for real.
"""

import asyncio
import json
import os
import signal
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

os.environ.setdefault("DISABLE_FILE_LOGS", "1")  # Avoid creating log files during tests

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

_TEST_TIMEOUT = int(os.environ.get("PYTEST_TEST_TIMEOUT", "10"))


def _timeout_handler(signum, frame):
    raise TimeoutError(f"Test exceeded {_TEST_TIMEOUT} seconds timeout")


def pytest_runtest_setup(item):
    try:
        signal.signal(signal.SIGALRM, _timeout_handler)
        signal.alarm(_TEST_TIMEOUT)
    except (AttributeError, ValueError):
        pass


def pytest_runtest_teardown(item, nextitem):
    try:
        signal.alarm(0)
    except AttributeError:
        pass


class FakeResponse:
    def __init__(self, status: int, text, headers=None, reason: str = ""):
        self.status = status
        self._body = text if isinstance(text, bytes) else text.encode("utf-8")
        self.headers = headers or {}
        self.reason = reason

    async def read(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Replays canned responses.

    ``responses`` is either a list (served in order, whatever the URL) or a
    dict mapping URL to a list (served in order per URL). An exception
    instance in place of a response is raised from ``get``. Once a queue is
    exhausted every request gets HTTP 500.
    """

    def __init__(self, responses):
        self._responses = responses
        self.requested: list[str] = []
        self.closed = False

    def _next(self, url):
        queue = self._responses.get(url, []) if isinstance(self._responses, dict) else self._responses
        if not queue:
            return FakeResponse(500, "{}", reason="Internal Server Error")
        return queue.pop(0)

    def get(self, url, **kwargs):
        self.requested.append(url)
        response = self._next(url)
        if isinstance(response, BaseException):
            raise response
        return response

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True
        return False


def page(items, next_url=None, status=200):
    """Build a Mixcloud-style page response."""
    body = {"data": items}
    if next_url is not None:
        body["paging"] = {"next": next_url}
    return FakeResponse(status, json.dumps(body))


def cloudcast(n, user="legendarymusic"):
    return {
        "key": f"/{user}/mix-{n}/",
        "name": f"Mix {n}",
        "url": f"https://www.mixcloud.com/{user}/mix-{n}/",
        "created_time": "2024-03-05T18:30:00Z",
        "audio_length": 3900,
        "play_count": 1234,
        "tags": [{"name": "Funk"}, {"name": "Soul"}],
        "pictures": {"large": f"https://thumbnailer.mixcloud.com/{n}.jpg"},
    }


@pytest.fixture
def fake_http():
    return SimpleNamespace(
        Response=FakeResponse, Session=FakeSession, page=page, cloudcast=cloudcast
    )


@pytest.fixture
def slept(monkeypatch):
    """Replace ``asyncio.sleep`` and record the requested delays."""
    delays: list[float] = []

    async def fake_sleep(t, *args, **kwargs):
        delays.append(t)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return delays


@pytest.fixture
def loader_config():
    return SimpleNamespace(
        api_base="https://api.example.test",
        max_attempts=3,
        initial_retry_delay=1.0,
        page_delay=0.2,
        max_pages=100,
        request_timeout=5,
        page_size=None,
        requests_per_second=1000.0,
    )
