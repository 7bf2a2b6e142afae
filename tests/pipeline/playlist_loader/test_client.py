"""Tests for the retrying fetch primitive and the profile lookup.

Fake sessions/responses replace aiohttp and ``asyncio.sleep`` is recorded
instead of awaited, so every retry branch runs instantly.
"""

import json

import aiohttp
import pytest

from groove_library.exceptions import (
    APIRateLimitError,
    DataValidationError,
    ExternalServiceError,
    RetryExhaustedError,
    TimeoutExceededError,
)
from groove_library.pipeline.playlist_loader import client

URL = "https://api.example.test/legendarymusic/cloudcasts/"


@pytest.mark.asyncio
async def test_success_returns_decoded_body(fake_http, loader_config, slept):
    session = fake_http.Session([fake_http.page([{"key": "/u/a/"}])])
    body = await client.fetch_json_with_retry(session, URL, loader_config)
    assert body == {"data": [{"key": "/u/a/"}]}
    assert session.requested == [URL]
    assert slept == []


@pytest.mark.asyncio
async def test_429_then_success_retries_once(fake_http, loader_config, slept):
    session = fake_http.Session(
        [fake_http.Response(429, "Too many"), fake_http.page([{"key": "/u/a/"}])]
    )
    body = await client.fetch_json_with_retry(session, URL, loader_config)
    assert body["data"] == [{"key": "/u/a/"}]
    assert len(session.requested) == 2
    assert slept == [1.0]


@pytest.mark.asyncio
async def test_rate_limited_payload_uses_upstream_delay(fake_http, loader_config, slept):
    limited = json.dumps({"error": {"type": "RateLimited", "retry_after": 7}})
    session = fake_http.Session(
        [
            fake_http.Response(403, limited),
            fake_http.Response(500, "{}"),
            fake_http.page([]),
        ]
    )
    await client.fetch_json_with_retry(session, URL, loader_config)
    # the upstream delay replaces the first wait; backoff still doubles
    assert slept == [7.0, 2.0]


@pytest.mark.asyncio
async def test_retry_after_header_is_honoured(fake_http, loader_config, slept):
    session = fake_http.Session(
        [fake_http.Response(429, "", headers={"Retry-After": "3"}), fake_http.page([])]
    )
    await client.fetch_json_with_retry(session, URL, loader_config)
    assert slept == [3.0]


@pytest.mark.asyncio
async def test_server_errors_exhaust_retries(fake_http, loader_config, slept):
    session = fake_http.Session(
        [fake_http.Response(500, "oops", reason="Internal Server Error")] * 3
    )
    with pytest.raises(RetryExhaustedError) as excinfo:
        await client.fetch_json_with_retry(session, URL, loader_config)
    assert "HTTP 500" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ExternalServiceError)
    assert len(session.requested) == 3
    assert slept == [1.0, 2.0]


@pytest.mark.asyncio
async def test_error_message_from_payload(fake_http, loader_config, slept):
    loader_config.max_attempts = 1
    body = json.dumps({"error": {"type": "NotFound", "message": "User not found"}})
    session = fake_http.Session([fake_http.Response(404, body)])
    with pytest.raises(RetryExhaustedError) as excinfo:
        await client.fetch_json_with_retry(session, URL, loader_config)
    assert "HTTP 404: User not found" in str(excinfo.value)
    assert slept == []


@pytest.mark.asyncio
async def test_exhausted_rate_limit_keeps_cause(fake_http, loader_config, slept):
    loader_config.max_attempts = 2
    session = fake_http.Session([fake_http.Response(429, "")] * 2)
    with pytest.raises(RetryExhaustedError) as excinfo:
        await client.fetch_json_with_retry(session, URL, loader_config)
    assert isinstance(excinfo.value.__cause__, APIRateLimitError)
    assert slept == [1.0]


@pytest.mark.asyncio
async def test_malformed_body_is_retried(fake_http, loader_config, slept):
    session = fake_http.Session(
        [fake_http.Response(200, "<html>"), fake_http.page([{"key": "/u/a/"}])]
    )
    body = await client.fetch_json_with_retry(session, URL, loader_config)
    assert body["data"][0]["key"] == "/u/a/"
    assert slept == [1.0]


@pytest.mark.asyncio
async def test_undecodable_body_is_retried(fake_http, loader_config, slept):
    session = fake_http.Session(
        [fake_http.Response(200, b'{"data": ["\xff"]}'), fake_http.page([{"key": "/u/a/"}])]
    )
    body = await client.fetch_json_with_retry(session, URL, loader_config)
    assert body["data"] == [{"key": "/u/a/"}]
    assert len(session.requested) == 2
    assert slept == [1.0]


@pytest.mark.asyncio
async def test_non_object_body_fails_validation(fake_http, loader_config, slept):
    loader_config.max_attempts = 1
    session = fake_http.Session([fake_http.Response(200, "[1, 2]")])
    with pytest.raises(RetryExhaustedError) as excinfo:
        await client.fetch_json_with_retry(session, URL, loader_config)
    assert isinstance(excinfo.value.__cause__, DataValidationError)


@pytest.mark.asyncio
async def test_network_error_is_mapped(fake_http, loader_config, slept):
    session = fake_http.Session([aiohttp.ClientError("network down")] * 3)
    with pytest.raises(RetryExhaustedError) as excinfo:
        await client.fetch_json_with_retry(session, URL, loader_config)
    assert "Network error: network down" in str(excinfo.value)
    assert len(slept) == 2


@pytest.mark.asyncio
async def test_timeout_is_mapped(fake_http, loader_config, slept):
    loader_config.max_attempts = 2
    session = fake_http.Session([TimeoutError(), fake_http.page([])])
    assert await client.fetch_json_with_retry(session, URL, loader_config) == {"data": []}

    session = fake_http.Session([TimeoutError(), TimeoutError()])
    with pytest.raises(RetryExhaustedError) as excinfo:
        await client.fetch_json_with_retry(session, URL, loader_config)
    assert isinstance(excinfo.value.__cause__, TimeoutExceededError)


@pytest.mark.asyncio
async def test_limiter_is_acquired_per_attempt(fake_http, loader_config, slept):
    class CountingLimiter:
        entered = 0

        async def __aenter__(self):
            CountingLimiter.entered += 1

        async def __aexit__(self, *exc):
            return False

    session = fake_http.Session([fake_http.Response(503, ""), fake_http.page([])])
    await client.fetch_json_with_retry(
        session, URL, loader_config, limiter=CountingLimiter()
    )
    assert CountingLimiter.entered == 2


@pytest.mark.asyncio
async def test_fetch_profile(fake_http, loader_config, slept):
    profile = {"username": "legendarymusic", "name": "Legendary Music"}
    session = fake_http.Session([fake_http.Response(200, json.dumps(profile))])
    result = await client.fetch_profile(
        session, "https://api.example.test/", "legendarymusic", loader_config
    )
    assert result == profile
    assert session.requested == ["https://api.example.test/legendarymusic/"]


@pytest.mark.asyncio
async def test_fetch_profile_failure_returns_none(fake_http, loader_config, slept):
    session = fake_http.Session([])
    result = await client.fetch_profile(
        session, "https://api.example.test", "legendarymusic", loader_config
    )
    assert result is None


@pytest.mark.asyncio
async def test_fetch_profile_undecodable_body_returns_none(fake_http, loader_config, slept):
    session = fake_http.Session([fake_http.Response(200, b"\xff\xfe") for _ in range(3)])
    result = await client.fetch_profile(
        session, "https://api.example.test", "legendarymusic", loader_config
    )
    assert result is None
    assert len(session.requested) == 3


@pytest.mark.asyncio
async def test_error_body_with_invalid_utf8_is_still_classified(fake_http, loader_config, slept):
    loader_config.max_attempts = 1
    session = fake_http.Session([fake_http.Response(502, b"\xff bad gateway")])
    with pytest.raises(RetryExhaustedError) as excinfo:
        await client.fetch_json_with_retry(session, URL, loader_config)
    assert isinstance(excinfo.value.__cause__, ExternalServiceError)
    assert "HTTP 502" in str(excinfo.value)


@pytest.mark.asyncio
async def test_zero_attempt_budget_still_makes_one_request(fake_http, loader_config, slept):
    loader_config.max_attempts = 0
    session = fake_http.Session([fake_http.Response(503, "", reason="Service Unavailable")])
    with pytest.raises(RetryExhaustedError) as excinfo:
        await client.fetch_json_with_retry(session, URL, loader_config)
    assert isinstance(excinfo.value.__cause__, ExternalServiceError)
    assert "after 1 attempts: HTTP 503" in str(excinfo.value)
    assert len(session.requested) == 1 and slept == []
