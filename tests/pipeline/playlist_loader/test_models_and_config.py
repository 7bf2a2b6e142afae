"""Tests for the fetch result record and the environment-driven loader config."""

import os
from datetime import timezone
from pathlib import Path

import pytest

import groove_library.config as project_config
from groove_library.exceptions import ConfigurationError
from groove_library.pipeline.playlist_loader import LoaderConfig, PlaylistFetchResult


def test_failed_result_is_empty():
    result = PlaylistFetchResult.failed("u", RuntimeError("HTTP 500"))
    assert result.items == () and result.item_count == 0
    assert result.failure == "HTTP 500"
    assert result.fetched_at.tzinfo is timezone.utc
    assert result.to_dict()["error"] == "HTTP 500"


def test_failed_result_cannot_carry_items():
    with pytest.raises(ValueError):
        PlaylistFetchResult("u", items=({"key": "/u/a/"},), failure="boom")


def test_succeeded_to_dict():
    result = PlaylistFetchResult.succeeded("u", [{"key": "/u/a/"}])
    data = result.to_dict()
    assert data["count"] == 1 and data["collectionId"] == "u"
    assert "error" not in data
    assert data["fetchedAt"] == result.fetched_at.isoformat()


def test_result_is_immutable():
    result = PlaylistFetchResult.succeeded("u", [])
    with pytest.raises(AttributeError):
        result.failure = "x"  # type: ignore[misc]


@pytest.fixture
def clean_env(monkeypatch, tmp_path: Path):
    for name in (
        "MIXCLOUD_API_BASE",
        "MAX_ATTEMPTS",
        "INITIAL_RETRY_DELAY",
        "PAGE_DELAY",
        "MAX_PAGES",
        "REQUEST_TIMEOUT",
        "PAGE_SIZE",
        "REQUESTS_PER_SECOND",
    ):
        monkeypatch.delenv(name, raising=False)
    # Point PROJECT_ROOT away from the real repo to avoid loading a real .env
    monkeypatch.setattr(project_config, "PROJECT_ROOT", tmp_path)
    yield tmp_path
    # load_dotenv writes straight into os.environ
    os.environ.pop("MAX_PAGES", None)


def test_config_defaults(clean_env):
    cfg = LoaderConfig()
    assert cfg.api_base == project_config.MIXCLOUD_API_BASE
    assert cfg.max_attempts == 3
    assert cfg.initial_retry_delay == 1.0
    assert cfg.page_delay == 0.2
    assert cfg.max_pages == 100
    assert cfg.page_size == 100


def test_config_reads_env_and_dotenv(clean_env, monkeypatch):
    (clean_env / ".env").write_text("MAX_PAGES=7\n", encoding="utf-8")
    monkeypatch.setenv("MAX_ATTEMPTS", "5")
    monkeypatch.setenv("PAGE_SIZE", "0")
    cfg = LoaderConfig()
    assert cfg.max_attempts == 5
    assert cfg.max_pages == 7
    assert cfg.page_size is None


@pytest.mark.parametrize(
    "name,value",
    [
        ("MAX_ATTEMPTS", "0"),
        ("MAX_ATTEMPTS", "three"),
        ("MAX_PAGES", "0"),
        ("PAGE_DELAY", "-1"),
        ("REQUEST_TIMEOUT", "0"),
        ("MIXCLOUD_API_BASE", "ftp://example"),
        ("REQUESTS_PER_SECOND", "0"),
    ],
)
def test_config_rejects_invalid_values(clean_env, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        LoaderConfig()
