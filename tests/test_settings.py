"""Typed smoke tests for the settings loader.

These tests verify three guarantees:
1) Importing the module-level `settings` yields a `Settings` instance.
2) Environment variables override defaults after clearing the loader cache.
3) `get_logger()` respects the configured LOG_LEVEL when constructing loggers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from framelog.core.settings import (
    Settings,
    get_logger,
    load_settings,
    settings,
)


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def test_settings_instance_type() -> None:
    """`settings` should be an instance of the typed `Settings` model."""
    assert isinstance(settings, Settings)


def test_defaults() -> None:
    s = Settings()
    assert s.chunk_size == 10
    assert s.max_value_bytes == 100_000
    assert s.figma_api_base == "https://api.figma.com/v1"


def test_env_overrides_with_cache_clear(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Changing env vars should take effect after `load_settings.cache_clear()`."""
    monkeypatch.setenv("FRAMELOG_ENV", "prod")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("FRAMELOG_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FRAMELOG_FILE_KEY", "abc123")
    monkeypatch.setenv("FIGMA_TOKEN", "figd_env")

    load_settings.cache_clear()
    s = load_settings()

    assert s.environment == "prod" and s.is_prod and not s.is_dev
    assert s.log_level == "DEBUG"
    assert s.data_dir == tmp_path
    assert s.file_key == "abc123"
    assert s.figma_token == "figd_env"


def test_get_logger_respects_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """`get_logger()` should apply the numeric level derived from `LOG_LEVEL`."""
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    load_settings.cache_clear()

    logger = get_logger("framelog.tests.settings")

    assert logger.level == logging.ERROR
    assert logger.handlers, "Expected a StreamHandler to be attached."
    assert logger.propagate is False
