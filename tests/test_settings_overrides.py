from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable

from cli.config import load_config
from logging_config import ContextualFormatter
from services.fetcher import build_default_fetcher
from services.transformer import build_default_transformer
from services.validator import build_default_validator
from settings import get_settings

_CACHES = (
    get_settings,
    build_default_validator,
    build_default_transformer,
    build_default_fetcher,
)


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_defaults(monkeypatch) -> None:
    for name in (
        "HISTORY_API_BASE_URL",
        "HISTORY_EARLIEST_DATE",
        "HISTORY_REFERENCE_UTC_OFFSET_HOURS",
        "HISTORY_WALL_CLOCK_UTC_OFFSET_HOURS",
        "TIMELAPSE_INTERVAL_MS",
    ):
        monkeypatch.delenv(name, raising=False)
    _clear_caches(_CACHES)

    try:
        settings = get_settings()
        assert settings.history_base_url == "https://sunsightenergy.com"
        assert settings.history_path == "/api/history-data"
        assert settings.earliest_date == date(2024, 11, 15)
        assert settings.reference_offset_hours == -6.0
        assert settings.wall_clock_offset_hours == -6.0
        assert settings.timelapse_interval_ms == 500
    finally:
        _clear_caches(_CACHES)


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("HISTORY_API_BASE_URL", "https://station.example/")
    monkeypatch.setenv("HISTORY_EARLIEST_DATE", "2025-01-01")
    monkeypatch.setenv("HISTORY_REFERENCE_UTC_OFFSET_HOURS", "-5")
    monkeypatch.setenv("HISTORY_WALL_CLOCK_UTC_OFFSET_HOURS", "0")
    monkeypatch.setenv("TIMELAPSE_INTERVAL_MS", "250")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    _clear_caches(_CACHES)

    try:
        settings = get_settings()
        validator = build_default_validator()
        transformer = build_default_transformer()

        assert settings.history_base_url == "https://station.example"
        assert settings.timelapse_interval_ms == 250
        assert settings.log_level == "DEBUG"
        assert validator.earliest_date == date(2025, 1, 1)
        assert validator.reference_zone.utcoffset(None) == timedelta(hours=-5)
        assert transformer.zone.utcoffset(None) == timedelta(0)
        assert load_config().base_url == "https://station.example"
    finally:
        _clear_caches(_CACHES)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("HISTORY_EARLIEST_DATE", "soon")
    monkeypatch.setenv("HISTORY_REFERENCE_UTC_OFFSET_HOURS", "99")
    monkeypatch.setenv("HISTORY_FETCH_TIMEOUT", "-1")
    monkeypatch.setenv("TIMELAPSE_INTERVAL_MS", "fast")
    monkeypatch.delenv("HISTORY_WALL_CLOCK_UTC_OFFSET_HOURS", raising=False)
    _clear_caches(_CACHES)

    try:
        settings = get_settings()
        assert settings.earliest_date == date(2024, 11, 15)
        assert settings.reference_offset_hours == -6.0
        assert settings.fetch_timeout == 30.0
        assert settings.timelapse_interval_ms == 500
    finally:
        _clear_caches(_CACHES)


def test_cli_options_override_settings() -> None:
    config = load_config(base_url="http://localhost:9000/", fetch_timeout=5, image_timeout=0)

    assert config.base_url == "http://localhost:9000"
    assert config.fetch_timeout == 5
    assert config.image_timeout == get_settings().image_timeout


def test_contextual_formatter_appends_known_extras() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")
    record = logging.LogRecord("history", logging.INFO, __file__, 1, "Fetched", None, None)
    record.start_date = "2024-11-20"
    record.reading_count = 3
    record.unrelated = "ignored"

    assert formatter.format(record) == "Fetched | start_date=2024-11-20 reading_count=3"
