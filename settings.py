from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from functools import lru_cache


_BASE_URL_ENV = "HISTORY_API_BASE_URL"
_API_PATH_ENV = "HISTORY_API_PATH"
_FETCH_TIMEOUT_ENV = "HISTORY_FETCH_TIMEOUT"
_EARLIEST_DATE_ENV = "HISTORY_EARLIEST_DATE"
_REFERENCE_OFFSET_ENV = "HISTORY_REFERENCE_UTC_OFFSET_HOURS"
_WALL_CLOCK_OFFSET_ENV = "HISTORY_WALL_CLOCK_UTC_OFFSET_HOURS"
_IMAGE_TIMEOUT_ENV = "IMAGE_LOAD_TIMEOUT"
_TIMELAPSE_INTERVAL_ENV = "TIMELAPSE_INTERVAL_MS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_EARLIEST_DATE = date(2024, 11, 15)
DEFAULT_REFERENCE_OFFSET_HOURS = -6.0


@dataclass(frozen=True)
class Settings:
    history_base_url: str
    history_path: str
    fetch_timeout: float
    earliest_date: date
    reference_offset_hours: float
    wall_clock_offset_hours: float
    image_timeout: float
    timelapse_interval_ms: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_float_env(name: str, default: float, positive: bool = True) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if positive and parsed <= 0:
        return default
    return parsed


def _read_offset_env(name: str, default: float) -> float:
    parsed = _read_float_env(name, default, positive=False)
    return parsed if -14 <= parsed <= 14 else default


def _read_interval(default: int) -> int:
    value = os.getenv(_TIMELAPSE_INTERVAL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_date_env(name: str, default: date) -> date:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        return date.fromisoformat(candidate)
    except ValueError:
        return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    reference_offset = _read_offset_env(_REFERENCE_OFFSET_ENV, DEFAULT_REFERENCE_OFFSET_HOURS)
    return Settings(
        history_base_url=_read_str_env(_BASE_URL_ENV, "https://sunsightenergy.com").rstrip("/"),
        history_path=_read_str_env(_API_PATH_ENV, "/api/history-data"),
        fetch_timeout=_read_float_env(_FETCH_TIMEOUT_ENV, 30.0),
        earliest_date=_read_date_env(_EARLIEST_DATE_ENV, DEFAULT_EARLIEST_DATE),
        reference_offset_hours=reference_offset,
        wall_clock_offset_hours=_read_offset_env(_WALL_CLOCK_OFFSET_ENV, reference_offset),
        image_timeout=_read_float_env(_IMAGE_TIMEOUT_ENV, 10.0),
        timelapse_interval_ms=_read_interval(500),
        log_level=_read_log_level("INFO"),
    )
