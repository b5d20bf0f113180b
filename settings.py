from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Mapping, Optional

from models.profiles import DEFAULT_PROFILES, profile_table
from models.readings import SensorId, SensorProfile, Thresholds


_BASE_URL_ENV = "SENSOR_API_BASE_URL"
_POLL_INTERVAL_ENV = "SENSOR_POLL_INTERVAL"
_RETRY_COUNT_ENV = "SENSOR_RETRY_COUNT"
_HISTORY_CAPACITY_ENV = "SENSOR_HISTORY_CAPACITY"
_REQUEST_TIMEOUT_ENV = "SENSOR_REQUEST_TIMEOUT"
_THRESHOLDS_ENV_PREFIX = "SENSOR_THRESHOLDS_"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_RETRY_COUNT = 3
DEFAULT_HISTORY_CAPACITY = 20
DEFAULT_REQUEST_TIMEOUT = 10.0


@dataclass(frozen=True)
class Settings:
    base_url: str
    poll_interval: float
    retry_count: int
    history_capacity: int
    request_timeout: float
    profiles: Mapping[SensorId, SensorProfile]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_float(name: str, default: float) -> float:
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
    return parsed if parsed > 0 else default


def _read_int(name: str, default: int, minimum: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def _read_thresholds(sensor: SensorId) -> Optional[Thresholds]:
    value = os.getenv(f"{_THRESHOLDS_ENV_PREFIX}{sensor.value.upper()}")
    if value is None:
        return None
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 3:
        return None
    try:
        good, warning, danger = (float(part) for part in parts)
    except ValueError:
        return None
    # Parsable but unordered values are a configuration error, not a typo.
    return Thresholds(good=good, warning=warning, danger=danger)


def _read_profiles(defaults: Mapping[SensorId, SensorProfile]) -> Mapping[SensorId, SensorProfile]:
    profiles = []
    for sensor, profile in defaults.items():
        thresholds = _read_thresholds(sensor)
        profiles.append(profile if thresholds is None else replace(profile, thresholds=thresholds))
    return profile_table(profiles)


@lru_cache
def get_settings() -> Settings:
    base_url = _read_str_env(_BASE_URL_ENV, DEFAULT_BASE_URL)
    return Settings(
        base_url=base_url.rstrip("/"),
        poll_interval=_read_positive_float(_POLL_INTERVAL_ENV, DEFAULT_POLL_INTERVAL),
        retry_count=_read_int(_RETRY_COUNT_ENV, DEFAULT_RETRY_COUNT, minimum=0),
        history_capacity=_read_int(_HISTORY_CAPACITY_ENV, DEFAULT_HISTORY_CAPACITY, minimum=1),
        request_timeout=_read_positive_float(_REQUEST_TIMEOUT_ENV, DEFAULT_REQUEST_TIMEOUT),
        profiles=_read_profiles(DEFAULT_PROFILES),
        log_level=_read_log_level("INFO"),
    )
