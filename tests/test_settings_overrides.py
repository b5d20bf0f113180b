from __future__ import annotations

import asyncio
from typing import Iterable

import pytest

from models.readings import SensorId, Thresholds
from services.errors import ConfigurationError
from services.poller import build_default_poller
from settings import get_settings


_ENV_NAMES = (
    "SENSOR_API_BASE_URL",
    "SENSOR_POLL_INTERVAL",
    "SENSOR_RETRY_COUNT",
    "SENSOR_HISTORY_CAPACITY",
    "SENSOR_REQUEST_TIMEOUT",
    "SENSOR_THRESHOLDS_AMMONIA",
    "SENSOR_THRESHOLDS_METHANE",
    "SENSOR_THRESHOLDS_CARBON_MONOXIDE",
    "LOG_LEVEL",
)


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    _clear_caches((get_settings, build_default_poller))
    yield
    _clear_caches((get_settings, build_default_poller))


def test_defaults() -> None:
    settings = get_settings()

    assert settings.base_url == "http://localhost:8000"
    assert settings.poll_interval == 5.0
    assert settings.retry_count == 3
    assert settings.history_capacity == 20
    assert settings.profiles[SensorId.ammonia].thresholds == Thresholds(25.0, 50.0, 100.0)


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("SENSOR_API_BASE_URL", "http://esp8266.local/")
    monkeypatch.setenv("SENSOR_POLL_INTERVAL", "2.5")
    monkeypatch.setenv("SENSOR_RETRY_COUNT", "0")
    monkeypatch.setenv("SENSOR_HISTORY_CAPACITY", "7")
    monkeypatch.setenv("SENSOR_REQUEST_TIMEOUT", "1.5")
    monkeypatch.setenv("SENSOR_THRESHOLDS_METHANE", "100, 150, 400")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()
    poller = build_default_poller()

    try:
        assert settings.base_url == "http://esp8266.local"
        assert settings.request_timeout == 1.5
        assert settings.log_level == "DEBUG"
        assert settings.profiles[SensorId.methane].thresholds == Thresholds(100.0, 150.0, 400.0)
        assert settings.profiles[SensorId.ammonia].thresholds == Thresholds(25.0, 50.0, 100.0)
        assert poller.interval == 2.5
        assert poller.retry_count == 0
        assert poller.history.capacity == 7
        assert poller.fetcher.base_url == "http://esp8266.local"  # type: ignore[attr-defined]
        assert build_default_poller() is poller
    finally:
        asyncio.run(poller.shutdown())


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("SENSOR_POLL_INTERVAL", "soon"),
        ("SENSOR_POLL_INTERVAL", "-3"),
        ("SENSOR_RETRY_COUNT", "-1"),
        ("SENSOR_HISTORY_CAPACITY", "0"),
        ("SENSOR_API_BASE_URL", "   "),
    ],
)
def test_invalid_values_fall_back_to_defaults(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    settings = get_settings()

    assert settings.base_url == "http://localhost:8000"
    assert settings.poll_interval == 5.0
    assert settings.retry_count == 3
    assert settings.history_capacity == 20


def test_unparsable_threshold_override_is_ignored(monkeypatch) -> None:
    monkeypatch.setenv("SENSOR_THRESHOLDS_CARBON_MONOXIDE", "low,high")

    settings = get_settings()

    assert settings.profiles[SensorId.carbon_monoxide].thresholds == Thresholds(9.0, 35.0, 100.0)


def test_unordered_threshold_override_raises(monkeypatch) -> None:
    monkeypatch.setenv("SENSOR_THRESHOLDS_AMMONIA", "50,25,100")

    with pytest.raises(ConfigurationError):
        get_settings()
