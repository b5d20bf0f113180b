from __future__ import annotations

from dataclasses import replace
from typing import Optional

from settings import Settings, get_settings


def _positive(value: Optional[float], name: str) -> Optional[float]:
    if value is not None and value <= 0:
        raise ValueError(f"{name} must be positive, got {value}.")
    return value


def load_config(
    base_url: Optional[str] = None,
    poll_interval: Optional[float] = None,
    retries: Optional[int] = None,
    timeout: Optional[float] = None,
    capacity: Optional[int] = None,
) -> Settings:
    """Overlay command-line options on the environment settings."""
    settings = get_settings()
    overrides = {
        "base_url": base_url.rstrip("/") if base_url else None,
        "poll_interval": _positive(poll_interval, "poll interval"),
        "retry_count": retries,
        "request_timeout": _positive(timeout, "timeout"),
        "history_capacity": capacity,
    }
    return replace(settings, **{key: value for key, value in overrides.items() if value is not None})
