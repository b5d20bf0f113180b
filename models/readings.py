"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping

from services.errors import ConfigurationError


class SensorId(str, Enum):
    """Known gas sensors reporting through the telemetry endpoint."""

    ammonia = "ammonia"
    methane = "methane"
    carbon_monoxide = "carbon_monoxide"


class Status(str, Enum):
    """Health classification derived from a value and its thresholds."""

    good = "good"
    warning = "warning"
    danger = "danger"


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Strictly increasing concentration boundaries for one sensor.

    Only ``good`` and ``warning`` decide the status; ``danger`` is kept for
    display.
    """

    good: float
    warning: float
    danger: float

    def __post_init__(self) -> None:
        if not self.good < self.warning < self.danger:
            raise ConfigurationError(
                "Thresholds must be strictly increasing: "
                f"good={self.good}, warning={self.warning}, danger={self.danger}"
            )


@dataclass(frozen=True, slots=True)
class SensorProfile:
    """Static descriptor of a sensor, built once at start-up."""

    sensor_id: SensorId
    name: str
    unit: str
    thresholds: Thresholds
    category: str
    payload_key: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class Reading:
    """A single timestamped measurement covering every known sensor."""

    values: Mapping[SensorId, float]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        missing = [sensor.value for sensor in SensorId if sensor not in self.values]
        if missing:
            raise ValueError(f"Reading is missing values for: {', '.join(missing)}")
        unknown = [str(key) for key in self.values if not isinstance(key, SensorId)]
        if unknown:
            raise ValueError(f"Reading has unknown sensors: {', '.join(unknown)}")
        if self.timestamp.tzinfo is None:
            raise ValueError("Reading timestamp must be timezone-aware.")
        frozen = MappingProxyType({sensor: float(self.values[sensor]) for sensor in SensorId})
        object.__setattr__(self, "values", frozen)

    def __getitem__(self, sensor: SensorId) -> float:
        return self.values[sensor]

    def __iter__(self) -> Iterator[SensorId]:
        return iter(self.values)

    def __hash__(self) -> int:
        return hash((tuple(self.values.items()), self.timestamp))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Reading):
            return NotImplemented
        return dict(self.values) == dict(other.values) and self.timestamp == other.timestamp
