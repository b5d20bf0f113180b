"""Default sensor profile table."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from models.readings import SensorId, SensorProfile, Thresholds


def profile_table(profiles: Iterable[SensorProfile]) -> Mapping[SensorId, SensorProfile]:
    """Index profiles by sensor id, requiring exactly one per known sensor."""
    table: dict[SensorId, SensorProfile] = {}
    for profile in profiles:
        if profile.sensor_id in table:
            raise ValueError(f"Duplicate profile for sensor {profile.sensor_id.value!r}.")
        table[profile.sensor_id] = profile
    missing = [sensor.value for sensor in SensorId if sensor not in table]
    if missing:
        raise ValueError(f"Missing profiles for: {', '.join(missing)}")
    return MappingProxyType({sensor: table[sensor] for sensor in SensorId})


DEFAULT_PROFILES: Mapping[SensorId, SensorProfile] = profile_table(
    [
        SensorProfile(
            sensor_id=SensorId.ammonia,
            name="Ammonia",
            unit="ppm",
            thresholds=Thresholds(good=25.0, warning=50.0, danger=100.0),
            category="air",
            payload_key="mq137_ppm",
            description="Measures ammonia concentration (MQ-137).",
        ),
        SensorProfile(
            sensor_id=SensorId.methane,
            name="Methane",
            unit="ppm",
            thresholds=Thresholds(good=200.0, warning=250.0, danger=300.0),
            category="methane",
            payload_key="mq4_ppm",
            description="Measures methane and natural gas concentrations (MQ-4).",
        ),
        SensorProfile(
            sensor_id=SensorId.carbon_monoxide,
            name="Carbon Monoxide",
            unit="ppm",
            thresholds=Thresholds(good=9.0, warning=35.0, danger=100.0),
            category="air",
            payload_key="mq7_ppm",
            description="Measures carbon monoxide concentration (MQ-7).",
        ),
    ]
)
