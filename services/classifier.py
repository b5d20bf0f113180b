"""Threshold classification for sensor readings."""

from __future__ import annotations

import math
from typing import Dict, Mapping

from models.readings import Reading, SensorId, SensorProfile, Status, Thresholds

_STATUS_LABELS = {
    Status.good: "Good",
    Status.warning: "Moderate",
    Status.danger: "Poor",
}

_STATUS_DESCRIPTIONS = {
    Status.good: "Healthy levels",
    Status.warning: "Moderate concern",
    Status.danger: "High levels detected",
}

_SEVERITY = {Status.good: 0, Status.warning: 1, Status.danger: 2}


def classify(value: float, thresholds: Thresholds) -> Status:
    """Map a raw concentration onto a status.

    ``thresholds.danger`` does not take part in the comparison. Non-finite
    values classify as danger.
    """
    if not math.isfinite(value):
        return Status.danger
    if value <= thresholds.good:
        return Status.good
    if value <= thresholds.warning:
        return Status.warning
    return Status.danger


def status_label(status: Status) -> str:
    return _STATUS_LABELS[status]


def status_description(status: Status) -> str:
    return _STATUS_DESCRIPTIONS[status]


class Classifier:
    """Pure per-sensor classification that can be unit tested in isolation."""

    def __init__(self, profiles: Mapping[SensorId, SensorProfile]) -> None:
        self.profiles = profiles

    def classify_reading(self, reading: Reading) -> Dict[SensorId, Status]:
        return {
            sensor: classify(reading[sensor], profile.thresholds)
            for sensor, profile in self.profiles.items()
        }

    def worst_status(self, reading: Reading) -> Status:
        statuses = self.classify_reading(reading).values()
        return max(statuses, key=_SEVERITY.__getitem__, default=Status.good)
