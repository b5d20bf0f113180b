"""Unit tests for threshold classification."""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from models.profiles import DEFAULT_PROFILES
from models.readings import Reading, SensorId, Status, Thresholds
from services.classifier import Classifier, classify, status_description, status_label

THRESHOLDS = Thresholds(good=25.0, warning=50.0, danger=100.0)


def _reading(ammonia: float, methane: float, carbon_monoxide: float) -> Reading:
    return Reading(
        values={
            SensorId.ammonia: ammonia,
            SensorId.methane: methane,
            SensorId.carbon_monoxide: carbon_monoxide,
        },
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0.0, Status.good),
        (25.0, Status.good),
        (26.0, Status.warning),
        (50.0, Status.warning),
        (51.0, Status.danger),
    ],
)
def test_classify_reference_scenario(value: float, expected: Status) -> None:
    assert classify(value, THRESHOLDS) is expected


@pytest.mark.parametrize("epsilon", [1e-9, 0.001, 0.5, 10.0])
def test_classify_boundaries_are_inclusive_upper_bounds(epsilon: float) -> None:
    assert classify(THRESHOLDS.good, THRESHOLDS) is Status.good
    assert classify(THRESHOLDS.good + epsilon, THRESHOLDS) is Status.warning
    assert classify(THRESHOLDS.warning, THRESHOLDS) is Status.warning
    assert classify(THRESHOLDS.warning + epsilon, THRESHOLDS) is Status.danger


def test_danger_threshold_does_not_add_a_band() -> None:
    assert classify(75.0, THRESHOLDS) is Status.danger
    assert classify(100.0, THRESHOLDS) is Status.danger
    assert classify(1000.0, THRESHOLDS) is Status.danger


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_non_finite_values_classify_as_danger(value: float) -> None:
    assert classify(value, THRESHOLDS) is Status.danger


def test_negative_values_are_good() -> None:
    assert classify(-5.0, THRESHOLDS) is Status.good


def test_classifier_classifies_every_sensor() -> None:
    classifier = Classifier(DEFAULT_PROFILES)

    statuses = classifier.classify_reading(_reading(ammonia=30.0, methane=100.0, carbon_monoxide=40.0))

    assert statuses == {
        SensorId.ammonia: Status.warning,
        SensorId.methane: Status.good,
        SensorId.carbon_monoxide: Status.danger,
    }


def test_worst_status_picks_most_severe() -> None:
    classifier = Classifier(DEFAULT_PROFILES)

    assert classifier.worst_status(_reading(1.0, 1.0, 1.0)) is Status.good
    assert classifier.worst_status(_reading(30.0, 1.0, 1.0)) is Status.warning
    assert classifier.worst_status(_reading(30.0, 400.0, 1.0)) is Status.danger


def test_status_labels_and_descriptions() -> None:
    assert [status_label(status) for status in Status] == ["Good", "Moderate", "Poor"]
    assert status_description(Status.good) == "Healthy levels"
    assert status_description(Status.danger) == "High levels detected"
