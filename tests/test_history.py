"""Unit tests for the bounded history buffer."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.readings import Reading, SensorId
from storage.history import HistoryBuffer


def _reading(index: int) -> Reading:
    return Reading(
        values={sensor: float(index) for sensor in SensorId},
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=5 * index),
    )


def test_evicts_oldest_when_full() -> None:
    buffer = HistoryBuffer(capacity=3)
    r1, r2, r3, r4 = (_reading(i) for i in range(1, 5))

    for reading in (r1, r2, r3):
        buffer.append(reading)
    assert buffer.snapshot() == (r1, r2, r3)

    buffer.append(r4)
    assert buffer.snapshot() == (r2, r3, r4)


def test_length_never_exceeds_capacity() -> None:
    buffer = HistoryBuffer(capacity=20)
    readings = [_reading(i) for i in range(50)]

    for count, reading in enumerate(readings, start=1):
        buffer.append(reading)
        assert len(buffer) == min(count, 20)

    assert list(buffer.snapshot()) == readings[-20:]


def test_snapshot_is_isolated_from_later_appends() -> None:
    buffer = HistoryBuffer(capacity=2)
    buffer.append(_reading(1))

    snapshot = buffer.snapshot()
    buffer.append(_reading(2))
    buffer.append(_reading(3))

    assert isinstance(snapshot, tuple)
    assert snapshot == (_reading(1),)
    assert buffer.snapshot() == (_reading(2), _reading(3))


def test_default_capacity_is_twenty() -> None:
    assert HistoryBuffer().capacity == 20


@pytest.mark.parametrize("capacity", [0, -1])
def test_rejects_non_positive_capacity(capacity: int) -> None:
    with pytest.raises(ValueError):
        HistoryBuffer(capacity=capacity)


def test_latest_and_series() -> None:
    buffer = HistoryBuffer(capacity=3)
    assert buffer.latest() is None
    assert buffer.series(SensorId.methane) == []

    for index in range(1, 5):
        buffer.append(_reading(index))

    assert buffer.latest() == _reading(4)
    assert buffer.series(SensorId.methane) == [
        (_reading(index).timestamp, float(index)) for index in (2, 3, 4)
    ]


def test_no_removal_api_is_exposed() -> None:
    buffer = HistoryBuffer()

    assert not hasattr(buffer, "remove")
    assert not hasattr(buffer, "clear")
    assert not hasattr(buffer, "pop")
