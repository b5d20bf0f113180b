from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Deque, List, Optional, Tuple

from models.readings import Reading, SensorId
from settings import DEFAULT_HISTORY_CAPACITY


class HistoryBuffer:
    """Fixed-capacity, arrival-ordered store of readings.

    Appending at capacity evicts exactly the oldest reading. Consumers only
    ever see tuples, so mutating a snapshot never reaches the buffer.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}.")
        self.capacity = capacity
        self._readings: Deque[Reading] = deque(maxlen=capacity)

    def append(self, reading: Reading) -> None:
        self._readings.append(reading)

    def snapshot(self) -> Tuple[Reading, ...]:
        """Return the stored readings, oldest first."""
        return tuple(self._readings)

    def latest(self) -> Optional[Reading]:
        if not self._readings:
            return None
        return self._readings[-1]

    def series(self, sensor: SensorId) -> List[Tuple[datetime, float]]:
        """Return ``(timestamp, value)`` pairs for one sensor, oldest first."""
        return [(reading.timestamp, reading[sensor]) for reading in self._readings]

    def __len__(self) -> int:
        return len(self._readings)
