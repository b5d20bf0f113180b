"""Simulated sensor endpoint for demos and tests."""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import httpx

from models.readings import SensorId, SensorProfile
from services.fetcher import RAW_PATH, TIMESTAMP_FIELD


class MockSensorSource:
    """Random-walk generator producing ``/raw`` payloads.

    Values start below each sensor's ``good`` threshold and drift with a step
    proportional to the width of its warning band, so a long run visits every
    status.
    """

    def __init__(
        self,
        profiles: Mapping[SensorId, SensorProfile],
        seed: Optional[int] = None,
        include_timestamp: bool = True,
    ) -> None:
        self.profiles = profiles
        self.include_timestamp = include_timestamp
        self.request_count = 0
        self._random = random.Random(seed)
        self._values: Dict[SensorId, float] = {
            sensor: profile.thresholds.good * 0.6 for sensor, profile in profiles.items()
        }

    def next_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for sensor, profile in self.profiles.items():
            thresholds = profile.thresholds
            step = (thresholds.warning - thresholds.good) / 4
            value = self._values[sensor] + self._random.gauss(0.0, step)
            value = min(max(value, 0.0), thresholds.danger * 1.2)
            self._values[sensor] = value
            payload[profile.payload_key] = round(value, 2)
        if self.include_timestamp:
            payload[TIMESTAMP_FIELD] = datetime.now(timezone.utc).isoformat()
        return payload

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.method != "GET" or not request.url.path.endswith(RAW_PATH):
            return httpx.Response(404, json={"detail": "Not Found"})
        self.request_count += 1
        return httpx.Response(200, json=self.next_payload())

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)
