"""Single-attempt retrieval of the latest reading from the sensor endpoint."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from models.readings import Reading, SensorId, SensorProfile
from services.errors import DecodeError, TransportError
from settings import Settings

logger = logging.getLogger(__name__)

RAW_PATH = "/raw"
TIMESTAMP_FIELD = "timestamp"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str) -> datetime:
    candidate = value.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise DecodeError(f"Invalid timestamp {value!r}.") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as exc:
        raise DecodeError(f"Timestamp {value!r} is out of range.") from exc


def decode_reading(
    payload: Any,
    profiles: Mapping[SensorId, SensorProfile],
    received_at: datetime,
) -> Reading:
    """Build a reading from a decoded JSON body.

    Every profiled sensor must be present as a JSON number. A missing or empty
    timestamp falls back to ``received_at``.
    """
    if not isinstance(payload, dict):
        raise DecodeError(f"Expected a JSON object, got {type(payload).__name__}.")

    missing = [p.payload_key for p in profiles.values() if payload.get(p.payload_key) is None]
    if missing:
        raise DecodeError(f"Payload missing sensor fields: {', '.join(sorted(missing))}")

    values: Dict[SensorId, float] = {}
    for sensor, profile in profiles.items():
        raw = payload[profile.payload_key]
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise DecodeError(f"Sensor field {profile.payload_key!r} is not numeric: {raw!r}")
        try:
            values[sensor] = float(raw)
        except OverflowError as exc:
            raise DecodeError(f"Sensor field {profile.payload_key!r} is out of range.") from exc

    raw_timestamp = payload.get(TIMESTAMP_FIELD)
    if raw_timestamp is None or (isinstance(raw_timestamp, str) and not raw_timestamp.strip()):
        timestamp = received_at
    elif isinstance(raw_timestamp, str):
        timestamp = _parse_timestamp(raw_timestamp)
    else:
        raise DecodeError(f"Timestamp must be an ISO-8601 string, got {raw_timestamp!r}.")

    try:
        return Reading(values=values, timestamp=timestamp)
    except ValueError as exc:
        raise DecodeError(str(exc)) from exc


class TelemetryFetcher:
    """HTTP client for the sensor endpoint. One request per ``fetch`` call."""

    def __init__(
        self,
        base_url: str,
        profiles: Mapping[SensorId, SensorProfile],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.profiles = profiles
        self._clock = clock
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def fetch(self) -> Reading:
        try:
            response = await self._client.get(RAW_PATH)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            detail = exc.response.text.strip()
            raise TransportError(
                f"Sensor endpoint returned status {status_code}: {detail or 'no detail provided.'}",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to reach sensor endpoint: {exc!r}") from exc

        received_at = self._clock()
        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodeError("Response body is not valid JSON.") from exc

        reading = decode_reading(payload, self.profiles, received_at)
        logger.debug("Fetched reading from %s", self.base_url)
        return reading

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TelemetryFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def build_fetcher(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TelemetryFetcher:
    return TelemetryFetcher(
        base_url=settings.base_url,
        profiles=settings.profiles,
        timeout=settings.request_timeout,
        transport=transport,
    )
