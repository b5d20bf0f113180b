"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Mapping, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import (
    ErrorInfo,
    ReadingOut,
    SensorProfileOut,
    SensorSeries,
    SensorState,
    SensorValue,
    SeriesPoint,
    ThresholdsOut,
)
from models.readings import Reading, SensorId, SensorProfile
from services.classifier import classify, status_label
from services.errors import TelemetryError
from services.poller import Poller, SensorSnapshot, build_default_poller

router = APIRouter()


def get_poller() -> Poller:
    return build_default_poller()


def _reading_out(reading: Reading, profiles: Mapping[SensorId, SensorProfile]) -> ReadingOut:
    sensors: List[SensorValue] = []
    for sensor_id, profile in profiles.items():
        value = reading[sensor_id]
        sensor_status = classify(value, profile.thresholds)
        sensors.append(
            SensorValue(
                sensor_id=sensor_id,
                name=profile.name,
                unit=profile.unit,
                value=value,
                status=sensor_status,
                label=status_label(sensor_status),
            )
        )
    return ReadingOut(timestamp=reading.timestamp, sensors=sensors)


def _error_out(error: Optional[TelemetryError]) -> Optional[ErrorInfo]:
    if error is None:
        return None
    return ErrorInfo(
        kind=error.kind,
        message=error.message,
        status_code=getattr(error, "status_code", None),
    )


def _state_out(snapshot: SensorSnapshot, profiles: Mapping[SensorId, SensorProfile]) -> SensorState:
    current = snapshot.current_reading
    return SensorState(
        is_loading=snapshot.is_loading,
        is_fetching=snapshot.is_fetching,
        error=_error_out(snapshot.error),
        current_reading=_reading_out(current, profiles) if current is not None else None,
        history=[_reading_out(reading, profiles) for reading in snapshot.history],
        last_updated=snapshot.last_updated,
    )


@router.get(
    "/state",
    response_model=SensorState,
    summary="Current reading, bounded history and last error.",
)
async def get_state(poller: Poller = Depends(get_poller)) -> SensorState:
    return _state_out(poller.snapshot(), poller.profiles)


@router.post(
    "/refresh",
    response_model=SensorState,
    summary="Fetch a fresh reading now, or wait behind the fetch in flight.",
)
async def refresh(poller: Poller = Depends(get_poller)) -> SensorState:
    snapshot = await poller.refresh_now()
    return _state_out(snapshot, poller.profiles)


@router.get(
    "/sensors",
    response_model=List[SensorProfileOut],
    summary="Static sensor profiles and thresholds.",
)
async def list_sensors(poller: Poller = Depends(get_poller)) -> List[SensorProfileOut]:
    return [
        SensorProfileOut(
            sensor_id=profile.sensor_id,
            name=profile.name,
            unit=profile.unit,
            category=profile.category,
            description=profile.description,
            thresholds=ThresholdsOut(
                good=profile.thresholds.good,
                warning=profile.thresholds.warning,
                danger=profile.thresholds.danger,
            ),
        )
        for profile in poller.profiles.values()
    ]


@router.get(
    "/sensors/{sensor_id}/series",
    response_model=SensorSeries,
    summary="History of a single sensor for charting.",
)
async def get_series(sensor_id: str, poller: Poller = Depends(get_poller)) -> SensorSeries:
    try:
        sensor = SensorId(sensor_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown sensor {sensor_id!r}.",
        ) from exc
    profile = poller.profiles[sensor]
    points = [
        SeriesPoint(timestamp=timestamp, value=value, status=classify(value, profile.thresholds))
        for timestamp, value in poller.history.series(sensor)
    ]
    return SensorSeries(sensor_id=sensor, unit=profile.unit, points=points)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(poller: Poller = Depends(get_poller)) -> dict[str, str]:
    return {"status": "ok", "poller": "running" if poller.is_running else "idle"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
