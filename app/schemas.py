"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.readings import SensorId, Status


class ErrorInfo(BaseModel):
    """Last telemetry failure, kept until the next successful cycle."""

    kind: str = Field(..., description="Either 'transport' or 'decode'.")
    message: str
    status_code: Optional[int] = None


class SensorValue(BaseModel):
    """One sensor's value within a reading, with its derived status."""

    sensor_id: SensorId
    name: str
    unit: str
    value: float
    status: Status
    label: str = Field(..., description="Display text for the status.")


class ReadingOut(BaseModel):
    timestamp: datetime
    sensors: List[SensorValue]


class SensorState(BaseModel):
    """Snapshot of the poller as seen by presentation clients."""

    is_loading: bool
    is_fetching: bool
    error: Optional[ErrorInfo] = None
    current_reading: Optional[ReadingOut] = None
    history: List[ReadingOut] = Field(default_factory=list)
    last_updated: Optional[datetime] = None


class ThresholdsOut(BaseModel):
    good: float
    warning: float
    danger: float = Field(..., description="Informational; not used for classification.")


class SensorProfileOut(BaseModel):
    sensor_id: SensorId
    name: str
    unit: str
    category: str
    description: str
    thresholds: ThresholdsOut


class SeriesPoint(BaseModel):
    timestamp: datetime
    value: float
    status: Status


class SensorSeries(BaseModel):
    """History of a single sensor, oldest first."""

    sensor_id: SensorId
    unit: str
    points: List[SeriesPoint] = Field(default_factory=list)
