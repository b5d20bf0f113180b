from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

import typer

from models.readings import Reading, SensorId, SensorProfile, Status
from services.classifier import classify, status_description, status_label
from services.poller import SensorSnapshot

_STATUS_COLORS = {
    Status.good: typer.colors.GREEN,
    Status.warning: typer.colors.YELLOW,
    Status.danger: typer.colors.RED,
}


def format_value(value: float, unit: str) -> str:
    return f"{value:g} {unit}"


def format_timestamp(timestamp: Optional[datetime]) -> str:
    if timestamp is None:
        return "Never"
    return timestamp.strftime("%Y-%m-%d %H:%M:%S UTC")


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_reading(reading: Reading, profiles: Mapping[SensorId, SensorProfile]) -> None:
    echo_heading(f"Reading at {format_timestamp(reading.timestamp)}")
    for sensor_id, profile in profiles.items():
        value = reading[sensor_id]
        status = classify(value, profile.thresholds)
        typer.echo(f"  {profile.name}: {format_value(value, profile.unit)} ", nl=False)
        typer.secho(status_label(status), fg=_STATUS_COLORS[status], nl=False)
        typer.echo(f" ({status_description(status)})")


def render_snapshot(snapshot: SensorSnapshot, profiles: Mapping[SensorId, SensorProfile]) -> None:
    if snapshot.current_reading is not None:
        render_reading(snapshot.current_reading, profiles)
    else:
        typer.echo("No reading available yet.")
    echo_key_values(
        [
            ("last_updated", format_timestamp(snapshot.last_updated)),
            ("history", len(snapshot.history)),
        ]
    )
    if snapshot.error is not None:
        typer.secho(f"error: {snapshot.error.message}", fg=typer.colors.RED, err=True)


def render_profiles(profiles: Mapping[SensorId, SensorProfile]) -> None:
    echo_heading("Sensors")
    for profile in profiles.values():
        thresholds = profile.thresholds
        typer.echo(
            f"  - {profile.sensor_id.value}: {profile.name} [{profile.unit}] "
            f"good<={thresholds.good:g} warning<={thresholds.warning:g} danger={thresholds.danger:g}"
        )
