from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx
import typer

from cli.config import load_config
from cli.render import render_profiles, render_reading, render_snapshot
from logging_config import configure_logging
from models.readings import Reading
from services.errors import TelemetryError
from services.fetcher import build_fetcher
from services.mock_source import MockSensorSource
from services.poller import Poller, SensorSnapshot
from settings import Settings
from storage.history import HistoryBuffer


@dataclass
class CLIState:
    settings: Settings


app = typer.Typer(
    help="Poll gas sensor telemetry and classify readings against thresholds.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _mock_transport(settings: Settings, mock: bool, seed: Optional[int]) -> Optional[httpx.MockTransport]:
    if not mock:
        return None
    return MockSensorSource(settings.profiles, seed=seed).transport()


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Sensor endpoint base URL (defaults to SENSOR_API_BASE_URL env or http://localhost:8000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between scheduled fetches.",
    ),
    retries: Optional[int] = typer.Option(
        None,
        "--retries",
        min=0,
        help="Immediate retries per poll cycle before reporting an error.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Per-request timeout in seconds.",
    ),
    capacity: Optional[int] = typer.Option(
        None,
        "--capacity",
        min=1,
        help="Number of readings kept in history.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    try:
        settings = load_config(
            base_url=base_url,
            poll_interval=poll_interval,
            retries=retries,
            timeout=timeout,
            capacity=capacity,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    ctx.obj = CLIState(settings=settings)


async def _fetch_once(settings: Settings, transport: Optional[httpx.AsyncBaseTransport]) -> Reading:
    async with build_fetcher(settings, transport=transport) as fetcher:
        return await fetcher.fetch()


async def _watch(
    settings: Settings,
    cycles: Optional[int],
    transport: Optional[httpx.AsyncBaseTransport],
) -> SensorSnapshot:
    poller = Poller(
        fetcher=build_fetcher(settings, transport=transport),
        profiles=settings.profiles,
        interval=settings.poll_interval,
        retry_count=settings.retry_count,
        history=HistoryBuffer(settings.history_capacity),
    )
    finished = asyncio.Event()
    completed = 0

    def on_update(snapshot: SensorSnapshot) -> None:
        nonlocal completed
        if snapshot.is_fetching:
            return
        completed += 1
        typer.echo()
        render_snapshot(snapshot, settings.profiles)
        if cycles is not None and completed >= cycles:
            finished.set()

    poller.subscribe(on_update)
    poller.start()
    try:
        await finished.wait()
    finally:
        await poller.shutdown()
    return poller.snapshot()


@app.command("fetch")
def fetch_command(
    ctx: typer.Context,
    mock: bool = typer.Option(False, "--mock", help="Read from the built-in simulated sensor."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the simulated sensor."),
) -> None:
    """Fetch a single reading and show its classification."""
    state = _get_state(ctx)
    transport = _mock_transport(state.settings, mock, seed)
    try:
        reading = asyncio.run(_fetch_once(state.settings, transport))
    except TelemetryError as exc:
        typer.secho(f"Failed to fetch sensor data: {exc.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    render_reading(reading, state.settings.profiles)


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    cycles: Optional[int] = typer.Option(
        None,
        "--cycles",
        "-n",
        min=1,
        help="Stop after this many completed poll cycles (default: run until interrupted).",
    ),
    mock: bool = typer.Option(False, "--mock", help="Poll the built-in simulated sensor."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the simulated sensor."),
) -> None:
    """Poll continuously, printing each completed cycle."""
    state = _get_state(ctx)
    settings = state.settings
    transport = _mock_transport(settings, mock, seed)
    typer.echo(
        f"Polling {settings.base_url} every {settings.poll_interval}s "
        f"(retries={settings.retry_count}, capacity={settings.history_capacity}) ..."
    )
    try:
        snapshot = asyncio.run(_watch(settings, cycles, transport))
    except KeyboardInterrupt:
        typer.echo("Interrupted.")
        return
    if snapshot.error is not None and snapshot.current_reading is None:
        raise typer.Exit(code=1)


@app.command("sensors")
def sensors_command(ctx: typer.Context) -> None:
    """List configured sensors and their thresholds."""
    state = _get_state(ctx)
    render_profiles(state.settings.profiles)
