"""Scheduled and manual acquisition of sensor readings."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from models.readings import Reading, SensorId, SensorProfile, Status
from services.classifier import Classifier
from services.errors import TelemetryError, TransportError
from services.fetcher import build_fetcher
from settings import DEFAULT_POLL_INTERVAL, DEFAULT_RETRY_COUNT, get_settings
from storage.history import HistoryBuffer

logger = logging.getLogger(__name__)


class ReadingSource(Protocol):
    async def fetch(self) -> Reading:
        ...


class FetchPhase(str, Enum):
    idle = "idle"
    in_flight = "in_flight"
    succeeded = "succeeded"
    failed = "failed"


@dataclass(frozen=True)
class FetchState:
    """Outcome of the latest poll cycle; replaced by the next one."""

    phase: FetchPhase = FetchPhase.idle
    reading: Optional[Reading] = None
    error: Optional[TelemetryError] = None


@dataclass(frozen=True)
class SensorSnapshot:
    """Read-only view handed to subscribers.

    ``is_loading`` is set only while the first reading is still being fetched.
    ``is_fetching`` is set whenever a cycle is in flight.
    """

    is_loading: bool
    is_fetching: bool
    error: Optional[TelemetryError]
    current_reading: Optional[Reading]
    history: Tuple[Reading, ...]
    statuses: Mapping[SensorId, Status] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def last_updated(self) -> Optional[datetime]:
        if self.current_reading is None:
            return None
        return self.current_reading.timestamp


Subscriber = Callable[[SensorSnapshot], None]


class Poller:
    """Drives periodic and manual fetches for one sensor endpoint.

    At most one fetch is in flight at a time. Triggers that arrive while a
    cycle is running queue a single follow-up cycle. Once ``stop`` returns the
    history buffer is never appended to again.
    """

    def __init__(
        self,
        fetcher: ReadingSource,
        profiles: Mapping[SensorId, SensorProfile],
        interval: float = DEFAULT_POLL_INTERVAL,
        retry_count: int = DEFAULT_RETRY_COUNT,
        history: Optional[HistoryBuffer] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval}.")
        if retry_count < 0:
            raise ValueError(f"Retry count cannot be negative, got {retry_count}.")
        self.fetcher = fetcher
        self.profiles = profiles
        self.interval = interval
        self.retry_count = retry_count
        self.history = history if history is not None else HistoryBuffer()
        self.classifier = Classifier(profiles)
        self._current: Optional[Reading] = None
        self._statuses: Dict[SensorId, Status] = {}
        self._error: Optional[TelemetryError] = None
        self._fetch_state = FetchState()
        self._subscribers: List[Subscriber] = []
        self._stopped = False
        self._timer_task: Optional[asyncio.Task[None]] = None
        self._cycle_task: Optional[asyncio.Task[None]] = None
        self._rerun_requested = False

    @property
    def fetch_state(self) -> FetchState:
        return self._fetch_state

    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done() and not self._stopped

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def start(self) -> None:
        """Begin periodic polling, starting with an immediate fetch."""
        if self._stopped:
            raise RuntimeError("Poller has been stopped and cannot be restarted.")
        if self.is_running:
            return
        loop = asyncio.get_running_loop()
        self._timer_task = loop.create_task(self._tick(), name="poller-timer")
        logger.info("Poller started", extra={"reason": f"interval={self.interval}s"})

    def stop(self) -> None:
        """Cancel scheduling. Results of a fetch still in flight are discarded."""
        if self._stopped:
            return
        self._stopped = True
        self._rerun_requested = False
        if self._timer_task is not None:
            self._timer_task.cancel()
        logger.info("Poller stopped", extra={"history_size": len(self.history)})

    async def wait_idle(self) -> None:
        """Wait for the in-flight cycle and a cancelled timer to finish."""
        if self._timer_task is not None and self._stopped:
            with contextlib.suppress(asyncio.CancelledError):
                await self._timer_task
        if self._cycle_task is not None and not self._cycle_task.done():
            await asyncio.shield(self._cycle_task)

    async def shutdown(self) -> None:
        """Stop, let the in-flight cycle settle, then release the fetcher."""
        self.stop()
        await self.wait_idle()
        close = getattr(self.fetcher, "aclose", None)
        if close is not None:
            await close()

    async def refresh_now(self) -> SensorSnapshot:
        """Run a cycle now, or queue one behind the cycle already running."""
        if self._stopped:
            logger.debug("Ignoring manual refresh on stopped poller")
            return self.snapshot()
        task = self._schedule_cycle()
        await asyncio.shield(task)
        return self.snapshot()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> SensorSnapshot:
        fetching = self._fetch_state.phase is FetchPhase.in_flight
        return SensorSnapshot(
            is_loading=fetching and self._current is None,
            is_fetching=fetching,
            error=self._error,
            current_reading=self._current,
            history=self.history.snapshot(),
            statuses=MappingProxyType(dict(self._statuses)),
        )

    async def _tick(self) -> None:
        while not self._stopped:
            self._schedule_cycle()
            await asyncio.sleep(self.interval)

    def _schedule_cycle(self) -> asyncio.Task[None]:
        if self._cycle_task is not None and not self._cycle_task.done():
            self._rerun_requested = True
            return self._cycle_task
        loop = asyncio.get_running_loop()
        self._cycle_task = loop.create_task(self._run_cycles(), name="poller-cycle")
        return self._cycle_task

    async def _run_cycles(self) -> None:
        while not self._stopped:
            self._rerun_requested = False
            await self._poll_once()
            if not self._rerun_requested:
                break

    async def _poll_once(self) -> None:
        self._fetch_state = FetchState(phase=FetchPhase.in_flight)
        self._notify()

        start_time = time.perf_counter()
        max_attempts = self.retry_count + 1
        attempt = 0
        while True:
            attempt += 1
            try:
                reading = await self.fetcher.fetch()
            except TelemetryError as exc:
                error: TelemetryError = exc
            except Exception as exc:
                logger.exception(
                    "Unexpected error while fetching reading",
                    extra={"attempt": attempt, "max_attempts": max_attempts},
                )
                error = TransportError(f"Unexpected fetch failure: {exc!r}")
            else:
                self._apply_success(reading, start_time)
                return

            logger.warning(
                "Fetch attempt failed: %s",
                error.message,
                extra={
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "error_kind": error.kind,
                    "status_code": getattr(error, "status_code", None),
                },
            )
            if attempt >= max_attempts or self._stopped:
                self._apply_failure(error, start_time)
                return

    def _apply_success(self, reading: Reading, start_time: float) -> None:
        if self._stopped:
            self._discard("success")
            return

        statuses = self.classifier.classify_reading(reading)
        self._log_status_changes(statuses)
        self.history.append(reading)
        self._current = reading
        self._statuses = statuses
        self._error = None
        self._fetch_state = FetchState(phase=FetchPhase.succeeded, reading=reading)
        logger.debug(
            "Reading stored",
            extra={
                "history_size": len(self.history),
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        self._notify()

    def _apply_failure(self, error: TelemetryError, start_time: float) -> None:
        if self._stopped:
            self._discard("failure")
            return

        self._error = error
        self._fetch_state = FetchState(phase=FetchPhase.failed, error=error)
        logger.error(
            "Poll cycle failed: %s",
            error.message,
            extra={
                "error_kind": error.kind,
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        self._notify()

    def _discard(self, outcome: str) -> None:
        self._fetch_state = FetchState()
        logger.info("Discarding fetch result after stop", extra={"reason": outcome})

    def _log_status_changes(self, statuses: Mapping[SensorId, Status]) -> None:
        for sensor, status in statuses.items():
            previous = self._statuses.get(sensor)
            if previous is status:
                continue
            level = logging.WARNING if status is Status.danger else logging.INFO
            logger.log(
                level,
                "Sensor status changed to %s",
                status.value,
                extra={"sensor": sensor.value, "status": status.value},
            )

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Subscriber callback failed")


@lru_cache
def build_default_poller() -> Poller:
    """Factory that wires the poller from environment settings."""
    settings = get_settings()
    return Poller(
        fetcher=build_fetcher(settings),
        profiles=settings.profiles,
        interval=settings.poll_interval,
        retry_count=settings.retry_count,
        history=HistoryBuffer(settings.history_capacity),
    )
