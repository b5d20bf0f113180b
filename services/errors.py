"""Error taxonomy for telemetry acquisition."""

from __future__ import annotations

from typing import Optional


class TelemetryError(Exception):
    """A fresh reading could not be obtained from the sensor endpoint."""

    kind = "telemetry"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransportError(TelemetryError):
    """Network failure or non-2xx response from the sensor endpoint."""

    kind = "transport"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(TelemetryError):
    """Payload is unparsable or lacks a required sensor field."""

    kind = "decode"


class ConfigurationError(ValueError):
    """Static sensor configuration is invalid."""
