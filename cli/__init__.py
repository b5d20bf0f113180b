"""Command-line interface for the gas telemetry monitor."""
