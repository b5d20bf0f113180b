from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.poller",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Fetch attempt failed: %s",
        args=("down",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_extra_keys() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    output = formatter.format(_record(attempt=2, max_attempts=4, error_kind="transport", ignored="x"))

    assert output == "WARNING Fetch attempt failed: down | attempt=2 max_attempts=4 error_kind=transport"


def test_formatter_skips_missing_and_none_values() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["sensor", "status_code"])

    assert formatter.format(_record(status_code=None)) == "Fetch attempt failed: down"
    assert formatter.format(_record(sensor="methane")) == "Fetch attempt failed: down | sensor=methane"
