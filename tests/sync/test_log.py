"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from docsync.log import QUIET_LOGGERS, configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    quiet_levels = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, quiet_level in quiet_levels.items():
        logging.getLogger(name).setLevel(quiet_level)


def test_json_logs_carry_event_context(capsys):
    configure_logging("INFO", json_logs=True)

    get_logger("tests").info("Unit processed", unit="Beta")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "Unit processed"
    assert record["unit"] == "Beta"
    assert record["logger"] == "docsync.tests"
    assert record["level"] == "info"


def test_debug_level_keeps_request_loggers_quiet():
    configure_logging("debug", json_logs=True)

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
