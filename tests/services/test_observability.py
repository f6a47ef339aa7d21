"""Structured Logging — tests for the JSON formatter and handler setup.

Tests cover:
    - whitelisted extras are surfaced, anything else is dropped
    - setup_logging replaces its previous handler instead of stacking
"""

import json
import logging

from privnote.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord(
        "privnote.test", logging.INFO, __file__, 1, "Note created", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_keeps_whitelisted_extras():
    line = json.loads(JSONFormatter().format(
        _record(discipline="windowed", operation="create"),
    ))
    assert line["message"] == "Note created"
    assert line["level"] == "INFO"
    assert line["discipline"] == "windowed"
    assert line["operation"] == "create"


def test_json_formatter_drops_unlisted_extras():
    line = json.loads(JSONFormatter().format(
        _record(note_id="8d3c0e1e-secret", secret="pw1"),
    ))
    assert "note_id" not in line
    assert "secret" not in line


def test_setup_logging_replaces_handler():
    first = setup_logging("INFO", "json")
    second = setup_logging("DEBUG", "text")
    try:
        assert first not in logging.root.handlers
        assert second in logging.root.handlers
        assert logging.root.level == logging.DEBUG
    finally:
        logging.root.removeHandler(second)
