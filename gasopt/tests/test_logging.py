"""Tests for gasopt.core.logging formatters."""

from __future__ import annotations

import json
import logging

import pytest

from gasopt.core.logging import DevFormatter, JSONFormatter, setup_logging


def _record(msg: str = "Report %d created", *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="gasopt.core.store",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args or (0,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_includes_ledger_context(self):
        record = _record(caller="0xabc", report_index=0, unrelated="x")
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "Report 0 created"
        assert entry["level"] == "INFO"
        assert entry["caller"] == "0xabc"
        assert entry["report_index"] == 0
        assert "unrelated" not in entry

    def test_includes_exception(self):
        try:
            raise ValueError("bad gas")
        except ValueError:
            import sys

            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(JSONFormatter().format(record))
        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "bad gas"


class TestDevFormatter:
    def test_prefixes_request_id(self):
        record = _record(request_id="0123456789abcdef")
        line = DevFormatter().format(record)
        assert "[01234567] Report 0 created" in line
        assert "gasopt.core.store" in line


class TestSetupLogging:
    @pytest.mark.parametrize(
        "env, formatter", [("production", JSONFormatter), ("development", DevFormatter)]
    )
    def test_selects_formatter(self, env, formatter):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging(env=env, log_level="debug")
            assert root.level == logging.DEBUG
            assert isinstance(root.handlers[0].formatter, formatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
