"""Tests for structbench.logging_config - structlog setup."""

from __future__ import annotations

import io
import json
import sys

import pytest
import structlog

from structbench.logging_config import configure_logging


class TestConfigureLogging:
    def test_json_lines_on_stderr(self, monkeypatch):
        stream = io.StringIO()
        monkeypatch.setattr(sys, "stderr", stream)
        configure_logging("json", "warning")

        structlog.get_logger("structbench.test").warning("run.failed", run_id="run-1")

        record = json.loads(stream.getvalue())
        assert record["event"] == "run.failed"
        assert record["run_id"] == "run-1"
        assert record["level"] == "warning"
        assert "timestamp" in record

    def test_stderr_replaced_after_configure(self, monkeypatch):
        old = io.StringIO()
        monkeypatch.setattr(sys, "stderr", old)
        configure_logging("json", "warning")
        old.close()

        current = io.StringIO()
        monkeypatch.setattr(sys, "stderr", current)
        structlog.get_logger("structbench.test").warning("retry.backing_off")

        assert json.loads(current.getvalue())["event"] == "retry.backing_off"

    def test_level_filters_lower_records(self, monkeypatch):
        stream = io.StringIO()
        monkeypatch.setattr(sys, "stderr", stream)
        configure_logging("json", "error")

        structlog.get_logger("structbench.test").warning("ignored")

        assert stream.getvalue() == ""

    def test_invalid_format(self):
        with pytest.raises(ValueError, match="Invalid log format"):
            configure_logging("xml")

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging("console", "loud")
