# tests/unit/logging/test_logger.py - v3
"""Tests for logging/logger.py - logger factory and formatters."""

from __future__ import annotations

import json
import logging

from smartcache.logging.context import cache_context, clear_context
from smartcache.logging.logger import JsonFormatter, TextFormatter, get_logger, setup_logging


def _record(msg: str = "Hello", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=level, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "operation" not in parsed
        assert "cache_key" not in parsed

    def test_timestamp_is_record_time(self):
        record = _record()
        record.created = 1772366400.0  # 2026-03-01T12:00:00Z
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["timestamp"] == "2026-03-01T12:00:00+00:00"

    def test_format_with_context(self):
        with cache_context("get_or_fetch", "p1", "priceApi"):
            parsed = json.loads(JsonFormatter().format(_record("hit")))
        assert parsed["operation"] == "get_or_fetch"
        assert parsed["cache_key"] == "p1/priceApi"

    def test_subject_only_key(self):
        with cache_context("invalidate", "p1"):
            parsed = json.loads(JsonFormatter().format(_record("dropped")))
        assert parsed["cache_key"] == "p1"

    def test_operation_without_key(self):
        with cache_context("clean_expired"):
            parsed = json.loads(JsonFormatter().format(_record("swept")))
        assert parsed["operation"] == "clean_expired"
        assert "cache_key" not in parsed

    def test_format_with_extra_data(self):
        record = _record()
        record.data = {"removed": 3}
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["data"] == {"removed": 3}

    def test_format_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys
            record = logging.LogRecord(
                name="test", level=logging.ERROR, pathname="", lineno=0,
                msg="failed", args=(), exc_info=sys.exc_info(),
            )
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestTextFormatter:
    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_context(self):
        with cache_context("invalidate", "p1", "priceApi"):
            output = TextFormatter().format(_record("dropped"))
        assert "[invalidate]" in output
        assert "(p1/priceApi)" in output

    def test_format_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys
            record = logging.LogRecord(
                name="test", level=logging.ERROR, pathname="", lineno=0,
                msg="failed", args=(), exc_info=sys.exc_info(),
            )
        output = TextFormatter().format(record)
        assert output.splitlines()[0].endswith("- failed")
        assert "RuntimeError: boom" in output

    def test_format_subject_only(self):
        with cache_context("invalidate", "p1"):
            output = TextFormatter().format(_record("dropped"))
        assert "(p1)" in output


class TestGetLogger:
    def test_returns_logger(self):
        logger = get_logger("test_module")
        assert logger.name == "smartcache.test_module"


class TestSetupLogging:
    def teardown_method(self):
        root = logging.getLogger("smartcache")
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()
        root.setLevel(logging.NOTSET)

    def test_console_only(self):
        setup_logging(level="DEBUG", log_format="text")
        root = logging.getLogger("smartcache")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_reinit_does_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("smartcache").handlers) == 1

    def test_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "cache.log"
        setup_logging(level="INFO", log_format="json", log_file=str(log_file))
        root = logging.getLogger("smartcache")
        assert len(root.handlers) == 2
        get_logger("file_test").info("written")
        for handler in root.handlers:
            handler.flush()
        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "written"
