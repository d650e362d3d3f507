"""Tests for structured logging."""

from __future__ import annotations

import json
import logging

import pytest

from tagcache.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    configure_logging,
    correlation_id_var,
    record_fields,
)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="tagcache.invalidation",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Cleaned cache entries",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRecordFields:
    """Tests for record_fields."""

    def test_plain_record_has_no_fields(self) -> None:
        assert record_fields(_record()) == {}

    def test_returns_extra_fields_only(self) -> None:
        record = _record(mode="matching_tag", deleted=3)
        record.getMessage()

        assert record_fields(record) == {"mode": "matching_tag", "deleted": 3}

    def test_fields_from_logger_extra(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = logging.getLogger("tagcache.test")
        with caplog.at_level(logging.INFO, logger="tagcache.test"):
            logger.info("Saved cache entry", extra={"cache_id": "A", "tags": ["t1"]})

        assert record_fields(caplog.records[0]) == {"cache_id": "A", "tags": ["t1"]}


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_base_fields(self) -> None:
        data = json.loads(JsonFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "tagcache.invalidation"
        assert data["message"] == "Cleaned cache entries"
        assert "timestamp" in data
        assert "correlation_id" not in data

    def test_extra_fields(self) -> None:
        record = _record(mode="matching_tag", tags=["eu"], deleted=12)

        data = json.loads(JsonFormatter().format(record))

        assert data["mode"] == "matching_tag"
        assert data["tags"] == ["eu"]
        assert data["deleted"] == 12

    def test_unserializable_extra_falls_back_to_str(self) -> None:
        record = _record(error=ValueError("boom"))

        data = json.loads(JsonFormatter().format(record))

        assert data["error"] == "boom"

    def test_correlation_id(self) -> None:
        with LogContext(correlation_id="abc"):
            data = json.loads(JsonFormatter().format(_record()))

        assert data["correlation_id"] == "abc"


class TestConsoleFormatter:
    """Tests for ConsoleFormatter."""

    def test_message_and_fields(self) -> None:
        line = ConsoleFormatter().format(_record(mode="all", deleted=3))

        assert "INFO  tagcache.invalidation: Cleaned cache entries" in line
        assert line.endswith("mode=all deleted=3")

    def test_correlation_id_suffix(self) -> None:
        with LogContext(correlation_id="abc"):
            line = ConsoleFormatter().format(_record(deleted=3))

        assert line.endswith("deleted=3 cid=abc")


class TestLogContext:
    """Tests for LogContext."""

    def test_sets_and_restores(self) -> None:
        assert correlation_id_var.get() == ""

        with LogContext(correlation_id="outer"):
            assert correlation_id_var.get() == "outer"
            with LogContext(correlation_id="inner"):
                assert correlation_id_var.get() == "inner"
            assert correlation_id_var.get() == "outer"

        assert correlation_id_var.get() == ""


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_installs_single_handler(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(json_format=False, level="debug")
            configure_logging(json_format=True, level="warning")

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            assert root.level == logging.WARNING
            assert logging.getLogger("redis").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_console_format(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(json_format=False)

            assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
            assert root.level == logging.INFO
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
