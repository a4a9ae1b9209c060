"""Tests for logging configuration, JSON formatting and lazy debug logging."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator

import pytest

from nested_set.infra.logging import (
    JSONFormatter,
    LazyString,
    configure_logging,
    get_lazy_logger,
    lazy,
    shutdown,
)


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Undo configure_logging side effects on the root logger."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    shutdown()
    root.setLevel(level)
    root.handlers = handlers


def make_record(msg: str = "Node moved", **extra) -> logging.LogRecord:
    record = logging.LogRecord("nested_set.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "nested_set.test"
        assert data["message"] == "Node moved"
        assert data["timestamp"].endswith("Z")

    def test_extras_and_static(self):
        formatter = JSONFormatter(static={"service": "nested-set"})

        data = json.loads(formatter.format(make_record(model="Category", node_id=7)))

        assert data["service"] == "nested-set"
        assert data["model"] == "Category"
        assert data["node_id"] == 7

    def test_exception_on_one_line(self):
        try:
            raise ValueError("bad interval")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

        output = JSONFormatter().format(record)

        assert "\n" not in output
        assert "bad interval" in json.loads(output)["exception"]


class TestLazyLogger:
    """Tests for the lazy logger."""

    def test_not_evaluated_when_disabled(self, caplog):
        caplog.set_level(logging.INFO, logger="nested_set.lazy_test")
        calls = []
        lazy_logger = get_lazy_logger("nested_set.lazy_test")

        lazy_logger.debug(lambda: calls.append("called") or "expensive")

        assert calls == []
        assert caplog.records == []

    def test_evaluated_when_enabled_with_bound_context(self, caplog):
        caplog.set_level(logging.DEBUG, logger="nested_set.lazy_test")
        lazy_logger = get_lazy_logger("nested_set.lazy_test", model="Category")

        lazy_logger.debug(lambda: "shift right >= 4: +2", extra={"node_id": 3})

        [record] = caplog.records
        assert record.getMessage() == "shift right >= 4: +2"
        assert record.model == "Category"
        assert record.node_id == 3

    def test_lazy_string(self):
        value = lazy(lambda: 40 + 2)
        assert isinstance(value, LazyString)
        assert str(value) == "42"


def test_configure_logging_writes_json_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "tree.log"
    configure_logging(
        log_level="info",
        file_path=log_file,
        json_logs=True,
        console_enabled=False,
        capture_warnings=False,
    )

    logging.getLogger("nested_set.test").info("Node deleted", extra={"node_id": 9, "operation": "tree.delete"})
    logging.getLogger("nested_set.test").debug("not written")
    shutdown()

    lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert [line["message"] for line in lines] == ["Node deleted"]
    assert lines[0]["node_id"] == 9
    assert lines[0]["service"] == "nested-set"
