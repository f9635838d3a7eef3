"""
Tests for structured transaction logging.
"""

import json
import logging

import pytest

from sagastep import LoggingSink, Transaction
from sagastep.monitoring.logging import (
    TransactionContextFilter,
    TransactionJsonFormatter,
    clear_transaction_context,
    set_transaction_context,
    setup_transaction_logging,
)


def _record(msg="hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("sagastep.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def clean_context():
    clear_transaction_context()
    yield
    clear_transaction_context()


class TestJsonFormatter:
    def test_base_fields(self, clean_context):
        entry = json.loads(TransactionJsonFormatter().format(_record()))

        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "sagastep.test"
        assert "timestamp" in entry

    def test_context_and_extras(self, clean_context):
        set_transaction_context("provision", "charge")
        record = _record(event="step_retry", attempt=2, error_type="ConnectionError")

        entry = json.loads(TransactionJsonFormatter().format(record))

        assert entry["transaction_name"] == "provision"
        assert entry["step_name"] == "charge"
        assert entry["event"] == "step_retry"
        assert entry["attempt"] == 2
        assert entry["error_type"] == "ConnectionError"

    def test_non_json_values_are_stringified(self, clean_context):
        record = _record(event=object())

        entry = json.loads(TransactionJsonFormatter().format(record))

        assert entry["event"].startswith("<object object")


class TestContextFilter:
    def test_fills_missing_fields(self, clean_context):
        set_transaction_context("provision", "charge")
        record = _record()

        assert TransactionContextFilter().filter(record) is True
        assert record.transaction_name == "provision"
        assert record.step_name == "charge"

    def test_defaults_without_context(self, clean_context):
        record = _record()
        TransactionContextFilter().filter(record)

        assert record.transaction_name == "unknown"
        assert record.step_name == ""


class TestLoggingSink:
    def test_levels_follow_event(self, caplog):
        sink = LoggingSink()

        with caplog.at_level(logging.DEBUG, logger="sagastep.events"):
            sink("retrying", {"event": "step_retry", "transaction": "t", "step": "s", "attempt": 1})
            sink("rollback broke", {"event": "compensation_failed", "error": RuntimeError("x")})
            sink("plain message", {})

        levels = [r.levelno for r in caplog.records]
        assert levels == [logging.WARNING, logging.CRITICAL, logging.INFO]
        retry = caplog.records[0]
        assert retry.transaction_name == "t"
        assert retry.step_name == "s"
        assert retry.attempt == 1
        failure = caplog.records[1]
        assert failure.error_type == "RuntimeError"
        assert failure.error_message == "x"

    def test_include_context(self, caplog):
        sink = LoggingSink(include_context=True)

        with caplog.at_level(logging.DEBUG, logger="sagastep.events"):
            sink("start", {"event": "step_start", "context": {"v": 1}})

        assert caplog.records[0].txn_context == {"v": 1}

    @pytest.mark.asyncio
    async def test_as_transaction_sink(self, caplog):
        """Test LoggingSink records the lifecycle of a real run"""
        def boom(ctx):
            raise ValueError("boom")

        txn = (
            Transaction(LoggingSink(), name="sinked")
            .add_step("a", lambda ctx: 1, lambda ctx, err: None)
            .add_step("b", boom)
        )

        with caplog.at_level(logging.DEBUG, logger="sagastep.events"), pytest.raises(ValueError):
            await txn.run()

        events = [r.event for r in caplog.records if r.name == "sagastep.events"]
        assert events == [
            "step_start",
            "step_success",
            "step_start",
            "step_failed",
            "rollback_start",
            "compensation_start",
            "transaction_failed",
        ]


class TestSetupLogging:
    def test_json_console_handler(self):
        logger = setup_transaction_logging("DEBUG", json_format=True)

        try:
            assert logger.level == logging.DEBUG
            assert len(logger.handlers) == 1
            assert isinstance(logger.handlers[0].formatter, TransactionJsonFormatter)
        finally:
            logger.handlers.clear()
            logger.setLevel(logging.NOTSET)

    def test_plain_console_handler(self):
        logger = setup_transaction_logging("INFO", json_format=False)

        try:
            formatter = logger.handlers[0].formatter
            assert "%(transaction_name)s" in formatter._fmt
        finally:
            logger.handlers.clear()
            logger.setLevel(logging.NOTSET)
