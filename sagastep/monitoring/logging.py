"""
Structured logging for transaction execution

Provides a JSON formatter, a context filter that stamps records with the
running transaction and step, and LoggingSink, a ready-made logging sink for
Transaction that routes lifecycle events into standard logging.
"""

import json
import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from sagastep.core.logger import EVENTS_LOGGER, library_logger

# Context variable for propagating the running transaction/step
transaction_context: ContextVar[dict[str, Any]] = ContextVar("transaction_context", default={})


class TransactionJsonFormatter(logging.Formatter):
    """
    JSON formatter for transaction logs with structured fields
    """

    # Fields to extract from log record if present
    _EXTRA_FIELDS = (
        "transaction_name",
        "step_name",
        "event",
        "attempt",
        "delay",
        "error_type",
        "error_message",
        "scope",
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""
        log_entry = self._build_base_entry(record)
        self._add_transaction_context(log_entry)
        self._add_record_extras(log_entry, record)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        # Contexts are opaque and may not be JSON-native
        return json.dumps(log_entry, default=str)

    def _build_base_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

    def _add_transaction_context(self, log_entry: dict[str, Any]) -> None:
        context = transaction_context.get({})
        if context:
            log_entry["transaction_name"] = context.get("transaction_name")
            log_entry["step_name"] = context.get("step_name")

    def _add_record_extras(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self._EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None and value != "":
                log_entry[field] = value


class TransactionContextFilter(logging.Filter):
    """
    Logging filter that adds transaction context to log records
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = transaction_context.get({})

        if not hasattr(record, "transaction_name"):
            record.transaction_name = context.get("transaction_name", "unknown")
        if not hasattr(record, "step_name"):
            record.step_name = context.get("step_name", "")

        return True


def set_transaction_context(transaction_name: str, step_name: str | None = None) -> None:
    """Set transaction context for the current execution"""
    transaction_context.set({"transaction_name": transaction_name, "step_name": step_name})


def clear_transaction_context() -> None:
    transaction_context.set({})


class LoggingSink:
    """
    Logging sink that forwards Transaction lifecycle events to standard logging.

    Pass an instance as the ``logger`` argument of Transaction:

        >>> txn = Transaction(LoggingSink())

    The level is picked from the ``event`` key of the details; unknown events
    are logged at the default level.
    """

    EVENT_LEVELS = {
        "step_start": logging.DEBUG,
        "step_success": logging.INFO,
        "step_retry": logging.WARNING,
        "step_failed": logging.ERROR,
        "rollback_start": logging.WARNING,
        "compensation_start": logging.INFO,
        "global_compensation_start": logging.INFO,
        "compensation_failed": logging.CRITICAL,
        "global_compensation_failed": logging.CRITICAL,
        "transaction_completed": logging.INFO,
        "transaction_failed": logging.ERROR,
    }

    def __init__(
        self,
        logger: logging.Logger | None = None,
        default_level: int = logging.INFO,
        include_context: bool = False,
    ):
        self.logger = logger or library_logger(EVENTS_LOGGER)
        self.default_level = default_level
        self.include_context = include_context

    def __call__(self, message: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        event = details.get("event", "")
        level = self.EVENT_LEVELS.get(event, self.default_level)
        self.logger.log(level, message, extra=self._build_extra(details))

    def _build_extra(self, details: dict[str, Any]) -> dict[str, Any]:
        extra: dict[str, Any] = {
            "event": details.get("event", ""),
            "transaction_name": details.get("transaction", ""),
            "step_name": details.get("step", ""),
        }
        for key in ("attempt", "delay", "scope"):
            if key in details:
                extra[key] = details[key]

        error = details.get("error")
        if isinstance(error, BaseException):
            extra["error_type"] = type(error).__name__
            extra["error_message"] = str(error)

        if self.include_context:
            for key in ("context", "result"):
                if key in details:
                    extra[f"txn_{key}"] = details[key]
        return extra


def setup_transaction_logging(
    log_level: str = "INFO", json_format: bool = True, include_console: bool = True
) -> logging.Logger:
    """
    Set up structured logging for transactions

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting for structured logs
        include_console: Include console handler

    Returns:
        The configured 'sagastep' logger
    """
    root_logger = library_logger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if include_console:
        console_handler = logging.StreamHandler()
        console_handler.addFilter(TransactionContextFilter())

        if json_format:
            console_handler.setFormatter(TransactionJsonFormatter())
        else:
            console_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - "
                    "[%(transaction_name)s:%(step_name)s] - %(message)s"
                )
            )

        root_logger.addHandler(console_handler)
    else:
        root_logger.addHandler(logging.NullHandler())

    return root_logger
