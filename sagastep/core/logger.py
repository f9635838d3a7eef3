"""
Library logger for sagastep.

Every logger handed out here lives under the ``sagastep`` namespace, so a
single ``logging.getLogger("sagastep")`` controls the orchestrator, the
logging sink and the metrics collectors together. The namespace root carries
a NullHandler until an application configures it.

    >>> from sagastep.core.logger import get_logger
    >>> get_logger("billing").name
    'sagastep.billing'

A custom logger (structlog, loguru, ...) replaces the stdlib one for the
orchestrator with ``set_logger()``; ``set_logger(NullLogger())`` silences it.
"""

import logging
from typing import Any

LIBRARY_LOGGER = "sagastep"
EVENTS_LOGGER = f"{LIBRARY_LOGGER}.events"

_custom_logger: Any = None


class NullLogger:
    """Logger that discards every call."""

    def _discard(self, *args: Any, **kwargs: Any) -> None:
        return None

    debug = info = warning = error = exception = critical = log = _discard


def namespaced(name: str | None = None) -> str:
    """Map a module or component name into the ``sagastep`` logger hierarchy."""
    if not name or name == LIBRARY_LOGGER:
        return LIBRARY_LOGGER
    if name.startswith(f"{LIBRARY_LOGGER}."):
        return name
    return f"{LIBRARY_LOGGER}.{name}"


def library_logger(name: str | None = None) -> logging.Logger:
    """
    Stdlib logger under the ``sagastep`` namespace.

    Ignores set_logger(): callers that pass ``extra=`` or attach handlers
    (LoggingSink, setup_transaction_logging) need a real logging.Logger.
    """
    root = logging.getLogger(LIBRARY_LOGGER)
    if not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(namespaced(name))


def set_logger(logger: Any) -> None:
    """
    Route orchestrator logging to a custom logger.

    Args:
        logger: Object with debug/info/warning/error/exception methods,
            or None to go back to the stdlib ``sagastep`` loggers.
    """
    global _custom_logger
    _custom_logger = logger


def get_logger(name: str | None = None) -> Any:
    """
    Logger for orchestrator code: the custom logger if one was set,
    otherwise ``library_logger(name)``.
    """
    if _custom_logger is not None:
        return _custom_logger
    return library_logger(name)
