"""
Monitoring helpers: structured logging and metrics collectors.
"""

from sagastep.monitoring.logging import (
    LoggingSink,
    TransactionContextFilter,
    TransactionJsonFormatter,
    setup_transaction_logging,
)
from sagastep.monitoring.metrics import TransactionMetrics

__all__ = [
    "LoggingSink",
    "TransactionContextFilter",
    "TransactionJsonFormatter",
    "TransactionMetrics",
    "setup_transaction_logging",
]
