# ============================================
# FILE: sagastep/__init__.py
# ============================================

"""
sagastep - Sequential Saga Transactions

Runs a named list of steps in order, passing each step's result to the next
step as context, with:
- Per-step retry policies (attempt budget + delay)
- Reverse-order rollback of completed steps on failure
- Step-specific and global compensations, best-effort and non-blocking
- Lifecycle observers (on_start / on_success / on_error)
- Structured logging sink and metrics collectors

Usage Mode 1 - Imperative (builder):
    >>> from sagastep import RetryPolicy, Transaction, TransactionStep
    >>>
    >>> txn = (
    ...     Transaction(name="user-update")
    ...     .add_step("user_query", query_user, revert_query,
    ...               retry=RetryPolicy(max_attempts=2, delay=0.1))
    ...     .add_step("user_update", update_user, revert_update)
    ...     .on_step(rollback=global_rollback)
    ... )
    >>> result = await txn.run()

Usage Mode 2 - Declarative (via inheritance + decorators):
    >>> from sagastep import Transaction, compensate, step
    >>>
    >>> class UserUpdate(Transaction):
    ...     @step("user_query")
    ...     async def user_query(self, ctx):
    ...         return {"user_id": 123}
    ...
    ...     @compensate("user_query")
    ...     async def revert_query(self, ctx, error):
    ...         ...

If any step fails after its retries, completed steps are compensated newest
first and the original error is re-raised.
"""

from sagastep.core.config import TransactionConfig, configure, get_config, reset_config
from sagastep.core.decorators import action, compensate, step
from sagastep.core.exceptions import (
    DuplicateStepError,
    StepDefinitionError,
    StepError,
    TransactionError,
    TransactionStateError,
)
from sagastep.core.logger import NullLogger, get_logger, set_logger
from sagastep.core.transaction import Transaction
from sagastep.core.types import (
    CompensationFailure,
    ExecutionRecord,
    RetryPolicy,
    StepObservers,
    TransactionStatus,
    TransactionStep,
)
from sagastep.monitoring.logging import LoggingSink, setup_transaction_logging
from sagastep.monitoring.metrics import TransactionMetrics

__version__ = "0.1.0"

__all__ = [
    # Primary exports
    "Transaction",
    "TransactionStep",
    "RetryPolicy",
    "StepObservers",
    "step",
    "action",
    "compensate",
    # Configuration
    "TransactionConfig",
    "configure",
    "get_config",
    "reset_config",
    # Types and results
    "TransactionStatus",
    "ExecutionRecord",
    "CompensationFailure",
    # Exceptions
    "TransactionError",
    "StepError",
    "StepDefinitionError",
    "DuplicateStepError",
    "TransactionStateError",
    # Logging / monitoring
    "LoggingSink",
    "setup_transaction_logging",
    "TransactionMetrics",
    "NullLogger",
    "get_logger",
    "set_logger",
]
