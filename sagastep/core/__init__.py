"""
Core module for sagastep - contains the fundamental building blocks.
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

__all__ = [
    # Config
    "TransactionConfig",
    "configure",
    "get_config",
    "reset_config",
    # Decorators
    "action",
    "compensate",
    "step",
    # Exceptions
    "DuplicateStepError",
    "StepDefinitionError",
    "StepError",
    "TransactionError",
    "TransactionStateError",
    # Logger
    "NullLogger",
    "get_logger",
    "set_logger",
    # Orchestrator
    "Transaction",
    # Types
    "CompensationFailure",
    "ExecutionRecord",
    "RetryPolicy",
    "StepObservers",
    "TransactionStatus",
    "TransactionStep",
]
