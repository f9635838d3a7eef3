# ============================================
# FILE: sagastep/core/types.py
# ============================================

"""
All type definitions, enums, and dataclasses
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

# Step callables may be plain functions or coroutine functions
StepAction = Callable[[Any], Any | Awaitable[Any]]
CompensationFn = Callable[[Any, Exception], None | Awaitable[None]]

# Observer hook signatures
OnStartHook = Callable[[str, Any], None | Awaitable[None]]
OnSuccessHook = Callable[[str, Any, Any], None | Awaitable[None]]
OnErrorHook = Callable[[str, Any, Exception], None | Awaitable[None]]

# Logging sink: (message, details) -> None
LogSink = Callable[[str, dict[str, Any]], None]


class TransactionStatus(Enum):
    """Overall transaction status."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ROLLING_BACK = "rolling_back"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransactionStatus.COMPLETED, TransactionStatus.FAILED)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bound on re-attempts of a failing step action.

    Attributes:
        max_attempts: Total number of calls allowed, including the first one
        delay: Seconds to wait between attempts (0 retries immediately)
    """

    max_attempts: int = 1
    delay: float = 0.0

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            msg = f"max_attempts must be an integer, got {self.max_attempts!r}"
            raise TypeError(msg)
        if self.max_attempts < 1:
            msg = f"max_attempts must be >= 1, got {self.max_attempts}"
            raise ValueError(msg)
        if self.delay < 0:
            msg = f"delay must be >= 0, got {self.delay}"
            raise ValueError(msg)


@dataclass(frozen=True)
class TransactionStep:
    """
    Definition of a single transaction step.

    The action receives the context produced by the previous step and returns
    the context for the next one. The compensation, if any, receives the
    context the step was started with plus the error that triggered rollback.
    """

    name: str
    action: StepAction
    compensation: CompensationFn | None = None
    retry: RetryPolicy | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            msg = f"Step name must be a non-empty string, got {self.name!r}"
            raise ValueError(msg)
        if not callable(self.action):
            msg = f"Step '{self.name}' action must be callable"
            raise TypeError(msg)
        if self.compensation is not None and not callable(self.compensation):
            msg = f"Step '{self.name}' compensation must be callable"
            raise TypeError(msg)
        if self.retry is not None and not isinstance(self.retry, RetryPolicy):
            msg = f"Step '{self.name}' retry must be a RetryPolicy"
            raise TypeError(msg)


@dataclass(frozen=True)
class ExecutionRecord:
    """A successfully completed step and the context it was started with."""

    step_name: str
    input_context: Any


@dataclass(frozen=True)
class StepObservers:
    """
    Lifecycle observers plus the global compensation handler.

    Every hook is optional. ``rollback`` runs for each completed step during
    unwind, after that step's own compensation.
    """

    on_start: OnStartHook | None = None
    on_success: OnSuccessHook | None = None
    on_error: OnErrorHook | None = None
    rollback: CompensationFn | None = None


@dataclass(frozen=True)
class CompensationFailure:
    """A compensation error that was caught and suppressed during rollback."""

    step_name: str
    scope: str  # "step" or "global"
    error: Exception
