"""
Transaction - sequential saga orchestrator.

Runs an ordered list of steps, threading the result of each step into the
next as context. When a step fails after exhausting its retries, every step
that already succeeded is compensated in reverse order and the original
error is re-raised.

Imperative usage:
    >>> txn = (
    ...     Transaction(name="provision-user")
    ...     .add_step("create_account", create_account, delete_account)
    ...     .add_steps([
    ...         TransactionStep("grant_access", grant_access, revoke_access,
    ...                         retry=RetryPolicy(max_attempts=3, delay=0.1)),
    ...         TransactionStep("notify", notify),
    ...     ])
    ...     .on_step(on_error=report, rollback=audit_rollback)
    ... )
    >>> result = await txn.run()

Declarative usage: see sagastep.core.decorators.

A Transaction is single-use: run() may be awaited once per instance.
"""

import asyncio
import inspect
import time
from collections.abc import Iterable
from typing import Any

from sagastep.core.config import TransactionConfig, get_config
from sagastep.core.decorators import (
    COMPENSATION_META_ATTR,
    STEP_META_ATTR,
    CompensationMetadata,
    StepMetadata,
)
from sagastep.core.exceptions import (
    DuplicateStepError,
    StepDefinitionError,
    TransactionStateError,
)
from sagastep.core.logger import get_logger
from sagastep.core.types import (
    CompensationFailure,
    CompensationFn,
    ExecutionRecord,
    LogSink,
    OnErrorHook,
    OnStartHook,
    OnSuccessHook,
    RetryPolicy,
    StepAction,
    StepObservers,
    TransactionStatus,
    TransactionStep,
)
from sagastep.monitoring.logging import set_transaction_context, transaction_context


class Transaction:
    """
    Sequential transaction with retries and reverse-order compensation.

    Class Attributes:
        transaction_name: Optional name used in logs and metrics
            (defaults to the class name)

    Args:
        logger: Optional logging sink called as ``logger(message, details)``
            at every lifecycle point. ``details`` always has an ``event`` key.
        name: Transaction name (overrides ``transaction_name``)
        config: Optional TransactionConfig. If not provided, uses global config.
        metrics: Optional metrics collector (TransactionMetrics, PrometheusMetrics)
    """

    transaction_name: str | None = None

    def __init__(
        self,
        logger: LogSink | None = None,
        *,
        name: str | None = None,
        config: TransactionConfig | None = None,
        metrics: Any = None,
    ):
        self._steps: list[TransactionStep] = []
        self._observers = StepObservers()
        self._sink = logger
        self._metrics = metrics
        self._config = config if config is not None else get_config()
        self._log = get_logger(__name__)

        self._status = TransactionStatus.PENDING
        self._history: list[ExecutionRecord] = []
        self._compensation_errors: list[CompensationFailure] = []

        if name is not None:
            self.transaction_name = name

        # 'declarative', 'imperative', or None (not yet determined)
        self._mode: str | None = None
        self._collect_declared_steps()
        if self._steps:
            self._mode = "declarative"

    # =========================================================================
    # Declarative steps (@step / @compensate)
    # =========================================================================

    def _collect_declared_steps(self) -> None:
        """Collect decorated methods into step definitions, in definition order."""
        members: dict[str, Any] = {}
        for klass in reversed(type(self).__mro__):
            for attr_name, attr in vars(klass).items():
                if hasattr(attr, STEP_META_ATTR) or hasattr(attr, COMPENSATION_META_ATTR):
                    members[attr_name] = attr
                elif attr_name in members:
                    # Overridden without a decorator
                    del members[attr_name]

        compensations: dict[str, Any] = {}
        for attr_name, attr in members.items():
            comp_meta: CompensationMetadata | None = getattr(attr, COMPENSATION_META_ATTR, None)
            if comp_meta is not None:
                compensations[comp_meta.for_step] = getattr(self, attr_name)

        declared: list[TransactionStep] = []
        for attr_name, attr in members.items():
            meta: StepMetadata | None = getattr(attr, STEP_META_ATTR, None)
            if meta is None:
                continue
            declared.append(
                TransactionStep(
                    name=meta.name,
                    action=getattr(self, attr_name),
                    compensation=compensations.get(meta.name),
                    retry=meta.retry,
                    description=meta.description,
                )
            )

        unknown = set(compensations) - {s.name for s in declared}
        if unknown:
            msg = f"@compensate declared for unknown step(s): {', '.join(sorted(unknown))}"
            raise StepDefinitionError(msg)

        for step_def in declared:
            self._append_step(step_def)

    # =========================================================================
    # Configuration surface
    # =========================================================================

    @property
    def name(self) -> str:
        return self.transaction_name or self.__class__.__name__

    @property
    def status(self) -> TransactionStatus:
        return self._status

    @property
    def steps(self) -> tuple[TransactionStep, ...]:
        """Registered step definitions, in execution order."""
        return tuple(self._steps)

    @property
    def history(self) -> tuple[ExecutionRecord, ...]:
        """Completed steps with the context each one was started with."""
        return tuple(self._history)

    @property
    def compensation_errors(self) -> list[CompensationFailure]:
        """Compensation errors suppressed during the last rollback."""
        return list(self._compensation_errors)

    @property
    def observers(self) -> StepObservers:
        return self._observers

    def add_step(
        self,
        step: TransactionStep | str,
        action: StepAction | None = None,
        compensation: CompensationFn | None = None,
        retry: RetryPolicy | None = None,
        description: str | None = None,
    ) -> "Transaction":
        """
        Append a step (imperative mode).

        Accepts either a prebuilt TransactionStep or the step fields:

            txn.add_step(TransactionStep("charge", charge, refund))
            txn.add_step("charge", charge, refund, retry=RetryPolicy(3, 0.5))

        Returns:
            Self for method chaining

        Raises:
            TypeError: If the transaction declares steps with decorators
            DuplicateStepError: If the name exists and strict_step_names is set
            TransactionStateError: If the transaction already started
        """
        if self._mode == "declarative":
            msg = (
                "Cannot use add_step() on a transaction with @step/@compensate decorators. "
                "Choose one approach: either decorators (declarative) or add_step() "
                "(imperative), but not both."
            )
            raise TypeError(msg)

        if isinstance(step, TransactionStep):
            if action is not None or compensation is not None or retry is not None:
                msg = "Pass either a TransactionStep or step fields to add_step(), not both"
                raise TypeError(msg)
            step_def = step
        else:
            if action is None:
                msg = f"add_step() requires an action for step {step!r}"
                raise TypeError(msg)
            step_def = TransactionStep(
                name=step,
                action=action,
                compensation=compensation,
                retry=retry,
                description=description,
            )

        self._ensure_pending("add steps to")
        self._mode = "imperative"
        self._append_step(step_def)
        return self

    def add_steps(self, steps: Iterable[TransactionStep]) -> "Transaction":
        """Append several steps in order; equivalent to repeated add_step()."""
        for step_def in steps:
            self.add_step(step_def)
        return self

    def on_step(
        self,
        observers: StepObservers | None = None,
        *,
        on_start: OnStartHook | None = None,
        on_success: OnSuccessHook | None = None,
        on_error: OnErrorHook | None = None,
        rollback: CompensationFn | None = None,
    ) -> "Transaction":
        """
        Replace the lifecycle observers and the global rollback handler.

        Not additive: hooks omitted here are cleared.

        Observers may be sync or async. Unlike compensations, an observer
        that raises aborts the run and triggers rollback with its error.
        """
        if observers is None:
            observers = StepObservers(
                on_start=on_start,
                on_success=on_success,
                on_error=on_error,
                rollback=rollback,
            )
        elif any(hook is not None for hook in (on_start, on_success, on_error, rollback)):
            msg = "Pass either a StepObservers instance or individual hooks, not both"
            raise TypeError(msg)

        self._ensure_pending("set observers on")
        self._observers = observers
        return self

    set_observers = on_step

    def get_steps(self) -> list[TransactionStep]:
        """Get all step definitions."""
        return self._steps.copy()

    def get_step(self, name: str) -> TransactionStep | None:
        """Get the first step registered under ``name``."""
        return next((s for s in self._steps if s.name == name), None)

    def _append_step(self, step_def: TransactionStep) -> None:
        if self.get_step(step_def.name) is not None:
            if self._config.strict_step_names:
                raise DuplicateStepError(step_def.name)
            self._log.warning(
                f"Step '{step_def.name}' is already registered in transaction '{self.name}'; "
                f"rollback will resolve it to the first definition"
            )
        self._steps.append(step_def)

    def _ensure_pending(self, operation: str) -> None:
        if self._status != TransactionStatus.PENDING:
            raise TransactionStateError(self.name, self._status.value, operation)

    # =========================================================================
    # Execution
    # =========================================================================

    async def run(self) -> Any:
        """
        Execute the transaction.

        Returns:
            The context produced by the last step (None for an empty transaction)

        Raises:
            Exception: The error that failed the transaction, after rollback
            TransactionStateError: If the transaction was already run
        """
        self._ensure_pending("run")
        name = self.name
        self._status = TransactionStatus.RUNNING
        started = time.perf_counter()
        token = transaction_context.set({"transaction_name": name, "step_name": None})
        self._call_metrics("transaction_started", name)
        self._log.info(f"Transaction started: {name} ({len(self._steps)} steps)")

        context: Any = None
        try:
            for step_def in self._steps:
                context = await self._execute_step(step_def, context)
        except Exception as error:
            try:
                await self._rollback(error)
            finally:
                self._status = TransactionStatus.FAILED
            self._emit(
                f"Transaction {name} rolled back, rethrowing original error",
                event="transaction_failed",
                error=error,
            )
            self._log.error(f"Transaction failed: {name} - {error!s}")
            self._call_metrics(
                "record_execution", name, self._status, time.perf_counter() - started
            )
            raise
        except BaseException:
            # Cancellation: no rollback, no retry
            self._status = TransactionStatus.FAILED
            raise
        finally:
            self._call_metrics("transaction_finished", name)
            transaction_context.reset(token)

        self._status = TransactionStatus.COMPLETED
        self._emit(f"Transaction {name} completed", event="transaction_completed", result=context)
        self._log.info(f"Transaction completed: {name}")
        self._call_metrics("record_execution", name, self._status, time.perf_counter() - started)
        return context

    async def _execute_step(self, step_def: TransactionStep, context: Any) -> Any:
        """Run one step with its retry policy; return the next context."""
        step_name = step_def.name
        set_transaction_context(self.name, step_name)

        self._emit(f"Starting step: {step_name}", event="step_start", step=step_name, context=context)
        self._log.debug(f"Step started: {step_name}")
        await self._call_hook(self._observers.on_start, step_name, context)

        max_attempts, delay = self._resolve_retry(step_def)
        started = time.perf_counter()

        for attempt in range(1, max_attempts + 1):
            try:
                result = await self._invoke(step_def.action, context)
                break
            except Exception as error:
                if attempt >= max_attempts:
                    self._emit(
                        f"Step {step_name} failed",
                        event="step_failed",
                        step=step_name,
                        attempt=attempt,
                        error=error,
                    )
                    self._log.error(
                        f"Step failed: {step_name} after {attempt} attempt(s) - {error!s}"
                    )
                    self._call_metrics(
                        "record_step_duration", self.name, step_name, time.perf_counter() - started
                    )
                    await self._call_hook(self._observers.on_error, step_name, context, error)
                    raise

                self._emit(
                    f"Retrying step {step_name} after error",
                    event="step_retry",
                    step=step_name,
                    attempt=attempt,
                    delay=delay,
                    error=error,
                )
                self._log.warning(
                    f"Step {step_name} attempt {attempt}/{max_attempts} failed: {error!s}; retrying"
                )
                self._call_metrics("record_retry", self.name, step_name)
                if delay > 0:
                    await asyncio.sleep(delay)

        self._call_metrics(
            "record_step_duration", self.name, step_name, time.perf_counter() - started
        )
        await self._call_hook(self._observers.on_success, step_name, context, result)
        self._emit(
            f"Step {step_name} succeeded",
            event="step_success",
            step=step_name,
            attempt=attempt,
            result=result,
        )
        self._log.debug(f"Step completed: {step_name}")

        self._history.append(ExecutionRecord(step_name=step_name, input_context=context))
        return result

    def _resolve_retry(self, step_def: TransactionStep) -> tuple[int, float]:
        if step_def.retry is not None:
            return step_def.retry.max_attempts, step_def.retry.delay
        return self._config.default_max_attempts, self._config.default_retry_delay

    # =========================================================================
    # Rollback
    # =========================================================================

    async def _rollback(self, error: Exception) -> None:
        """Compensate completed steps in reverse order. Never raises."""
        self._status = TransactionStatus.ROLLING_BACK
        pending = [record.step_name for record in reversed(self._history)]
        self._emit(
            "Transaction failed, initiating rollback",
            event="rollback_start",
            error=error,
            steps=pending,
        )
        self._log.warning(f"Rolling back transaction {self.name}: {pending or 'nothing to undo'}")

        for record in reversed(self._history):
            set_transaction_context(self.name, record.step_name)
            step_def = self.get_step(record.step_name)

            if step_def is not None and step_def.compensation is not None:
                await self._compensate(step_def.compensation, record, error, scope="step")

            if self._observers.rollback is not None:
                await self._compensate(self._observers.rollback, record, error, scope="global")

    async def _compensate(
        self,
        compensation: CompensationFn,
        record: ExecutionRecord,
        error: Exception,
        scope: str,
    ) -> None:
        label = "step-specific" if scope == "step" else "global"
        event = "compensation" if scope == "step" else "global_compensation"
        step_name = record.step_name

        self._emit(
            f"Executing {label} rollback for {step_name}",
            event=f"{event}_start",
            step=step_name,
            context=record.input_context,
        )
        try:
            await self._invoke(compensation, record.input_context, error)
        except Exception as comp_error:
            # Suppressed: the caller only ever sees the triggering error
            self._compensation_errors.append(
                CompensationFailure(step_name=step_name, scope=scope, error=comp_error)
            )
            self._emit(
                f"{label.capitalize()} rollback failed for {step_name}",
                event=f"{event}_failed",
                step=step_name,
                scope=scope,
                error=comp_error,
            )
            self._log.error(
                f"{label.capitalize()} rollback failed for '{step_name}': {comp_error!s}",
                exc_info=comp_error,
            )
            self._call_metrics("record_compensation_failure", self.name, step_name, scope)

    # =========================================================================
    # Plumbing
    # =========================================================================

    @staticmethod
    async def _invoke(fn: Any, *args: Any) -> Any:
        """Call a sync or async callable and return its (awaited) result."""
        result = fn(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _call_hook(self, hook: Any, *args: Any) -> None:
        if hook is None:
            return
        await self._invoke(hook, *args)

    def _emit(self, message: str, **details: Any) -> None:
        """Send an advisory event to the logging sink, if one was given."""
        if self._sink is None:
            return
        details["transaction"] = self.name
        try:
            self._sink(message, details)
        except Exception as e:
            self._log.warning(f"Logging sink error (ignored): {e}")

    def _call_metrics(self, method: str, *args: Any) -> None:
        if self._metrics is None:
            return
        handler = getattr(self._metrics, method, None)
        if handler is None:
            return
        try:
            handler(*args)
        except Exception as e:
            self._log.warning(f"Metrics {type(self._metrics).__name__}.{method} error: {e}")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self.name!r}, steps={len(self._steps)}, "
            f"status={self._status.value})"
        )
