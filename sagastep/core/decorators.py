"""
Decorator API for declarative transaction definitions.

Quick Start:
    >>> from sagastep import RetryPolicy, Transaction, compensate, step
    >>>
    >>> class ProvisionUser(Transaction):
    ...     transaction_name = "provision-user"
    ...
    ...     @step("create_account", retry=RetryPolicy(max_attempts=3, delay=0.2))
    ...     async def create_account(self, ctx):
    ...         return {"account_id": await Accounts.create()}
    ...
    ...     @compensate("create_account")
    ...     async def delete_account(self, ctx, error):
    ...         ...  # ctx is the context create_account was started with
    ...
    ...     @step("send_welcome")
    ...     async def send_welcome(self, ctx):
    ...         return {**ctx, "welcomed": True}

Steps run in the order they are defined in the class body, base classes first.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from sagastep.core.types import RetryPolicy

F = TypeVar("F", bound=Callable[..., Any])

STEP_META_ATTR = "_txn_step_meta"
COMPENSATION_META_ATTR = "_txn_compensation_meta"


@dataclass(frozen=True)
class StepMetadata:
    """Metadata attached to step methods via decorator."""

    name: str
    retry: RetryPolicy | None = None
    description: str | None = None


@dataclass(frozen=True)
class CompensationMetadata:
    """Metadata attached to compensation methods via decorator."""

    for_step: str
    description: str | None = None


def step(
    name: str,
    retry: RetryPolicy | None = None,
    description: str | None = None,
) -> Callable[[F], F]:
    """
    Decorator to mark a method as a transaction step.

    Args:
        name: Unique identifier for this step
        retry: Optional retry policy for the step action
        description: Human-readable description
    """

    def decorator(func: F) -> F:
        setattr(
            func,
            STEP_META_ATTR,
            StepMetadata(name=name, retry=retry, description=description or f"Execute {name}"),
        )
        return func

    return decorator


def compensate(for_step: str, description: str | None = None) -> Callable[[F], F]:
    """
    Decorator to mark a method as compensation for a step.

    The method receives the context the step was started with and the error
    that triggered the rollback.
    """

    def decorator(func: F) -> F:
        setattr(
            func,
            COMPENSATION_META_ATTR,
            CompensationMetadata(for_step=for_step, description=description),
        )
        return func

    return decorator


# @action reads better for people coming from other saga libraries
action = step
