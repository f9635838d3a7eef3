"""
User Provisioning Transaction Example

Queries a user, updates it, then hits a failing step so that the completed
steps are rolled back newest first.

Run with:
    python -m examples.user_provisioning.main
"""

import asyncio
import logging
from typing import Any

from sagastep import LoggingSink, RetryPolicy, StepError, Transaction, TransactionStep

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def user_query(ctx: Any) -> dict[str, Any]:
    return {"user_id": 123, "step": "user_query"}


def revert_user_query(ctx: Any, error: Exception) -> None:
    logger.warning(f"Reverting user_query: {error}")


async def user_update(ctx: dict[str, Any]) -> dict[str, Any]:
    if not ctx or not ctx.get("user_id"):
        raise StepError("Missing user")
    await asyncio.sleep(0.01)
    return {"user_id": ctx["user_id"], "step": "user_update"}


async def revert_user_update(ctx: dict[str, Any], error: Exception) -> None:
    logger.warning(f"Reverting user_update for user {ctx['user_id']}: {error}")


async def step_3(ctx: dict[str, Any]) -> dict[str, Any]:
    raise StepError("Something failed in step 3")


def build_transaction(fail: bool = True) -> Transaction:
    """Build the example transaction; with fail=False the last step is skipped."""
    steps = [
        TransactionStep("user_update", user_update, revert_user_update),
    ]
    if fail:
        steps.append(TransactionStep("step_3", step_3))

    return (
        Transaction(LoggingSink(), name="user-provisioning")
        .add_step(
            "user_query",
            user_query,
            revert_user_query,
            retry=RetryPolicy(max_attempts=2, delay=0.1),
        )
        .add_steps(steps)
        .on_step(
            on_start=lambda step, ctx: logger.info(f"Starting {step} with {ctx}"),
            on_success=lambda step, ctx, result: logger.info(f"Success {step}: {result}"),
            on_error=lambda step, ctx, error: logger.error(f"Error in {step}: {error}"),
            rollback=lambda ctx, error: logger.warning(f"Global rollback for {ctx}: {error}"),
        )
    )


async def main(fail: bool = True) -> Any:
    txn = build_transaction(fail=fail)
    try:
        result = await txn.run()
    except StepError as e:
        logger.error(f"Transaction failed: {e}")
        return None

    logger.info(f"Transaction completed: {result}")
    return result


if __name__ == "__main__":
    asyncio.run(main())
