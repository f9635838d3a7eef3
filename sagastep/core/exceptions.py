# ============================================
# FILE: sagastep/core/exceptions.py
# ============================================

"""
All transaction-related exceptions
"""


class TransactionError(Exception):
    """Base transaction error"""


class StepError(TransactionError):
    """Error raised by a step action"""


class StepDefinitionError(TransactionError, ValueError):
    """Invalid step configuration"""


class DuplicateStepError(StepDefinitionError):
    """
    Raised when a step name is registered twice in strict mode.

    Rollback resolves steps by name, so a duplicate would silently alias
    the compensation of the first definition.
    """

    def __init__(self, step_name: str):
        self.step_name = step_name
        super().__init__(f"Step '{step_name}' already exists in this transaction")


class TransactionStateError(TransactionError):
    """
    Raised when a transaction is used outside its single-use lifecycle.

    A transaction instance runs exactly once; adding steps after the run has
    started, or calling run() a second time, is rejected.
    """

    def __init__(self, transaction_name: str, status: str, operation: str):
        self.transaction_name = transaction_name
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} transaction '{transaction_name}' in status '{status}'"
        )
