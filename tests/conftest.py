"""
Pytest configuration and shared fixtures for transaction tests
"""

from typing import Any

import pytest

from sagastep.core.config import reset_config
from sagastep.core.logger import set_logger

# ============================================
# AUTO-USE FIXTURES
# ============================================


@pytest.fixture(autouse=True)
def isolated_global_state():
    """
    Reset the global config and custom logger around every test.

    Tests that call configure() or set_logger() must not leak into others.
    """
    reset_config()
    set_logger(None)
    yield
    reset_config()
    set_logger(None)


# ============================================
# RECORDING HELPERS
# ============================================


class RecordingSink:
    """Logging sink that keeps every (message, details) pair."""

    def __init__(self):
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def __call__(self, message: str, details: dict[str, Any]) -> None:
        self.calls.append((message, dict(details)))

    @property
    def events(self) -> list[str]:
        return [details["event"] for _, details in self.calls]

    def of(self, event: str) -> list[dict[str, Any]]:
        return [details for _, details in self.calls if details["event"] == event]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def calls() -> list:
    """Shared list for recording the order of callbacks."""
    return []
