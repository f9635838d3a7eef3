"""
TransactionConfig - Unified configuration for sagastep.

Holds the defaults the orchestrator falls back to when a step does not carry
its own retry policy, the duplicate-name policy, and logging settings.

Example:
    >>> from sagastep import TransactionConfig, configure
    >>>
    >>> configure(TransactionConfig(default_max_attempts=3, default_retry_delay=0.2))

Example (from environment / .env):
    >>> config = TransactionConfig.from_env()

Example (from YAML):
    >>> config = TransactionConfig.from_file("sagastep.yaml")

    # In sagastep.yaml:
    # retry:
    #   max_attempts: ${SAGASTEP_DEFAULT_MAX_ATTEMPTS:-3}
    #   delay: 0.5
    # steps:
    #   strict_names: true
    # logging:
    #   level: DEBUG
    #   json: true
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from sagastep.core.logger import library_logger

logger = library_logger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class TransactionConfig:
    """
    Unified configuration for transactions.

    Attributes:
        default_max_attempts: Attempts for steps declared without a RetryPolicy
        default_retry_delay: Delay (seconds) between those attempts
        strict_step_names: Raise DuplicateStepError instead of warning on
            duplicate step names
        log_level: Level applied by setup_logging()
        json_logs: Emit JSON lines from setup_logging()
    """

    default_max_attempts: int = 1
    default_retry_delay: float = 0.0
    strict_step_names: bool = False
    log_level: str = "INFO"
    json_logs: bool = False

    def __post_init__(self) -> None:
        if self.default_max_attempts < 1:
            msg = f"default_max_attempts must be >= 1, got {self.default_max_attempts}"
            raise ValueError(msg)
        if self.default_retry_delay < 0:
            msg = f"default_retry_delay must be >= 0, got {self.default_retry_delay}"
            raise ValueError(msg)
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            msg = f"Unknown log level: {self.log_level}"
            raise ValueError(msg)

    def with_retry_defaults(self, max_attempts: int, delay: float = 0.0) -> TransactionConfig:
        """Create a new config with different retry defaults (immutable update)."""
        return replace(self, default_max_attempts=max_attempts, default_retry_delay=delay)

    def setup_logging(self, include_console: bool = True):
        """Apply the logging settings of this config to the 'sagastep' logger."""
        from sagastep.monitoring.logging import setup_transaction_logging

        return setup_transaction_logging(
            log_level=self.log_level,
            json_format=self.json_logs,
            include_console=include_console,
        )

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> TransactionConfig:
        """
        Create configuration from environment variables.

        Environment variables:
            SAGASTEP_DEFAULT_MAX_ATTEMPTS: Attempts for steps without a retry policy
            SAGASTEP_DEFAULT_RETRY_DELAY: Delay in seconds between those attempts
            SAGASTEP_STRICT_STEP_NAMES: Reject duplicate step names (true/false)
            SAGASTEP_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR
            SAGASTEP_LOG_JSON: Emit JSON logs (true/false)

        Args:
            load_dotenv: If True, loads .env file before reading variables
        """
        from sagastep.core.env import get_env

        env = get_env()
        if load_dotenv:
            env.load()

        return cls(
            default_max_attempts=env.get_int("SAGASTEP_DEFAULT_MAX_ATTEMPTS", 1),
            default_retry_delay=env.get_float("SAGASTEP_DEFAULT_RETRY_DELAY", 0.0),
            strict_step_names=env.get_bool("SAGASTEP_STRICT_STEP_NAMES", False),
            log_level=env.get("SAGASTEP_LOG_LEVEL", "INFO"),
            json_logs=env.get_bool("SAGASTEP_LOG_JSON", False),
        )

    @classmethod
    def from_file(cls, file_path: str | Path, substitute_env: bool = True) -> TransactionConfig:
        """
        Load configuration from a YAML file.

        Supports environment variable substitution using ${VAR} syntax.
        """
        from sagastep.core.env import get_env

        path = Path(file_path)
        if not path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        with path.open() as f:
            data = yaml.safe_load(f)

        if not data:
            return cls()

        if substitute_env:
            env = get_env()
            env.load()
            data = env.substitute_dict(data)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> TransactionConfig:
        retry_data = data.get("retry") or {}
        steps_data = data.get("steps") or {}
        logging_data = data.get("logging") or {}

        return cls(
            default_max_attempts=int(retry_data.get("max_attempts", 1)),
            default_retry_delay=float(retry_data.get("delay", 0.0)),
            strict_step_names=_as_bool(steps_data.get("strict_names", False)),
            log_level=logging_data.get("level", "INFO"),
            json_logs=_as_bool(logging_data.get("json", False)),
        )


def _as_bool(value: Any) -> bool:
    # Substituted values arrive as strings
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


# Global configuration singleton
_global_config: TransactionConfig | None = None


def get_config() -> TransactionConfig:
    """Get the global transaction configuration."""
    global _global_config
    if _global_config is None:
        _global_config = TransactionConfig()
    return _global_config


def configure(config: TransactionConfig) -> None:
    """Set the global transaction configuration."""
    global _global_config
    _global_config = config
    logger.info(
        f"sagastep configured: default_max_attempts={config.default_max_attempts}, "
        f"strict_step_names={config.strict_step_names}"
    )


def reset_config() -> None:
    """Drop the global configuration; the next get_config() builds defaults."""
    global _global_config
    _global_config = None
