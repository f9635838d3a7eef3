"""
Environment variable management with .env file support.

Loads .env files through python-dotenv and substitutes ${VAR} references in
configuration values loaded from YAML.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# ${VAR}, ${VAR:-default}, ${VAR:?error}
_BRACED_PATTERN = re.compile(r"\$\{([^}:]+)(?::([?-])([^}]*))?\}")
_BARE_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")


class EnvManager:
    """
    Manages environment variables for sagastep.

    Example:
        >>> env = EnvManager()
        >>> env.load()  # Loads .env if exists
        >>> attempts = env.get_int("SAGASTEP_DEFAULT_MAX_ATTEMPTS", 1)
    """

    def __init__(self, project_root: Path | str | None = None, auto_load: bool = False):
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._loaded = False

        if auto_load:
            self.load()

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self, env_file: str | Path | None = None, override: bool = False) -> bool:
        """
        Load environment variables from a .env file.

        Args:
            env_file: Path to .env file (defaults to .env in project root)
            override: Whether to override existing environment variables

        Returns:
            True if the file was loaded, False if it does not exist
        """
        env_file = self.project_root / ".env" if env_file is None else Path(env_file)

        if not env_file.exists():
            return False

        load_dotenv(env_file, override=override)
        self._loaded = True
        return True

    def get(self, key: str, default: str | None = None, required: bool = False) -> str | None:
        """
        Get an environment variable value.

        Raises:
            ValueError: If required=True and the variable is not set
        """
        value = os.environ.get(key, default)

        if required and value is None:
            msg = f"Required environment variable not set: {key}"
            raise ValueError(msg)

        return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get environment variable as boolean."""
        value = (self.get(key) or "").strip().lower()
        if value in ("true", "1", "yes", "on"):
            return True
        if value in ("false", "0", "no", "off"):
            return False
        return default

    def get_int(self, key: str, default: int = 0) -> int:
        """Get environment variable as integer."""
        try:
            return int(self.get(key, str(default)))
        except (ValueError, TypeError):
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Get environment variable as float."""
        try:
            return float(self.get(key, str(default)))
        except (ValueError, TypeError):
            return default

    def substitute(self, text: str) -> str:
        """
        Substitute environment variables in text using ${VAR} or $VAR syntax.

        Supports:
        - ${VAR} - variable substitution (left untouched if unset)
        - ${VAR:-default} - with default value
        - ${VAR:?error} - required variable (raises ValueError if not set)

        Example:
            >>> os.environ["RETRY_DELAY"] = "0.5"
            >>> env.substitute("delay: ${RETRY_DELAY}")
            'delay: 0.5'
        """

        def replace(match: re.Match) -> str:
            var_name, operator, operand = match.group(1), match.group(2), match.group(3)
            value = os.environ.get(var_name)

            if operator == "-":
                return value if value is not None else operand
            if operator == "?":
                if value is None:
                    error_msg = operand or f"Required variable not set: {var_name}"
                    raise ValueError(error_msg)
                return value
            return value if value is not None else match.group(0)

        text = _BRACED_PATTERN.sub(replace, text)
        return _BARE_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), text)

    def substitute_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        """Recursively substitute environment variables in dictionary values."""
        return {key: self._substitute_value(value) for key, value in data.items()}

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.substitute(value)
        if isinstance(value, dict):
            return self.substitute_dict(value)
        if isinstance(value, list):
            return [self._substitute_value(item) for item in value]
        return value


# Global instance
_global_env: EnvManager | None = None


def get_env() -> EnvManager:
    """Get the global environment manager instance."""
    global _global_env
    if _global_env is None:
        _global_env = EnvManager()
    return _global_env


def load_env(project_root: Path | str | None = None, override: bool = False) -> bool:
    """
    Load environment variables from a .env file using the global EnvManager.

    Returns:
        True if a .env file was loaded
    """
    env = get_env()
    if project_root:
        env.project_root = Path(project_root)
    return env.load(override=override)
