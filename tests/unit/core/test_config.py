"""
Tests for TransactionConfig and the global configuration singleton.
"""

import logging

import pytest

from sagastep.core.config import (
    TransactionConfig,
    configure,
    get_config,
    reset_config,
)


class TestTransactionConfig:
    def test_defaults(self):
        """Test defaults retry once with no delay"""
        config = TransactionConfig()

        assert config.default_max_attempts == 1
        assert config.default_retry_delay == 0.0
        assert config.strict_step_names is False
        assert config.log_level == "INFO"
        assert config.json_logs is False

    def test_log_level_normalized(self):
        assert TransactionConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"default_max_attempts": 0},
            {"default_retry_delay": -1.0},
            {"log_level": "LOUD"},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            TransactionConfig(**kwargs)

    def test_with_retry_defaults_returns_new_config(self):
        """Test immutable update keeps other fields"""
        config = TransactionConfig(strict_step_names=True)
        updated = config.with_retry_defaults(4, 0.25)

        assert updated is not config
        assert updated.default_max_attempts == 4
        assert updated.default_retry_delay == 0.25
        assert updated.strict_step_names is True
        assert config.default_max_attempts == 1

    def test_setup_logging_applies_level(self):
        """Test setup_logging configures the sagastep logger"""
        config = TransactionConfig(log_level="DEBUG")
        logger = config.setup_logging(include_console=False)

        try:
            assert logger.name == "sagastep"
            assert logger.level == logging.DEBUG
        finally:
            logger.handlers.clear()
            logger.setLevel(logging.NOTSET)


class TestGlobalConfig:
    def test_get_config_builds_default_once(self):
        assert get_config() is get_config()

    def test_configure_replaces_global(self):
        config = TransactionConfig(default_max_attempts=3)
        configure(config)

        assert get_config() is config

    def test_reset_config(self):
        configure(TransactionConfig(default_max_attempts=3))
        reset_config()

        assert get_config().default_max_attempts == 1


class TestFromEnv:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SAGASTEP_DEFAULT_MAX_ATTEMPTS", "4")
        monkeypatch.setenv("SAGASTEP_DEFAULT_RETRY_DELAY", "0.5")
        monkeypatch.setenv("SAGASTEP_STRICT_STEP_NAMES", "true")
        monkeypatch.setenv("SAGASTEP_LOG_LEVEL", "warning")
        monkeypatch.setenv("SAGASTEP_LOG_JSON", "1")

        config = TransactionConfig.from_env(load_dotenv=False)

        assert config.default_max_attempts == 4
        assert config.default_retry_delay == 0.5
        assert config.strict_step_names is True
        assert config.log_level == "WARNING"
        assert config.json_logs is True

    def test_defaults_when_unset(self, monkeypatch):
        for key in (
            "SAGASTEP_DEFAULT_MAX_ATTEMPTS",
            "SAGASTEP_DEFAULT_RETRY_DELAY",
            "SAGASTEP_STRICT_STEP_NAMES",
            "SAGASTEP_LOG_LEVEL",
            "SAGASTEP_LOG_JSON",
        ):
            monkeypatch.delenv(key, raising=False)

        assert TransactionConfig.from_env(load_dotenv=False) == TransactionConfig()

    def test_invalid_number_falls_back_to_default(self, monkeypatch):
        monkeypatch.setenv("SAGASTEP_DEFAULT_MAX_ATTEMPTS", "many")

        assert TransactionConfig.from_env(load_dotenv=False).default_max_attempts == 1


class TestFromFile:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TransactionConfig.from_file(tmp_path / "missing.yaml")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "sagastep.yaml"
        path.write_text("")

        assert TransactionConfig.from_file(path) == TransactionConfig()

    def test_yaml_with_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_TXN_ATTEMPTS", "5")
        monkeypatch.delenv("TEST_TXN_STRICT", raising=False)
        path = tmp_path / "sagastep.yaml"
        path.write_text(
            "retry:\n"
            "  max_attempts: ${TEST_TXN_ATTEMPTS}\n"
            "  delay: 0.2\n"
            "steps:\n"
            "  strict_names: ${TEST_TXN_STRICT:-true}\n"
            "logging:\n"
            "  level: debug\n"
            "  json: false\n"
        )
        monkeypatch.chdir(tmp_path)

        config = TransactionConfig.from_file(path)

        assert config.default_max_attempts == 5
        assert config.default_retry_delay == 0.2
        assert config.strict_step_names is True
        assert config.log_level == "DEBUG"
        assert config.json_logs is False

    def test_without_substitution(self, tmp_path):
        path = tmp_path / "sagastep.yaml"
        path.write_text("retry:\n  max_attempts: 2\n")

        config = TransactionConfig.from_file(path, substitute_env=False)

        assert config.default_max_attempts == 2
