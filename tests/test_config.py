"""Tests for LoggingConfig and configure_logging."""

import logging

import pytest
from pydantic import ValidationError

from minirex import LoggingConfig, configure_logging


@pytest.fixture
def minirex_logger():
    logger = logging.getLogger("minirex")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


class TestLoggingConfig:
    def test_defaults(self):
        config = LoggingConfig()
        assert config.level == "WARNING"
        assert config.log_to_console
        assert not config.log_to_file

    def test_level_is_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="chatty")

    def test_frozen(self):
        config = LoggingConfig()
        with pytest.raises(ValidationError):
            config.level = "DEBUG"

    def test_from_env(self, monkeypatch, tmp_path):
        log_file = tmp_path / "minirex.log"
        monkeypatch.setenv("MINIREX_LOG_LEVEL", "info")
        monkeypatch.setenv("MINIREX_LOG_FILE", str(log_file))
        config = LoggingConfig.from_env()
        assert config.level == "INFO"
        assert config.log_to_file
        assert config.log_file == str(log_file)

    def test_from_env_without_variables(self, monkeypatch):
        monkeypatch.delenv("MINIREX_LOG_LEVEL", raising=False)
        monkeypatch.delenv("MINIREX_LOG_FILE", raising=False)
        assert LoggingConfig.from_env() == LoggingConfig()


class TestConfigureLogging:
    def test_is_idempotent(self, minirex_logger):
        before = len(minirex_logger.handlers)
        configure_logging(LoggingConfig(level="DEBUG"))
        configure_logging(LoggingConfig(level="DEBUG"))
        assert len(minirex_logger.handlers) == before + 1
        assert minirex_logger.level == logging.DEBUG

    def test_writes_to_file(self, minirex_logger, tmp_path):
        log_file = tmp_path / "minirex.log"
        logger = configure_logging(LoggingConfig(
            level="INFO", log_to_console=False, log_to_file=True, log_file=str(log_file),
        ))
        logging.getLogger("minirex.store").info("hello from the store")
        for handler in logger.handlers:
            handler.flush()
        assert "hello from the store" in log_file.read_text(encoding="utf-8")
