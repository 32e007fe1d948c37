"""
Tests for process configuration and structured logging setup
"""

import json

import pytest
import structlog
from pydantic import ValidationError

from src.core.config import CoreConfig, LogConfig, LogFormat, get_config, reset_config
from src.core.logging_config import configure_logging


@pytest.fixture(autouse=True)
def clean_state():
    reset_config()
    yield
    reset_config()
    structlog.reset_defaults()


# =============================================================================
# CONFIG
# =============================================================================


class TestLogConfig:
    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("LEDGER_LOG_LEVEL", raising=False)
        monkeypatch.delenv("LEDGER_LOG_FORMAT", raising=False)

        config = LogConfig()

        assert config.level == "INFO"
        assert config.format == LogFormat.JSON

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "debug")
        monkeypatch.setenv("LEDGER_LOG_FORMAT", "console")

        config = LogConfig()

        assert config.level == "DEBUG"
        assert config.format == LogFormat.CONSOLE

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown log level"):
            LogConfig(level="verbose")

    def test_unknown_format_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogConfig(format="xml")


class TestGlobalConfig:
    def test_cached_until_reset(self, monkeypatch) -> None:
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "WARNING")

        first = get_config()
        assert isinstance(first, CoreConfig)
        assert first.log.level == "WARNING"
        assert get_config() is first

        monkeypatch.setenv("LEDGER_LOG_LEVEL", "ERROR")
        assert get_config().log.level == "WARNING"

        reset_config()
        assert get_config().log.level == "ERROR"


# =============================================================================
# LOGGING
# =============================================================================


class TestConfigureLogging:
    def test_json_output(self, capsys) -> None:
        configure_logging(LogConfig(level="INFO", format="json"))

        structlog.get_logger("ledger.test").info("afe_submitted", afe_id="afe-1")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "afe_submitted"
        assert record["afe_id"] == "afe-1"
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_level_filtering(self, capsys) -> None:
        configure_logging(LogConfig(level="WARNING", format="json"))
        logger = structlog.get_logger("ledger.test")

        logger.info("hidden_event")
        logger.warning("visible_event")

        out = capsys.readouterr().out
        assert "hidden_event" not in out
        assert "visible_event" in out

    def test_console_output(self, capsys) -> None:
        configure_logging(LogConfig(level="DEBUG", format="console"))

        structlog.get_logger("ledger.test").debug("aggregate_saved", version=3)

        out = capsys.readouterr().out
        assert "aggregate_saved" in out
        assert "version" in out

    def test_defaults_from_global_config(self, monkeypatch, capsys) -> None:
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "ERROR")
        configure_logging()

        logger = structlog.get_logger("ledger.test")
        logger.warning("suppressed_event")
        logger.error("reported_event")

        out = capsys.readouterr().out
        assert "suppressed_event" not in out
        assert "reported_event" in out
