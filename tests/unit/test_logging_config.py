"""Unit tests for logging configuration."""

import logging
from collections.abc import Generator

import pytest

from agentstream.logging_config import (
    NOISY_LOGGERS,
    configure_logging,
    get_logger,
    suppress_noisy_loggers,
)


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None, None, None]:
    """Put the root and package loggers back after each test."""
    root = logging.getLogger()
    package = logging.getLogger("agentstream")
    saved = (root.level, list(root.handlers), package.level)
    noisy = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    package.setLevel(saved[2])
    for name, level in noisy.items():
        logging.getLogger(name).setLevel(level)


class TestConfigureLogging:
    def test_installs_single_handler(self):
        configure_logging("DEBUG")

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG
        assert handlers[0].formatter._fmt == "%(levelname)s | %(name)s | %(message)s"

    def test_sets_package_level(self):
        configure_logging("WARNING")
        assert logging.getLogger("agentstream").level == logging.WARNING

    def test_level_from_settings(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        configure_logging()
        assert logging.getLogger("agentstream").level == logging.ERROR


class TestNoisyLoggers:
    def test_suppressed(self):
        suppress_noisy_loggers()

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("asyncio").level == logging.ERROR


def test_get_logger():
    assert get_logger("agentstream.x").name == "agentstream.x"
