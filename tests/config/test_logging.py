"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from bibgraph.config.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    names = ("bibgraph", "sqlalchemy.engine", "sqlalchemy.pool", "networkx")
    levels = {name: logging.getLogger(name).level for name in names}
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("bibgraph").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("bibgraph").level == logging.WARNING

    def test_human_mode_output(self) -> None:
        configure_logging(verbose=True, log_json=False)
        log = structlog.get_logger("bibgraph.test")
        log.warning("hello world", key="val")

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("bibgraph.test")
        log.warning("json test", answer=42)
        captured = capfd.readouterr()
        parsed = json.loads(captured.err.strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "bibgraph.test"
        assert "timestamp" in parsed

    def test_stdlib_logger_gets_structured_fields(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)

        logging.getLogger("bibgraph.services.sync").debug("Merged entry E1")

        captured = capfd.readouterr()
        parsed = json.loads(captured.err.strip())
        assert parsed["event"] == "Merged entry E1"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "bibgraph.services.sync"

    def test_sqlalchemy_info_is_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)

        logging.getLogger("sqlalchemy.engine").info("SELECT 1")
        logging.getLogger("networkx").debug("noise")

        captured = capfd.readouterr()
        assert captured.err == ""

    def test_idempotent_calls(self) -> None:
        """Multiple configure_logging calls don't stack handlers."""
        configure_logging(verbose=True, log_json=False)
        configure_logging(verbose=True, log_json=True)
        root = logging.getLogger()
        assert len(root.handlers) == 1

    def test_json_exception_is_structured(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("bibgraph.test")
        try:
            raise ValueError("boom")
        except ValueError:
            log.exception("sync failed")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "sync failed"
        assert parsed["exception"][0]["exc_type"] == "ValueError"

    def test_pool_logger_capped(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("sqlalchemy.pool").level == logging.WARNING
