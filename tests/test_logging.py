"""
Tests for moldesc_toolkit.core.logging module.

Run with: pytest tests/test_logging.py -v
"""

import logging
from logging.handlers import WatchedFileHandler

import pytest

from moldesc_toolkit.core.logging import LEVEL_ENV, reset_logging, setup_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    saved = logging.getLogger().handlers[:]
    reset_logging()
    yield
    reset_logging()
    for h in saved:
        logging.getLogger().addHandler(h)


class TestSetupLogging:
    """Tests for root logger configuration."""

    def test_setup_is_idempotent(self, tmp_path):
        log = tmp_path / "logs" / "run.log"
        setup_logging(log)
        setup_logging(log)

        root = logging.getLogger()
        file_handlers = [h for h in root.handlers if isinstance(h, WatchedFileHandler)]
        console = [h for h in root.handlers if type(h) is logging.StreamHandler]
        assert len(file_handlers) == 1
        assert len(console) == 1

        logging.getLogger("moldesc_toolkit.test").info("hello from the test")
        for h in root.handlers:
            h.flush()
        text = log.read_text()
        assert "Logging initialized" in text
        assert " - INFO - hello from the test" in text

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv(LEVEL_ENV, "debug")
        setup_logging(also_console=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv(LEVEL_ENV, "chatty")
        setup_logging()
        assert logging.getLogger().level == logging.INFO
