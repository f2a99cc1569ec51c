"""Tests for structured logging setup."""

from __future__ import annotations

import json
import logging

import structlog

from funding_history.logging import get_logger, setup_logging


class TestSetupLogging:
    def test_json_format(self, capsys):
        setup_logging(level="INFO", log_format="json")
        logger = get_logger("test_json")
        logger.info("page_fetched", asset="BTC", rows=500)

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["event"] == "page_fetched"
        assert line["asset"] == "BTC"
        assert line["rows"] == 500
        assert line["level"] == "info"
        assert "timestamp" in line
        assert captured.out == ""

    def test_console_format(self, capsys):
        setup_logging(level="INFO", log_format="console")
        logger = get_logger("test_console")
        logger.info("asset_complete", asset="ETH")

        captured = capsys.readouterr()
        assert "asset_complete" in captured.err
        assert "ETH" in captured.err

    def test_log_level_filtering(self, capsys):
        setup_logging(level="WARNING", log_format="json")
        logger = get_logger("test_level")
        logger.info("should be hidden")
        logger.warning("should appear")

        captured = capsys.readouterr()
        assert "should be hidden" not in captured.err
        assert "should appear" in captured.err

    def test_logger_name_added(self, capsys):
        setup_logging(level="INFO", log_format="json")
        with structlog.contextvars.bound_contextvars(asset="SOL"):
            get_logger("funding_history.runner").info("context test")

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["asset"] == "SOL"
        assert line["logger"] == "funding_history.runner"

    def test_contextvars_binding(self, capsys):
        setup_logging(level="INFO", log_format="json")
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(run_id="abc123")

        logger = get_logger("test_ctxvars")
        logger.info("with context var")

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["run_id"] == "abc123"

        structlog.contextvars.clear_contextvars()

    def test_http_client_loggers_quieted(self):
        setup_logging(level="DEBUG", log_format="json")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING
