"""Structured logging."""

from funding_history.logging.setup import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
