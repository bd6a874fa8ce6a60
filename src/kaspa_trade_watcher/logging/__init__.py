"""Logging configuration (structlog over stdlib handlers, optional Logfire)."""

from kaspa_trade_watcher.logging.config import configure_logging

__all__ = ["configure_logging"]
