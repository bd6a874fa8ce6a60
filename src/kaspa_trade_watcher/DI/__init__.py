"""Dependency injection."""

from kaspa_trade_watcher.DI.container import Container

__all__ = ["Container"]
