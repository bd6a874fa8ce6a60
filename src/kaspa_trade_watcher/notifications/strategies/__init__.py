"""Notification strategies."""

from kaspa_trade_watcher.notifications.strategies.base import (
    BaseNotificationStrategy,
)
from kaspa_trade_watcher.notifications.strategies.console import ConsoleNotifier
from kaspa_trade_watcher.notifications.strategies.telegram import TelegramNotifier

__all__ = [
    "BaseNotificationStrategy",
    "ConsoleNotifier",
    "TelegramNotifier",
]
