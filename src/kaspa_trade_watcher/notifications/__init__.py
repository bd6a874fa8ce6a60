"""Notification subsystem."""

from kaspa_trade_watcher.notifications.notification_manager import (
    NotificationService,
)
from kaspa_trade_watcher.notifications.strategies import (
    BaseNotificationStrategy,
    ConsoleNotifier,
    TelegramNotifier,
)
from kaspa_trade_watcher.notifications.types import (
    NotificationMessage,
    NotificationStyler,
)

__all__ = [
    "BaseNotificationStrategy",
    "ConsoleNotifier",
    "TelegramNotifier",
    "NotificationMessage",
    "NotificationService",
    "NotificationStyler",
]
