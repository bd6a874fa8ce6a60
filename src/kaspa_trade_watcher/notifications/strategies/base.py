# -*- coding: utf-8 -*-
"""Base notification strategy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING

from kaspa_trade_watcher.notifications.types import NotificationMessage

if TYPE_CHECKING:  # pragma: no cover
    from kaspa_trade_watcher.config.config import Settings


class BaseNotificationStrategy(ABC):
    """A delivery channel (console, Telegram).

    Subclasses call `accepts` at the top of `send_notification` so muted
    event types are skipped per channel.
    """

    def __init__(self, settings: "Settings", muted_events: Iterable[str] = ()):
        self.settings = settings
        self.muted_events = frozenset(muted_events)

    def accepts(self, message: NotificationMessage) -> bool:
        return self.is_running and message.event_type not in self.muted_events

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """Whether the channel has been initialized and not shut down."""

    @abstractmethod
    async def initialize(self) -> None:
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        pass

    @abstractmethod
    async def send_notification(self, message: NotificationMessage) -> None:
        """Deliver one message. Raising is logged by NotificationService."""
