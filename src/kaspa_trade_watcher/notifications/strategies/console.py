# -*- coding: utf-8 -*-
"""Console notifier (print-based)."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional, TextIO

from kaspa_trade_watcher.notifications.types import NotificationMessage
from kaspa_trade_watcher.notifications.strategies.base import BaseNotificationStrategy

if TYPE_CHECKING:  # pragma: no cover
    from kaspa_trade_watcher.config import Settings
    from kaspa_trade_watcher.notifications.types import NotificationStyler


class ConsoleNotifier(BaseNotificationStrategy):
    """Print each post as plain text, one blank line between posts."""

    def __init__(
        self,
        settings: "Settings",
        styler: Optional["NotificationStyler"] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        super().__init__(settings, muted_events=settings.console.muted_events)
        self._running = False
        self._styler = styler
        self._stream = stream

    @property
    def is_running(self) -> bool:
        return self._running and self.settings.console.enabled

    async def initialize(self) -> None:
        self._running = True

    async def shutdown(self) -> None:
        self._running = False

    def format(self, message: NotificationMessage) -> str:
        body = self._styler.render(message) if self._styler else message.message
        header = message.event_type
        if self.settings.console.show_audience:
            header = f"[{message.audience}] {header}"
        return f"{header}\n{body}\n"

    async def send_notification(self, message: NotificationMessage) -> None:
        if not self.accepts(message):
            return
        print(self.format(message), file=self._stream or sys.stdout, flush=True)
