"""Notification service: one ordered queue fanned out to every channel."""

from __future__ import annotations

import asyncio
import contextlib
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from kaspa_trade_watcher.notifications.strategies import BaseNotificationStrategy
from kaspa_trade_watcher.notifications.types import NotificationMessage


@dataclass
class NotificationStats:
    """Counters since start; `failed` counts per-channel send errors."""

    enqueued: int = 0
    delivered: int = 0
    dropped: int = 0
    failed: int = 0
    by_event: Counter[str] = field(default_factory=Counter)

    def to_dict(self) -> dict[str, Any]:
        return {
            "enqueued": self.enqueued,
            "delivered": self.delivered,
            "dropped": self.dropped,
            "failed": self.failed,
            "by_event": dict(self.by_event),
        }


@dataclass
class NotificationService:
    """Deliver notifications in enqueue order from a single worker.

    Pollers call `notify` and never wait on a channel. A channel that raises
    is logged and skipped for that message; the others still receive it.
    """

    notifiers: list[BaseNotificationStrategy]
    queue_size: int = 1000
    drain_timeout_seconds: float = 15.0
    get_logger: Callable[[str], Any] = field(default=structlog.get_logger)
    stats: NotificationStats = field(init=False, default_factory=NotificationStats)
    _queue: asyncio.Queue[NotificationMessage] | None = field(init=False, default=None)
    _worker_task: asyncio.Task[None] | None = field(init=False, default=None)
    _logger: Any = field(init=False)

    def __post_init__(self) -> None:
        self._logger = self.get_logger("NotificationService")

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def initialize(self) -> None:
        for notifier in self.notifiers:
            await notifier.initialize()
        if not self.notifiers:
            self._logger.info("notification_init_no_notifiers")
            return
        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._worker_task = asyncio.create_task(self._worker_loop())
        self._logger.debug(
            "notification_init_complete",
            notification_channels=[type(n).__name__ for n in self.notifiers],
            notification_queue_size=self.queue_size,
        )

    async def shutdown(self) -> None:
        """Wait up to `drain_timeout_seconds` for queued messages, then stop channels."""
        queue = self._queue
        if queue is not None:
            try:
                await asyncio.wait_for(queue.join(), timeout=self.drain_timeout_seconds)
            except asyncio.TimeoutError:
                self.stats.dropped += queue.qsize()
                self._logger.warning(
                    "notification_drain_timeout",
                    notification_pending=queue.qsize(),
                    notification_drain_timeout_seconds=self.drain_timeout_seconds,
                )
        if self._worker_task is not None:
            self._worker_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker_task
            self._worker_task = None
        self._queue = None

        for notifier in self.notifiers:
            await notifier.shutdown()
        self._logger.info("notification_shutdown_complete", **self.stats.to_dict())

    def notify(self, message: NotificationMessage) -> None:
        """Enqueue without blocking; a full queue drops the message."""
        queue = self._queue
        if queue is None:
            if not self.notifiers:
                return
            raise RuntimeError("NotificationService not initialized")
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            self.stats.dropped += 1
            self._logger.warning(
                "notification_queue_full_dropped",
                notification_event_type=message.event_type,
                notification_audience=message.audience,
            )
            return
        self.stats.enqueued += 1
        self.stats.by_event[message.event_type] += 1

    async def _worker_loop(self) -> None:
        queue = self._queue
        if queue is None:
            return
        while True:
            msg = await queue.get()
            try:
                await self._dispatch(msg)
            finally:
                queue.task_done()

    async def _dispatch(self, message: NotificationMessage) -> None:
        failures = 0
        for notifier in self.notifiers:
            try:
                await notifier.send_notification(message)
            except Exception as e:
                failures += 1
                self._logger.exception(
                    "notification_send_failed",
                    notification_event_type=message.event_type,
                    notification_notifier=type(notifier).__name__,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
        self.stats.failed += failures
        if failures < len(self.notifiers):
            self.stats.delivered += 1
