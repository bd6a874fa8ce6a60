# -*- coding: utf-8 -*-
"""Scheduler: runs TickOrchestrator.tick() every poll interval until shutdown (signal or CancelledError)."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from kaspa_trade_watcher.config import Settings
from kaspa_trade_watcher.services.tick_orchestrator import TickOrchestrator


class TickRunner:
    """Runs one tick immediately, then one every `tracking.poll_seconds`, until shutdown_event is set."""

    def __init__(
        self,
        orchestrator: TickOrchestrator,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            orchestrator: Injected TickOrchestrator.
            settings: Application settings (uses settings.tracking.poll_seconds).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._orchestrator = orchestrator
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Tick until shutdown_event is set. A tick in progress is allowed to finish."""
        poll_seconds = self._settings.tracking.poll_seconds
        self._logger.info(
            "tick_runner_started",
            tick_runner_poll_seconds=poll_seconds,
            tick_runner_pollers=[p.name for p in self._orchestrator.pollers],
        )
        reason = "startup"
        while not shutdown_event.is_set():
            try:
                await self._orchestrator.tick(reason)
            except asyncio.CancelledError:
                self._logger.info("tick_runner_shutdown_cancelled")
                raise
            except Exception as e:
                # Snapshot load/save failures; the next tick retries.
                self._logger.exception(
                    "tick_failed",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
            reason = "interval"
            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=poll_seconds)
            except asyncio.TimeoutError:
                continue
        self._logger.info("tick_runner_stopped")
