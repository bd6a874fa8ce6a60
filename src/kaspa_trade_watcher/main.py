# -*- coding: utf-8 -*-
"""
Entry point for the trade watcher.

Orchestrates: logging, settings, container, notification service, metadata caches,
tick runner, chat commands, shutdown (SIGINT, SIGTERM or CancelledError).
Events flow: pollers -> TradeEventNotifier -> NotificationService -> console / Telegram.

Run with: python -m kaspa_trade_watcher.main  (or the `kaspa-trade-watcher` script)

Notebook usage:
    from kaspa_trade_watcher.main import run
    await run()  # Interrupt kernel to stop; system will shut down on CancelledError.
"""
from __future__ import annotations

import asyncio
import signal
import structlog
from typing import Any

from telegram.error import TelegramError

from kaspa_trade_watcher.DI import Container
from kaspa_trade_watcher.config import Settings, get_settings
from kaspa_trade_watcher.exceptions import MissingRequiredConfigError
from kaspa_trade_watcher.logging.config import configure_logging
from kaspa_trade_watcher.notifications.types import NotificationMessage
from kaspa_trade_watcher.services.commands import TelegramCommandListener


def _setup_signals(shutdown_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            return  # Windows has no add_signal_handler


def _check_settings(settings: Settings, logger: Any) -> None:
    """Fail fast on missing required settings; log which optional feeds are off."""
    if not settings.marketplace.ticker.strip():
        logger.error("main_missing_ticker", message="MARKETPLACE__TICKER is not set")
        raise MissingRequiredConfigError("MARKETPLACE__TICKER")
    if not settings.marketplace.images_cid:
        logger.warning("main_images_cid_missing", message="NFT posts will be sent without image")
    for dex in settings.dexes:
        if not (dex.factory and dex.token_address and settings.chain.quote_token_address):
            logger.warning(
                "main_dex_disabled",
                dex_name=dex.name,
                message="factory, token or quote token address missing",
            )


async def _start_commands(
    container: Container, settings: Settings, logger: Any
) -> TelegramCommandListener | None:
    """Start chat command polling when enabled; the watcher keeps running without it."""
    if not (settings.telegram.enabled and settings.telegram.commands_enabled and settings.telegram.api_key):
        return None
    listener = container.command_listener()
    try:
        await listener.start()
    except TelegramError as e:
        logger.error(
            "main_commands_start_failed",
            error_type=type(e).__name__,
            error_message=str(e),
        )
        return None
    return listener


async def run() -> None:
    settings = get_settings()
    configure_logging(settings)
    logger = structlog.get_logger("main")
    _check_settings(settings, logger)

    container = Container()
    http_client = container.http_client()
    notification_service = container.notification_service()
    container.rarity_cache().load_once()
    container.levels_cache().load_once()
    runner = container.tick_runner()

    await notification_service.initialize()
    shutdown_event = asyncio.Event()
    _setup_signals(shutdown_event)

    logger.info(
        "main_watcher_started",
        ticker=settings.marketplace.ticker,
        poll_seconds=settings.tracking.poll_seconds,
        state_file=settings.state.state_file,
    )
    notification_service.notify(
        NotificationMessage(
            event_type="system_started",
            message="Trade watcher started",
            payload={"audience": "admin", "ticker": settings.marketplace.ticker},
        )
    )
    commands = await _start_commands(container, settings, logger)

    try:
        await runner.run(shutdown_event)
    finally:
        if commands is not None:
            await commands.stop()
        notification_service.notify(
            NotificationMessage(
                event_type="system_stopped",
                message="Trade watcher stopped",
                payload={"audience": "admin"},
            )
        )
        await notification_service.shutdown()
        await http_client.aclose()
        logger.info("main_shutdown_complete")


def main() -> None:
    asyncio.run(run())


__all__ = ["run", "main"]

if __name__ == "__main__":
    main()
