# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from dependency_injector import containers, providers

from kaspa_trade_watcher.config import Settings, get_settings
from kaspa_trade_watcher.clients.http import AsyncHttpClient
from kaspa_trade_watcher.clients.levels_api import LevelsApiClient
from kaspa_trade_watcher.clients.marketplace_api import MarketplaceApiClient
from kaspa_trade_watcher.clients.rpc_client import RpcClient
from kaspa_trade_watcher.notifications.notification_manager import NotificationService
from kaspa_trade_watcher.notifications.strategies.base import BaseNotificationStrategy
from kaspa_trade_watcher.notifications.strategies.console import ConsoleNotifier
from kaspa_trade_watcher.notifications.strategies.telegram import TelegramNotifier
from kaspa_trade_watcher.notifications.stylers.notification_styler import EventNotificationStyler
from kaspa_trade_watcher.persistence.repositories.json_file import JsonFileSnapshotRepository
from kaspa_trade_watcher.services.commands import OperatorCommands, TelegramCommandListener
from kaspa_trade_watcher.services.dex import BlockRangeScanner, DexPoller, PairResolver
from kaspa_trade_watcher.services.metadata import LevelsCache, RarityCache
from kaspa_trade_watcher.services.notifications import TradeEventNotifier
from kaspa_trade_watcher.services.pollers import (
    LevelUpdatePoller,
    ListingsPoller,
    SalesPoller,
    TokenTradesPoller,
)
from kaspa_trade_watcher.services.tick_orchestrator import TickOrchestrator
from kaspa_trade_watcher.services.tick_runner import TickRunner


def _build_notification_notifiers(
    settings: Settings,
    styler: EventNotificationStyler,
) -> list[BaseNotificationStrategy]:
    notifiers: list[BaseNotificationStrategy] = []
    if settings.console.enabled:
        notifiers.append(ConsoleNotifier(settings=settings, styler=styler))
    if settings.telegram.enabled:
        notifiers.append(TelegramNotifier(settings=settings, styler=styler))
    return notifiers


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, clients, caches, pollers, the tick orchestrator and chat commands."""

    config = providers.Callable(get_settings)

    http_client = providers.Singleton(
        AsyncHttpClient,
        settings=config,
    )

    rpc_client = providers.Singleton(
        RpcClient,
        http_client=http_client,
        settings=config,
    )

    marketplace_client = providers.Singleton(
        MarketplaceApiClient,
        http_client=http_client,
        settings=config,
    )

    levels_client = providers.Singleton(
        LevelsApiClient,
        http_client=http_client,
        settings=config,
    )

    notification_styler = providers.Singleton(EventNotificationStyler)

    notification_service = providers.Singleton(
        NotificationService,
        notifiers=providers.Callable(_build_notification_notifiers, config, notification_styler),
        queue_size=config.provided.tracking.notification_queue_size,
        drain_timeout_seconds=config.provided.tracking.notification_drain_seconds,
    )

    trade_event_notifier = providers.Singleton(
        TradeEventNotifier,
        notification_service=notification_service,
        settings=config,
    )

    snapshot_repository = providers.Singleton(
        JsonFileSnapshotRepository,
        path=config.provided.state.state_file,
    )

    rarity_cache = providers.Singleton(
        RarityCache,
        path=config.provided.metadata.rarity_json_path,
    )

    levels_cache = providers.Singleton(
        LevelsCache,
        levels_client=levels_client,
        levels_dir=config.provided.metadata.levels_dir,
        refresh_seconds=config.provided.metadata.levels_refresh_seconds,
    )

    pair_resolver = providers.Singleton(
        PairResolver,
        rpc_client=rpc_client,
        settings=config,
    )

    block_scanner = providers.Singleton(
        BlockRangeScanner,
        rpc_client=rpc_client,
        settings=config,
    )

    listings_poller = providers.Singleton(
        ListingsPoller,
        marketplace_client=marketplace_client,
        notifier=trade_event_notifier,
        levels=levels_cache,
        rarity=rarity_cache,
        settings=config,
    )

    sales_poller = providers.Singleton(
        SalesPoller,
        marketplace_client=marketplace_client,
        notifier=trade_event_notifier,
        levels=levels_cache,
        rarity=rarity_cache,
        settings=config,
    )

    token_trades_poller = providers.Singleton(
        TokenTradesPoller,
        marketplace_client=marketplace_client,
        notifier=trade_event_notifier,
        settings=config,
    )

    zealous_poller = providers.Singleton(
        DexPoller,
        dex=config.provided.zealous,
        resolver=pair_resolver,
        scanner=block_scanner,
        notifier=trade_event_notifier,
        settings=config,
    )

    kaspacom_poller = providers.Singleton(
        DexPoller,
        dex=config.provided.kaspacom,
        resolver=pair_resolver,
        scanner=block_scanner,
        notifier=trade_event_notifier,
        settings=config,
    )

    level_update_poller = providers.Singleton(
        LevelUpdatePoller,
        levels=levels_cache,
        rarity=rarity_cache,
        notifier=trade_event_notifier,
        settings=config,
    )

    tick_orchestrator = providers.Singleton(
        TickOrchestrator,
        repository=snapshot_repository,
        pollers=providers.List(
            listings_poller,
            sales_poller,
            token_trades_poller,
            zealous_poller,
            kaspacom_poller,
            level_update_poller,
        ),
        levels=levels_cache,
        settings=config,
    )

    tick_runner = providers.Singleton(
        TickRunner,
        orchestrator=tick_orchestrator,
        settings=config,
    )

    operator_commands = providers.Singleton(
        OperatorCommands,
        orchestrator=tick_orchestrator,
        levels=levels_cache,
        rarity=rarity_cache,
        settings=config,
    )

    command_listener = providers.Singleton(
        TelegramCommandListener,
        commands=operator_commands,
        settings=config,
    )
