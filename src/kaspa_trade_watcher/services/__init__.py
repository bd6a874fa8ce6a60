# -*- coding: utf-8 -*-
"""Application services."""

from kaspa_trade_watcher.services.commands import CommandReply, OperatorCommands, TelegramCommandListener
from kaspa_trade_watcher.services.dex import (
    BlockRangeScanner,
    DexPoller,
    PairResolver,
    ScanResult,
    SwapEventVariant,
)
from kaspa_trade_watcher.services.metadata import LevelsCache, Rarity, RarityCache
from kaspa_trade_watcher.services.notifications import TradeEventNotifier
from kaspa_trade_watcher.services.pollers import (
    FeedPoller,
    LevelUpdatePoller,
    ListingsPoller,
    PollOutcome,
    SalesPoller,
    TokenTradesPoller,
)
from kaspa_trade_watcher.services.tick_orchestrator import TickOrchestrator, TickReport
from kaspa_trade_watcher.services.tick_runner import TickRunner

__all__ = [
    "BlockRangeScanner",
    "CommandReply",
    "DexPoller",
    "FeedPoller",
    "LevelUpdatePoller",
    "LevelsCache",
    "ListingsPoller",
    "OperatorCommands",
    "PairResolver",
    "PollOutcome",
    "Rarity",
    "RarityCache",
    "SalesPoller",
    "ScanResult",
    "SwapEventVariant",
    "TelegramCommandListener",
    "TickOrchestrator",
    "TickReport",
    "TickRunner",
    "TokenTradesPoller",
    "TradeEventNotifier",
]
