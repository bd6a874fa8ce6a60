"""Kaspa trade watcher: NFT marketplace, KRC20 order book and L2 DEX trade alerts."""

from kaspa_trade_watcher.clients import (
    AsyncHttpClient,
    LevelsApiClient,
    MarketplaceApiClient,
    RpcClient,
)
from kaspa_trade_watcher.config import get_settings
from kaspa_trade_watcher.DI import Container
from kaspa_trade_watcher.services import TickOrchestrator, TickRunner

__version__ = "0.0.1"
__all__ = [
    "AsyncHttpClient",
    "Container",
    "LevelsApiClient",
    "MarketplaceApiClient",
    "RpcClient",
    "TickOrchestrator",
    "TickRunner",
    "get_settings",
]
