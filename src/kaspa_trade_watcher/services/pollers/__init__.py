"""Feed pollers (marketplace REST feeds and level updates)."""

from kaspa_trade_watcher.services.pollers.base import FeedPoller, PollOutcome
from kaspa_trade_watcher.services.pollers.level_updates import LevelUpdatePoller
from kaspa_trade_watcher.services.pollers.listings import ListingsPoller
from kaspa_trade_watcher.services.pollers.sales import SalesPoller
from kaspa_trade_watcher.services.pollers.ticker_fallback import (
    TickerFetchResult,
    fetch_with_ticker_fallback,
)
from kaspa_trade_watcher.services.pollers.token_trades import TokenTradesPoller

__all__ = [
    "FeedPoller",
    "LevelUpdatePoller",
    "ListingsPoller",
    "PollOutcome",
    "SalesPoller",
    "TickerFetchResult",
    "TokenTradesPoller",
    "fetch_with_ticker_fallback",
]
