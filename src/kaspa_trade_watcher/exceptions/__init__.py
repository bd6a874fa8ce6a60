"""Exceptions subpackage."""

from kaspa_trade_watcher.exceptions.exceptions import (
    MissingRequiredConfigError,
    PairNotFoundError,
    RateLimitError,
    RpcError,
    SwapDecodeError,
    TradeWatcherError,
    UpstreamAPIError,
)

__all__ = [
    "MissingRequiredConfigError",
    "PairNotFoundError",
    "RateLimitError",
    "RpcError",
    "SwapDecodeError",
    "TradeWatcherError",
    "UpstreamAPIError",
]
