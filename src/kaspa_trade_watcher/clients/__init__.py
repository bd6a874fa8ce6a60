"""HTTP and API clients."""

from kaspa_trade_watcher.clients.http import AsyncHttpClient
from kaspa_trade_watcher.clients.levels_api import LevelsApiClient
from kaspa_trade_watcher.clients.marketplace_api import MarketplaceApiClient
from kaspa_trade_watcher.clients.rpc_client import RpcClient, TokenMetadata

__all__ = [
    "AsyncHttpClient",
    "LevelsApiClient",
    "MarketplaceApiClient",
    "RpcClient",
    "TokenMetadata",
]
