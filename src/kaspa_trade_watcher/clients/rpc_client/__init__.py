"""JSON-RPC client subpackage."""

from kaspa_trade_watcher.clients.rpc_client.rpc_client import RpcClient, TokenMetadata

__all__ = ["RpcClient", "TokenMetadata"]
