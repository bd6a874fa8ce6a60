"""Kasplex L2 JSON-RPC client for on-chain reads (block number, logs, pair and ERC-20 calls)."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast

import structlog
from cachetools import LRUCache
from eth_abi import decode as abi_decode
from eth_utils import to_checksum_address

from kaspa_trade_watcher.exceptions import RpcError
from kaspa_trade_watcher.utils.validation import ZERO_ADDRESS, mask_address

if TYPE_CHECKING:
    from kaspa_trade_watcher.clients.http import AsyncHttpClient
    from kaspa_trade_watcher.config import Settings

# Function selectors (bytes4(keccak256(signature)))
SELECTOR_DECIMALS = "0x313ce567"
SELECTOR_SYMBOL = "0x95d89b41"
SELECTOR_TOKEN0 = "0x0dfe1681"
SELECTOR_TOKEN1 = "0xd21220a7"
SELECTOR_GET_PAIR = "0xe6a43905"


def _normalize_address(addr: str) -> str:
    """Return lowercase hex address without 0x prefix (for calldata)."""
    s = (addr or "").strip().lower()
    if s.startswith("0x"):
        s = s[2:]
    return s


def _encode_address(addr: str) -> str:
    """ABI-encode an address argument as a 32-byte word (hex, no prefix)."""
    hex_addr = _normalize_address(addr)
    if len(hex_addr) != 40:
        raise ValueError(f"Invalid address length: {addr!r}")
    return "0" * 24 + hex_addr


def _hex_to_bytes(raw: str) -> bytes:
    s = raw[2:] if raw.startswith("0x") else raw
    return bytes.fromhex(s)


def _decode_address_word(raw: str) -> str:
    """Decode an address returned as a single 32-byte word."""
    s = raw[2:] if raw.startswith("0x") else raw
    if len(s) < 40:
        raise RpcError(f"Unexpected address result: {raw!r}")
    return to_checksum_address("0x" + s[-40:])


def _decode_symbol(raw: str) -> str:
    """Decode symbol() output: ABI string, or bytes32 for older tokens."""
    data = _hex_to_bytes(raw)
    if len(data) == 32:
        return data.rstrip(b"\x00").decode("utf-8", errors="replace")
    (symbol,) = abi_decode(["string"], data)
    return cast(str, symbol)


@dataclass(frozen=True, slots=True)
class TokenMetadata:
    """ERC-20 display metadata."""

    decimals: int
    symbol: str


class RpcClient:
    """Client for Kasplex L2 JSON-RPC. Used by the pair resolver and the block-range scanner."""

    def __init__(
        self,
        http_client: AsyncHttpClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the RPC client.

        Args:
            http_client: HTTP client for POST requests (JSON-RPC).
            settings: Configuration (uses settings.chain.rpc_url, token_metadata_cache_size).
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._ids = itertools.count(1)
        self._token_metadata: LRUCache[str, TokenMetadata] = LRUCache(
            maxsize=settings.chain.token_metadata_cache_size
        )

    def _rpc_url(self) -> str:
        return self._settings.chain.rpc_url.rstrip("/")

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request and return its result.

        Raises:
            UpstreamAPIError: If the HTTP request fails after retries.
            RpcError: If the response carries an error object or is malformed.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        response = await self._http.post(self._rpc_url(), json=payload)
        if not isinstance(response, dict):
            raise RpcError(f"Unexpected RPC response type: {type(response).__name__}", method=method)
        resp_dict = cast(dict[str, Any], response)
        if "error" in resp_dict and resp_dict["error"] is not None:
            err = resp_dict["error"]
            code: int | None = None
            if isinstance(err, dict):
                err_d = cast(dict[str, Any], err)
                msg = str(err_d.get("message", err_d))
                raw_code = err_d.get("code")
                code = raw_code if isinstance(raw_code, int) else None
            else:
                msg = str(err)
            raise RpcError(f"RPC error: {msg}", method=method, code=code)
        if "result" not in resp_dict:
            raise RpcError("RPC response without result", method=method)
        return resp_dict["result"]

    async def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        """Perform eth_call (read-only contract call).

        Args:
            to: Contract address (0x...).
            data: Hex-encoded calldata (with 0x prefix).
            block: Block tag (default "latest").

        Returns:
            Hex-encoded result (e.g. "0x...").
        """
        to_norm = to.strip()
        if not to_norm.startswith("0x"):
            to_norm = "0x" + to_norm
        result = await self.request("eth_call", [{"to": to_norm, "data": data}, block])
        if not isinstance(result, str) or result in ("", "0x"):
            raise RpcError(f"Empty eth_call result from {to_norm}", method="eth_call")
        return result

    async def get_block_number(self) -> int:
        """Return the current chain head block number."""
        result = await self.request("eth_blockNumber", [])
        try:
            return int(str(result), 16)
        except ValueError as e:
            raise RpcError(f"Invalid block number: {result!r}", method="eth_blockNumber") from e

    async def get_logs(
        self,
        address: str,
        from_block: int,
        to_block: int,
        topics: list[str | None],
    ) -> list[dict[str, Any]]:
        """Fetch logs emitted by `address` in [from_block, to_block] matching `topics`."""
        params = {
            "address": address,
            "fromBlock": hex(from_block),
            "toBlock": hex(to_block),
            "topics": topics,
        }
        result = await self.request("eth_getLogs", [params])
        if not isinstance(result, list):
            raise RpcError(f"Unexpected eth_getLogs result: {type(result).__name__}", method="eth_getLogs")
        return [cast(dict[str, Any], x) for x in cast(list[Any], result) if isinstance(x, dict)]

    async def get_pair(self, factory: str, token_a: str, token_b: str) -> str:
        """Call factory.getPair(token_a, token_b). Returns the zero address when no pair exists."""
        data = SELECTOR_GET_PAIR + _encode_address(token_a) + _encode_address(token_b)
        raw = await self.eth_call(factory, data)
        pair = _decode_address_word(raw)
        self._logger.debug(
            "rpc_get_pair",
            rpc_factory=mask_address(factory),
            rpc_pair=mask_address(pair),
            rpc_pair_found=pair != ZERO_ADDRESS,
        )
        return pair

    async def get_pair_tokens(self, pair: str) -> tuple[str, str]:
        """Return (token0, token1) of a UniswapV2-style pair."""
        token0 = _decode_address_word(await self.eth_call(pair, SELECTOR_TOKEN0))
        token1 = _decode_address_word(await self.eth_call(pair, SELECTOR_TOKEN1))
        return token0, token1

    async def get_erc20_decimals(self, token_address: str) -> int:
        """Get decimals of an ERC-20 token."""
        raw = await self.eth_call(token_address, SELECTOR_DECIMALS)
        return int(raw, 16)

    async def get_erc20_symbol(self, token_address: str) -> str:
        """Get symbol of an ERC-20 token."""
        raw = await self.eth_call(token_address, SELECTOR_SYMBOL)
        return _decode_symbol(raw)

    async def get_token_metadata(self, token_address: str) -> TokenMetadata:
        """Return decimals and symbol, memoized per address. Failures are not cached.

        Raises:
            RpcError, UpstreamAPIError, ValueError: If either read fails.
        """
        key = token_address.strip().lower()
        cached = self._token_metadata.get(key)
        if cached is not None:
            return cached
        meta = TokenMetadata(
            decimals=await self.get_erc20_decimals(token_address),
            symbol=await self.get_erc20_symbol(token_address),
        )
        self._token_metadata[key] = meta
        return meta
