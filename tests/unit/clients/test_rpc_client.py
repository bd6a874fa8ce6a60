# -*- coding: utf-8 -*-
"""Unit tests for the JSON-RPC client."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, cast
from unittest.mock import AsyncMock

import pytest
from eth_abi import encode as abi_encode

from kaspa_trade_watcher.clients.rpc_client import RpcClient
from kaspa_trade_watcher.clients.rpc_client.rpc_client import SELECTOR_GET_PAIR
from kaspa_trade_watcher.config import Settings
from kaspa_trade_watcher.exceptions import RpcError


def _word(value: int) -> str:
    return "0x" + abi_encode(["uint256"], [value]).hex()


def _client(settings: Settings, *responses: Any) -> tuple[RpcClient, SimpleNamespace]:
    http = SimpleNamespace(post=AsyncMock(side_effect=list(responses)))
    return RpcClient(cast(Any, http), settings), http


async def test_get_block_number_parses_hex(settings: Settings) -> None:
    client, http = _client(settings, {"jsonrpc": "2.0", "id": 1, "result": "0x1f4"})

    assert await client.get_block_number() == 500
    body = http.post.await_args.kwargs["json"]
    assert body["method"] == "eth_blockNumber"
    assert body["params"] == []


async def test_request_raises_on_error_object(settings: Settings) -> None:
    client, _ = _client(settings, {"error": {"code": -32000, "message": "boom"}})

    with pytest.raises(RpcError) as exc_info:
        await client.request("eth_blockNumber", [])

    assert exc_info.value.code == -32000
    assert exc_info.value.method == "eth_blockNumber"


async def test_request_raises_without_result(settings: Settings) -> None:
    client, _ = _client(settings, {"jsonrpc": "2.0", "id": 1})
    with pytest.raises(RpcError):
        await client.request("eth_chainId", [])


async def test_get_logs_sends_hex_range_and_filters_rows(settings: Settings, addresses: Any) -> None:
    client, http = _client(settings, {"result": [{"logIndex": "0x0"}, "junk"]})

    logs = await client.get_logs(addresses.pair, 101, 200, ["0xtopic"])

    assert logs == [{"logIndex": "0x0"}]
    (params,) = http.post.await_args.kwargs["json"]["params"]
    assert params == {
        "address": addresses.pair,
        "fromBlock": "0x65",
        "toBlock": "0xc8",
        "topics": ["0xtopic"],
    }


async def test_get_pair_encodes_calldata_and_decodes_address(
    settings: Settings, addresses: Any
) -> None:
    client, http = _client(settings, {"result": "0x" + "0" * 24 + addresses.pair[2:]})

    pair = await client.get_pair(addresses.factory, addresses.token, addresses.quote)

    assert pair.lower() == addresses.pair
    call, block = http.post.await_args.kwargs["json"]["params"]
    assert block == "latest"
    assert call["to"] == addresses.factory
    assert call["data"] == (
        SELECTOR_GET_PAIR + "0" * 24 + addresses.token[2:] + "0" * 24 + addresses.quote[2:]
    )


async def test_eth_call_empty_result_raises(settings: Settings, addresses: Any) -> None:
    client, _ = _client(settings, {"result": "0x"})
    with pytest.raises(RpcError):
        await client.get_erc20_decimals(addresses.token)


async def test_get_token_metadata_is_cached(settings: Settings, addresses: Any) -> None:
    symbol = "0x" + abi_encode(["string"], ["BONK"]).hex()
    client, http = _client(settings, {"result": _word(8)}, {"result": symbol})

    first = await client.get_token_metadata(addresses.token)
    second = await client.get_token_metadata(addresses.token.upper().replace("0X", "0x"))

    assert first.decimals == 8
    assert first.symbol == "BONK"
    assert second is first
    assert http.post.await_count == 2


async def test_symbol_decodes_bytes32_tokens(settings: Settings, addresses: Any) -> None:
    raw = "0x" + b"WKAS".ljust(32, b"\x00").hex()
    client, _ = _client(settings, {"result": raw})
    assert await client.get_erc20_symbol(addresses.quote) == "WKAS"
