# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit and integration tests."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode as abi_encode

from kaspa_trade_watcher.clients.rpc_client import TokenMetadata
from kaspa_trade_watcher.config import Settings
from kaspa_trade_watcher.models.snapshot import PairState, Snapshot
from kaspa_trade_watcher.persistence.repositories.in_memory import InMemorySnapshotRepository
from kaspa_trade_watcher.services.dex.swap_decoder import SwapEventVariant

TOKEN = "0x1111111111111111111111111111111111111111"
QUOTE = "0x2222222222222222222222222222222222222222"
FACTORY = "0x3333333333333333333333333333333333333333"
PAIR = "0x4444444444444444444444444444444444444444"
TRADER = "0x5555555555555555555555555555555555555555"


@pytest.fixture
def addresses() -> SimpleNamespace:
    """Contract addresses used by the default settings and fakes."""
    return SimpleNamespace(token=TOKEN, quote=QUOTE, factory=FACTORY, pair=PAIR, trader=TRADER)


@pytest.fixture
def D() -> Callable[[Any], Decimal]:
    """Decimal helper: D('1.23') -> Decimal('1.23')."""
    return lambda value: Decimal(str(value))


@pytest.fixture
def now() -> int:
    """Stable epoch-ms timestamp for deterministic assertions."""
    return 1_760_000_000_000


@pytest.fixture
def settings_factory(tmp_path: Any) -> Callable[..., Settings]:
    """Build Settings with both DEXes configured and file paths under tmp_path."""

    def _build(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "chain": {"quote_token_address": QUOTE, "block_span": 1500},
            "zealous": {"factory": FACTORY, "token_address": TOKEN, "buy_link": "https://dex.example/buy"},
            "kaspacom": {"factory": FACTORY, "token_address": TOKEN},
            "state": {"state_file": str(tmp_path / "state.json")},
            "metadata": {
                "levels_dir": str(tmp_path / "levels"),
                "rarity_json_path": str(tmp_path / "rarity.json"),
            },
            "telegram": {"enabled": False},
        }
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(values.get(key), dict):
                values[key] = {**values[key], **value}
            else:
                values[key] = value
        return Settings.from_env(**values)

    return _build


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    """Default test settings."""
    return settings_factory()


@pytest.fixture
def snapshot() -> Snapshot:
    """Empty snapshot per test."""
    return Snapshot()


@pytest.fixture
def snapshot_repo() -> InMemorySnapshotRepository:
    """Fresh in-memory snapshot repository per test."""
    return InMemorySnapshotRepository()


@pytest.fixture
def notifier() -> SimpleNamespace:
    """TradeEventNotifier stand-in recording every call."""
    return SimpleNamespace(
        nft_listed=MagicMock(),
        nft_sold=MagicMock(),
        level_update=MagicMock(),
        token_trade=MagicMock(),
        dex_trade=MagicMock(),
        dex_initialized=MagicMock(),
        dex_init_failed=MagicMock(),
    )


@pytest.fixture
def resolved_pair_state() -> Callable[..., PairState]:
    """Build a resolved PairState (tracked token in slot 0, cursor at block 100)."""

    def _build(**overrides: Any) -> PairState:
        values: dict[str, Any] = {
            "pair_address": PAIR,
            "token_is_first_slot": True,
            "last_scanned_block": 100,
            "token_decimals": 18,
            "quote_decimals": 18,
            "token_symbol": "BONK",
            "quote_symbol": "WKAS",
            "token0": TOKEN,
            "token1": QUOTE,
            "swap_variant": "standard",
        }
        values.update(overrides)
        return PairState(**values)

    return _build


def _topic_for_address(address: str) -> str:
    return "0x" + "0" * 24 + address[2:].lower()


@pytest.fixture
def swap_log_factory() -> Callable[..., dict[str, Any]]:
    """Build a JSON-RPC Swap log dict with ABI-encoded amounts."""

    def _build(
        *,
        amounts: tuple[int, int, int, int] = (0, 10**18, 5 * 10**18, 0),
        tx_hash: str = "0xaaa",
        log_index: int = 0,
        block: int = 101,
        variant: SwapEventVariant = SwapEventVariant.STANDARD,
        discount_eligible: bool = False,
        topics: list[str] | None = None,
    ) -> dict[str, Any]:
        values: list[Any] = list(amounts)
        if variant is SwapEventVariant.DISCOUNT_FLAG:
            values.append(discount_eligible)
        data = abi_encode(variant.data_types, values)
        return {
            "address": PAIR,
            "transactionHash": tx_hash,
            "logIndex": hex(log_index),
            "blockNumber": hex(block),
            "topics": topics
            if topics is not None
            else [variant.topic, _topic_for_address(TRADER), _topic_for_address(TRADER)],
            "data": "0x" + data.hex(),
        }

    return _build


@pytest.fixture
def rpc_factory() -> Callable[..., SimpleNamespace]:
    """RpcClient stand-in: head block, pair lookup, logs and token metadata."""

    def _build(
        *,
        head: int = 200,
        pair: str = PAIR,
        tokens: tuple[str, str] = (TOKEN, QUOTE),
        logs: list[dict[str, Any]] | None = None,
        metadata: dict[str, TokenMetadata] | None = None,
    ) -> SimpleNamespace:
        meta = metadata or {
            TOKEN.lower(): TokenMetadata(decimals=18, symbol="BONK"),
            QUOTE.lower(): TokenMetadata(decimals=18, symbol="WKAS"),
        }

        async def _get_token_metadata(address: str) -> TokenMetadata:
            return meta[address.lower()]

        return SimpleNamespace(
            get_block_number=AsyncMock(return_value=head),
            get_pair=AsyncMock(return_value=pair),
            get_pair_tokens=AsyncMock(return_value=tokens),
            get_logs=AsyncMock(return_value=list(logs or [])),
            get_token_metadata=AsyncMock(side_effect=_get_token_metadata),
        )

    return _build
