# -*- coding: utf-8 -*-
"""Unit tests for BlockRangeScanner."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, cast
from unittest.mock import AsyncMock

import pytest

from kaspa_trade_watcher.config import Settings
from kaspa_trade_watcher.exceptions import RpcError
from kaspa_trade_watcher.models.snapshot import PairState
from kaspa_trade_watcher.models.trade import ClassifiedTrade, TradeDirection
from kaspa_trade_watcher.services.dex.block_scanner import BlockRangeScanner
from kaspa_trade_watcher.services.dex.swap_decoder import SwapEventVariant

ONE = 10**18
THRESHOLD = Decimal("500")


def _scanner(settings: Settings, rpc: SimpleNamespace, now: int) -> BlockRangeScanner:
    return BlockRangeScanner(cast(Any, rpc), settings, clock=lambda: now)


async def test_scan_emits_trades_records_keys_and_advances_cursor(
    settings: Settings,
    rpc_factory: Callable[..., SimpleNamespace],
    swap_log_factory: Callable[..., dict[str, Any]],
    resolved_pair_state: Callable[..., PairState],
    now: int,
) -> None:
    logs = [
        swap_log_factory(tx_hash="0xa", log_index=0, amounts=(0, 600 * ONE, 10 * ONE, 0)),
        swap_log_factory(tx_hash="0xb", log_index=2, amounts=(10 * ONE, 0, 0, 3 * ONE)),
    ]
    rpc = rpc_factory(head=150, logs=logs)
    state = resolved_pair_state(last_scanned_block=100)
    dedupe: dict[str, Any] = {}
    emitted: list[ClassifiedTrade] = []

    result = await _scanner(settings, rpc, now).scan(
        "KaspaCom", state, dedupe, SwapEventVariant.STANDARD, emitted.append, big_buy_threshold=THRESHOLD
    )

    assert [t.direction for t in emitted] == [TradeDirection.BUY, TradeDirection.SELL]
    assert emitted[0].is_big_buy is True
    assert result.emitted == 2
    assert (result.from_block, result.to_block) == (101, 150)
    assert state.last_scanned_block == 150
    assert dedupe == {"KaspaCom:0xa:0": now, "KaspaCom:0xb:2": now}
    rpc.get_logs.assert_awaited_once_with(state.pair_address, 101, 150, [SwapEventVariant.STANDARD.topic])


async def test_rescanning_same_logs_emits_nothing(
    settings: Settings,
    rpc_factory: Callable[..., SimpleNamespace],
    swap_log_factory: Callable[..., dict[str, Any]],
    resolved_pair_state: Callable[..., PairState],
    now: int,
) -> None:
    logs = [swap_log_factory(tx_hash="0xa", log_index=0)]
    rpc = rpc_factory(head=150, logs=logs)
    dedupe: dict[str, Any] = {}
    emitted: list[ClassifiedTrade] = []
    scanner = _scanner(settings, rpc, now)

    await scanner.scan(
        "KaspaCom",
        resolved_pair_state(last_scanned_block=100),
        dedupe,
        SwapEventVariant.STANDARD,
        emitted.append,
        big_buy_threshold=THRESHOLD,
    )
    result = await scanner.scan(
        "KaspaCom",
        resolved_pair_state(last_scanned_block=100),
        dedupe,
        SwapEventVariant.STANDARD,
        emitted.append,
        big_buy_threshold=THRESHOLD,
    )

    assert len(emitted) == 1
    assert result.skipped_duplicates == 1
    assert result.emitted == 0


async def test_head_not_ahead_of_cursor_is_noop(
    settings: Settings,
    rpc_factory: Callable[..., SimpleNamespace],
    resolved_pair_state: Callable[..., PairState],
    now: int,
) -> None:
    rpc = rpc_factory(head=100)
    state = resolved_pair_state(last_scanned_block=100)

    result = await _scanner(settings, rpc, now).scan(
        "KaspaCom", state, {}, SwapEventVariant.STANDARD, lambda t: None, big_buy_threshold=THRESHOLD
    )

    assert not result.scanned
    assert state.last_scanned_block == 100
    rpc.get_logs.assert_not_awaited()


async def test_range_is_clamped_to_block_span(
    settings_factory: Callable[..., Settings],
    rpc_factory: Callable[..., SimpleNamespace],
    resolved_pair_state: Callable[..., PairState],
    now: int,
) -> None:
    settings = settings_factory(chain={"block_span": 50})
    rpc = rpc_factory(head=10_000)
    state = resolved_pair_state(last_scanned_block=100)

    result = await _scanner(settings, rpc, now).scan(
        "KaspaCom", state, {}, SwapEventVariant.STANDARD, lambda t: None, big_buy_threshold=THRESHOLD
    )

    assert (result.from_block, result.to_block) == (101, 151)
    assert state.last_scanned_block == 151


async def test_fetch_failure_leaves_cursor_and_dedupe_unchanged(
    settings: Settings,
    rpc_factory: Callable[..., SimpleNamespace],
    resolved_pair_state: Callable[..., PairState],
    now: int,
) -> None:
    rpc = rpc_factory(head=150)
    rpc.get_logs = AsyncMock(side_effect=RpcError("query returned more than 10000 results"))
    state = resolved_pair_state(last_scanned_block=100)
    dedupe: dict[str, Any] = {}

    with pytest.raises(RpcError):
        await _scanner(settings, rpc, now).scan(
            "KaspaCom", state, dedupe, SwapEventVariant.STANDARD, lambda t: None, big_buy_threshold=THRESHOLD
        )

    assert state.last_scanned_block == 100
    assert dedupe == {}


async def test_sink_failure_does_not_record_key_or_advance(
    settings: Settings,
    rpc_factory: Callable[..., SimpleNamespace],
    swap_log_factory: Callable[..., dict[str, Any]],
    resolved_pair_state: Callable[..., PairState],
    now: int,
) -> None:
    rpc = rpc_factory(head=150, logs=[swap_log_factory(tx_hash="0xa")])
    state = resolved_pair_state(last_scanned_block=100)
    dedupe: dict[str, Any] = {}

    def _failing_sink(trade: ClassifiedTrade) -> None:
        raise RuntimeError("queue full")

    with pytest.raises(RuntimeError):
        await _scanner(settings, rpc, now).scan(
            "KaspaCom", state, dedupe, SwapEventVariant.STANDARD, _failing_sink, big_buy_threshold=THRESHOLD
        )

    assert dedupe == {}
    assert state.last_scanned_block == 100


async def test_noise_and_undecodable_logs_are_recorded_not_emitted(
    settings: Settings,
    rpc_factory: Callable[..., SimpleNamespace],
    swap_log_factory: Callable[..., dict[str, Any]],
    resolved_pair_state: Callable[..., PairState],
    now: int,
) -> None:
    bad = swap_log_factory(tx_hash="0xbad")
    bad["data"] = "0x1234"
    malformed = swap_log_factory(tx_hash="0xmal")
    malformed["logIndex"] = "0xnothex"
    logs = [
        swap_log_factory(tx_hash="0xnoise", amounts=(ONE, ONE, 0, 0)),
        bad,
        malformed,
    ]
    rpc = rpc_factory(head=150, logs=logs)
    dedupe: dict[str, Any] = {}
    emitted: list[ClassifiedTrade] = []

    result = await _scanner(settings, rpc, now).scan(
        "KaspaCom",
        resolved_pair_state(last_scanned_block=100),
        dedupe,
        SwapEventVariant.STANDARD,
        emitted.append,
        big_buy_threshold=THRESHOLD,
    )

    assert emitted == []
    assert result.noise == 1
    assert result.decode_failures == 2
    assert set(dedupe) == {"KaspaCom:0xnoise:0", "KaspaCom:0xbad:0"}


async def test_two_ticks_cover_contiguous_ranges(
    settings: Settings,
    rpc_factory: Callable[..., SimpleNamespace],
    resolved_pair_state: Callable[..., PairState],
    now: int,
) -> None:
    rpc = rpc_factory(head=150)
    state = resolved_pair_state(last_scanned_block=100)
    scanner = _scanner(settings, rpc, now)

    first = await scanner.scan(
        "KaspaCom", state, {}, SwapEventVariant.STANDARD, lambda t: None, big_buy_threshold=THRESHOLD
    )
    rpc.get_block_number = AsyncMock(return_value=180)
    second = await scanner.scan(
        "KaspaCom", state, {}, SwapEventVariant.STANDARD, lambda t: None, big_buy_threshold=THRESHOLD
    )

    assert (first.from_block, first.to_block) == (101, 150)
    assert (second.from_block, second.to_block) == (151, 180)
    assert state.last_scanned_block == 180
