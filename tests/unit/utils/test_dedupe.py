# -*- coding: utf-8 -*-
"""Unit tests for dedupe helpers."""

from __future__ import annotations

from typing import Any

from kaspa_trade_watcher.models.market import SaleRecord, TokenSaleRecord
from kaspa_trade_watcher.utils.dedupe import (
    coerce_timestamps,
    dex_trade_key,
    purge,
    record,
    sale_key,
    seen,
    token_trade_key,
)

HOUR_MS = 3_600_000


def test_record_then_seen() -> None:
    dedupe: dict[str, Any] = {}
    assert not seen(dedupe, "k")
    record(dedupe, "k", 1000)
    assert seen(dedupe, "k")
    assert dedupe["k"] == 1000


def test_purge_drops_keys_older_than_ttl() -> None:
    now = 10 * HOUR_MS
    dedupe: dict[str, Any] = {"old": now - 7 * HOUR_MS, "fresh": now - HOUR_MS}

    removed = purge(dedupe, now, ttl_ms=6 * HOUR_MS, max_keys=100)

    assert removed == 1
    assert dedupe == {"fresh": now - HOUR_MS}


def test_purge_keeps_key_exactly_at_ttl() -> None:
    now = 10 * HOUR_MS
    dedupe: dict[str, Any] = {"edge": now - 6 * HOUR_MS}

    purge(dedupe, now, ttl_ms=6 * HOUR_MS, max_keys=100)

    assert "edge" in dedupe


def test_purge_evicts_oldest_until_max_keys() -> None:
    now = 1_000_000
    dedupe: dict[str, Any] = {f"k{i}": now - (10 - i) for i in range(10)}

    removed = purge(dedupe, now, ttl_ms=HOUR_MS, max_keys=3)

    assert removed == 7
    assert sorted(dedupe) == ["k7", "k8", "k9"]


def test_purge_treats_non_finite_and_non_numeric_timestamps_as_expired() -> None:
    now = 1_000_000
    dedupe: dict[str, Any] = {
        "nan": float("nan"),
        "inf": float("inf"),
        "text": "yesterday",
        "flag": True,
        "ok": now,
    }

    purge(dedupe, now, ttl_ms=HOUR_MS, max_keys=100)

    assert dedupe == {"ok": now}


def test_purge_on_bounded_map_is_noop() -> None:
    now = 1_000_000
    dedupe: dict[str, Any] = {"a": now, "b": now - 1}

    assert purge(dedupe, now, ttl_ms=HOUR_MS, max_keys=5) == 0
    assert len(dedupe) == 2


def test_coerce_timestamps_turns_legacy_true_into_now() -> None:
    out = coerce_timestamps({"legacy": True, "ts": 123, "junk": "x"}, now=999)
    assert out == {"legacy": 999, "ts": 123, "junk": 999}


def test_coerce_timestamps_ignores_non_dict() -> None:
    assert coerce_timestamps(["a"], now=1) == {}
    assert coerce_timestamps(None, now=1) == {}


def test_dex_trade_key_format() -> None:
    assert dex_trade_key("ZealousSwap", "0xabc", 3) == "ZealousSwap:0xabc:3"


def test_sale_key_prefers_upstream_id() -> None:
    sale = SaleRecord(id="sale-1", token_id="42", sold_at=1000)
    assert sale_key(sale) == "sale-1"


def test_sale_key_falls_back_to_token_and_sold_at() -> None:
    assert sale_key(SaleRecord(id=None, token_id="42", sold_at=1000)) == "42:1000"
    assert sale_key(SaleRecord(id=None, token_id="42")) == "42:"


def test_token_trade_key_uses_id_when_present() -> None:
    order = TokenSaleRecord(id="o-1", ticker="BONKEY")
    assert token_trade_key(order) == "krc20:o-1"


def test_token_trade_key_composite_without_id() -> None:
    order = TokenSaleRecord(
        id=None,
        ticker="BONKEY",
        amount="1000",
        total_price="12.5",
        buyer_address="kaspa:qbuyer",
        created_at=111,
        fulfillment_timestamp=222,
    )
    assert token_trade_key(order) == "krc20:BONKEY:222:1000:12.5:kaspa:qbuyer"
