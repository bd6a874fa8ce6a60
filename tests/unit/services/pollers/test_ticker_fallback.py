# -*- coding: utf-8 -*-
"""Unit tests for the ticker casing fallback."""

from __future__ import annotations

from typing import Any

import pytest

from kaspa_trade_watcher.exceptions import UpstreamAPIError
from kaspa_trade_watcher.services.pollers.ticker_fallback import fetch_with_ticker_fallback


async def test_returns_first_variant_with_rows() -> None:
    calls: list[str] = []

    async def fetch(ticker: str) -> list[dict[str, Any]]:
        calls.append(ticker)
        return [{"id": "1"}] if ticker == "bonkey" else []

    got = await fetch_with_ticker_fallback(fetch, "BONKEY")

    assert got.ticker_used == "bonkey"
    assert got.rows == [{"id": "1"}]
    assert calls == ["BONKEY", "bonkey"]


async def test_mixed_case_base_falls_back_to_upper_variant() -> None:
    calls: list[str] = []

    async def fetch(ticker: str) -> list[dict[str, Any]]:
        calls.append(ticker)
        return [{"id": "7"}] if ticker == "BONKEY" else []

    got = await fetch_with_ticker_fallback(fetch, "Bonkey")

    assert got.ticker_used == "BONKEY"
    assert got.rows == [{"id": "7"}]
    assert calls == ["Bonkey", "BONKEY"]


async def test_failed_variant_moves_to_next() -> None:
    async def fetch(ticker: str) -> list[dict[str, Any]]:
        if ticker == "BONKEY":
            raise UpstreamAPIError("500")
        return [{"id": ticker}]

    got = await fetch_with_ticker_fallback(fetch, "BONKEY")

    assert got.ticker_used == "bonkey"
    assert len(got.errors) == 1


async def test_all_empty_returns_empty_rows() -> None:
    async def fetch(ticker: str) -> list[dict[str, Any]]:
        return []

    got = await fetch_with_ticker_fallback(fetch, "BONKEY")

    assert got.rows == []
    assert got.errors == ()


async def test_all_variants_failing_raises() -> None:
    async def fetch(ticker: str) -> list[dict[str, Any]]:
        raise UpstreamAPIError(f"down for {ticker}")

    with pytest.raises(UpstreamAPIError):
        await fetch_with_ticker_fallback(fetch, "BONKEY")
