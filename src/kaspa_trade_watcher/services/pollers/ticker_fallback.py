# -*- coding: utf-8 -*-
"""Retry a ticker-keyed fetch across casing variants of the ticker."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from kaspa_trade_watcher.exceptions import TradeWatcherError, UpstreamAPIError
from kaspa_trade_watcher.utils.fields import tickers_to_try

Rows = list[dict[str, Any]]


@dataclass(frozen=True, slots=True)
class TickerFetchResult:
    """Rows of the first variant that returned any, else of the last attempt."""

    ticker_used: str
    rows: Rows = field(default_factory=list)
    errors: tuple[Exception, ...] = ()


async def fetch_with_ticker_fallback(
    fetch: Callable[[str], Awaitable[Rows]],
    base_ticker: str,
    *,
    logger: Any = None,
) -> TickerFetchResult:
    """Try `fetch` with each ticker variant (as given, UPPER, lower, Title) until one returns rows.

    A failed attempt moves on to the next variant.

    Raises:
        UpstreamAPIError: If every variant failed, so callers keep their previous state.
    """
    log = logger if logger is not None else structlog.get_logger("TickerFallback")
    variants = tickers_to_try(base_ticker)
    errors: list[Exception] = []
    last = TickerFetchResult(ticker_used=base_ticker)
    for ticker in variants:
        try:
            rows = await fetch(ticker)
        except TradeWatcherError as e:
            errors.append(e)
            last = TickerFetchResult(ticker_used=ticker)
            log.debug(
                "ticker_variant_failed",
                ticker_variant=ticker,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            continue
        last = TickerFetchResult(ticker_used=ticker, rows=rows, errors=tuple(errors))
        if rows:
            return last

    if errors and len(errors) == len(variants):
        raise UpstreamAPIError(
            f"All {len(variants)} ticker variants of {base_ticker!r} failed",
            cause=errors[-1],
        ) from errors[-1]
    return TickerFetchResult(ticker_used=last.ticker_used, rows=last.rows, errors=tuple(errors))
