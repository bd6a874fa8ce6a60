# -*- coding: utf-8 -*-
"""KRC20 token trades poller (fulfilled sold orders of the watched ticker)."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from kaspa_trade_watcher.models.market import TokenSaleRecord, to_decimal
from kaspa_trade_watcher.services.pollers.base import FeedPoller, PollOutcome
from kaspa_trade_watcher.services.pollers.ticker_fallback import fetch_with_ticker_fallback
from kaspa_trade_watcher.utils.dedupe import now_ms, record, seen, token_trade_key

if TYPE_CHECKING:
    from kaspa_trade_watcher.clients.marketplace_api import MarketplaceApiClient
    from kaspa_trade_watcher.config import Settings
    from kaspa_trade_watcher.models.snapshot import Snapshot
    from kaspa_trade_watcher.services.notifications.trade_events import TradeEventNotifier


class TokenTradesPoller(FeedPoller):
    """Announces each fulfilled order once; big buy when its total price reaches the threshold."""

    name = "token_trades"

    def __init__(
        self,
        marketplace_client: MarketplaceApiClient,
        notifier: TradeEventNotifier,
        settings: Settings,
        *,
        clock: Callable[[], int] = now_ms,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._client = marketplace_client
        self._notifier = notifier
        self._settings = settings
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def poll(self, snapshot: Snapshot) -> PollOutcome:
        got = await fetch_with_ticker_fallback(
            self._client.get_token_sold_orders,
            self._settings.marketplace.ticker,
            logger=self._logger,
        )
        threshold = self._settings.alerts.big_buy_threshold
        emitted = skipped = 0
        with bound_contextvars(poller=self.name, ticker_used=got.ticker_used):
            for raw in got.rows:
                order = TokenSaleRecord.from_raw(raw)
                key = token_trade_key(order)
                if seen(snapshot.token_trades, key):
                    skipped += 1
                    continue
                total = to_decimal(order.total_price)
                is_big_buy = total is not None and total >= threshold
                self._notifier.token_trade(
                    order,
                    is_big_buy=is_big_buy,
                    ticker_used=got.ticker_used,
                    media=snapshot.media_for("bigbuy" if is_big_buy else "token"),
                )
                record(snapshot.token_trades, key, self._clock())
                emitted += 1
            self._logger.debug(
                "token_trades_polled",
                token_trades_rows=len(got.rows),
                token_trades_new=emitted,
            )
        return PollOutcome(
            poller=self.name, emitted=emitted, skipped=skipped, ticker_used=got.ticker_used
        )
