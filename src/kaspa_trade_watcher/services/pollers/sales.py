# -*- coding: utf-8 -*-
"""NFT sales poller."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from kaspa_trade_watcher.models.market import SaleRecord
from kaspa_trade_watcher.services.pollers.base import FeedPoller, PollOutcome
from kaspa_trade_watcher.services.pollers.ticker_fallback import fetch_with_ticker_fallback
from kaspa_trade_watcher.utils.dedupe import now_ms, record, sale_key, seen

if TYPE_CHECKING:
    from kaspa_trade_watcher.clients.marketplace_api import MarketplaceApiClient
    from kaspa_trade_watcher.config import Settings
    from kaspa_trade_watcher.models.snapshot import Snapshot
    from kaspa_trade_watcher.services.metadata import LevelsCache, RarityCache
    from kaspa_trade_watcher.services.notifications.trade_events import TradeEventNotifier


class SalesPoller(FeedPoller):
    """Announces each sale once, keyed by upstream id or tokenId:soldAt."""

    name = "sales"

    def __init__(
        self,
        marketplace_client: MarketplaceApiClient,
        notifier: TradeEventNotifier,
        levels: LevelsCache,
        rarity: RarityCache,
        settings: Settings,
        *,
        clock: Callable[[], int] = now_ms,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._client = marketplace_client
        self._notifier = notifier
        self._levels = levels
        self._rarity = rarity
        self._settings = settings
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def poll(self, snapshot: Snapshot) -> PollOutcome:
        got = await fetch_with_ticker_fallback(
            self._client.get_sold_orders, self._settings.marketplace.ticker, logger=self._logger
        )
        emitted = skipped = 0
        with bound_contextvars(poller=self.name, ticker_used=got.ticker_used):
            for raw in got.rows:
                sale = SaleRecord.from_raw(raw)
                if not sale.token_id:
                    continue
                key = sale_key(sale)
                if seen(snapshot.sales, key):
                    skipped += 1
                    continue
                self._notifier.nft_sold(
                    sale,
                    level=self._levels.get(sale.token_id),
                    rarity=self._rarity.get(sale.token_id),
                    media=snapshot.media_for("sold"),
                )
                record(snapshot.sales, key, self._clock())
                emitted += 1
            self._logger.debug("sales_polled", sales_rows=len(got.rows), sales_new=emitted)
        return PollOutcome(
            poller=self.name, emitted=emitted, skipped=skipped, ticker_used=got.ticker_used
        )
