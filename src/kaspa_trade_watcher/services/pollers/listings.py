# -*- coding: utf-8 -*-
"""NFT listings poller: announces token ids that were not listed on the previous poll."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from kaspa_trade_watcher.models.market import ListingRecord
from kaspa_trade_watcher.services.pollers.base import FeedPoller, PollOutcome
from kaspa_trade_watcher.services.pollers.ticker_fallback import fetch_with_ticker_fallback

if TYPE_CHECKING:
    from kaspa_trade_watcher.clients.marketplace_api import MarketplaceApiClient
    from kaspa_trade_watcher.config import Settings
    from kaspa_trade_watcher.models.snapshot import Snapshot
    from kaspa_trade_watcher.services.metadata import LevelsCache, RarityCache
    from kaspa_trade_watcher.services.notifications.trade_events import TradeEventNotifier


class ListingsPoller(FeedPoller):
    """Diffs the active listing set against the snapshot and replaces it."""

    name = "listings"

    def __init__(
        self,
        marketplace_client: MarketplaceApiClient,
        notifier: TradeEventNotifier,
        levels: LevelsCache,
        rarity: RarityCache,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._client = marketplace_client
        self._notifier = notifier
        self._levels = levels
        self._rarity = rarity
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def poll(self, snapshot: Snapshot) -> PollOutcome:
        got = await fetch_with_ticker_fallback(
            self._client.get_listed_orders, self._settings.marketplace.ticker, logger=self._logger
        )
        previous = snapshot.listings
        active: dict[str, bool] = {}
        emitted = 0
        with bound_contextvars(poller=self.name, ticker_used=got.ticker_used):
            for raw in got.rows:
                listing = ListingRecord.from_raw(raw)
                if not listing.token_id:
                    continue
                token_id = listing.token_id
                if token_id not in previous and token_id not in active:
                    self._notifier.nft_listed(
                        listing,
                        level=self._levels.get(token_id),
                        rarity=self._rarity.get(token_id),
                        media=snapshot.media_for("listed"),
                    )
                    emitted += 1
                active[token_id] = True

            snapshot.listings = active
            self._logger.debug(
                "listings_polled",
                listings_active=len(active),
                listings_new=emitted,
            )
        return PollOutcome(
            poller=self.name,
            emitted=emitted,
            skipped=len(active) - emitted,
            ticker_used=got.ticker_used,
        )
